# src/datapack/core/pipeline/types.py
"""
Tipos canônicos do build do Datapack.

Este módulo define as estruturas que padronizam a comunicação entre
Script Runner, Orchestrator e a camada de rastreabilidade:

    - ScriptStatus → estados finais de um script (SUCCESS, SKIPPED, FAILED)
    - ScriptResult → resultado imutável da execução de um script
    - BuildResult  → resultado agregado de um build aceito pelo version gate

Princípios fundamentais:
    - Tipos são estáveis e serializáveis (enums com valores textuais)
    - Resultados são imutáveis (frozen dataclasses)
    - Nenhuma lógica de execução vive neste módulo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ScriptStatus(str, Enum):
    """
    Estados finais possíveis de um script num build.

    - SUCCESS: executado sem erro
    - SKIPPED: desabilitado na configuração (não executado)
    - FAILED: interrompido por erro, assert ou timeout
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ScriptResult:
    """
    Resultado imutável da execução de um script.

    Campos:
        - script_path: caminho do script (como declarado na configuração)
        - status: estado final
        - summary: resumo textual
        - duration_ms: duração da execução
        - written: artefatos escritos pelo script neste build
        - error: payload de erro serializável (apenas em FAILED)
        - exception: RunError original (apenas em FAILED, fora do to_dict)
    """

    script_path: str
    status: ScriptStatus
    summary: str
    duration_ms: int = 0
    written: List[str] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.status != ScriptStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "script_path": self.script_path,
            "status": self.status.value,
            "summary": self.summary,
            "duration_ms": self.duration_ms,
            "written": list(self.written),
            "error": self.error,
        }


@dataclass(frozen=True)
class BuildResult:
    """
    Resultado de um build aceito.

    - committed_artifacts: nome → valor de todos os artefatos do build
    - fingerprints: nome → fingerprint em vigor após o build
    - data_version: versão dos dados em vigor após o build
    - version_changed: True se houve commit de novo digest
    - skipped_scripts: scripts desabilitados (artefatos levados adiante)
    - changed_artifacts: artefatos novos, alterados ou removidos
    - carried_artifacts: artefatos reaproveitados do commit anterior
    - scripts: ScriptResult por script, na ordem da configuração
    - events: log estruturado do build
    """

    committed_artifacts: Dict[str, Any]
    fingerprints: Dict[str, str]
    data_version: Optional[str]
    version_changed: bool
    skipped_scripts: List[str] = field(default_factory=list)
    changed_artifacts: List[str] = field(default_factory=list)
    carried_artifacts: List[str] = field(default_factory=list)
    producers: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, ScriptResult] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def artifact_metadata(self) -> Dict[str, Dict[str, Any]]:
        """Metadados leves por artefato, para geradores de documentação."""
        return {
            name: {
                "type": f"{type(value).__module__}.{type(value).__qualname__}",
                "fingerprint": self.fingerprints.get(name),
                "producer": self.producers.get(name),
                "carried": name in self.carried_artifacts,
            }
            for name, value in self.committed_artifacts.items()
        }
