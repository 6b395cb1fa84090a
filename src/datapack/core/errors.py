"""
Datapack — Canonical Error Structures (v1)

Este módulo define o payload canônico de erro do Datapack. Erros são parte
do contrato operacional do build e devem ser:

- explícitos
- serializáveis
- acionáveis (sempre com uma dica de correção)

Nenhuma falha é silenciada e nenhum retry é feito automaticamente.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do Datapack.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta e objetiva
    - details: dados estruturados para diagnóstico (script, artefatos, versões)
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Configuração
CONFIG_INVALID = "CONFIG_INVALID"

# Object Store
ARTIFACT_DUPLICATE = "ARTIFACT_DUPLICATE"
ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"
ARTIFACT_ACCESS_DISABLED = "ARTIFACT_ACCESS_DISABLED"
ARTIFACT_UNDECLARED = "ARTIFACT_UNDECLARED"
ARTIFACT_MISSING = "ARTIFACT_MISSING"

# Execução de scripts
SCRIPT_FAILED = "SCRIPT_FAILED"

# Build / gate / persistência
BUILD_FAILED = "BUILD_FAILED"
BUILD_IN_PROGRESS = "BUILD_IN_PROGRESS"
BUILD_CANCELLED = "BUILD_CANCELLED"
VERSION_GATE = "VERSION_GATE"
DIGEST_PERSISTENCE = "DIGEST_PERSISTENCE"
DIGEST_CORRUPTED = "DIGEST_CORRUPTED"
