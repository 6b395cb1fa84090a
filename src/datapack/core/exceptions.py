"""
Datapack — Canonical Exceptions (v1)

Este módulo define as exceções tipadas do Datapack.

Objetivo:
- Permitir que Object Store, Script Runner e Orchestrator levantem
  exceções semânticas com contexto estruturado (script, artefatos, versões)
- Mapear cada exceção de forma determinística para `ErrorPayload`
- Evitar ValueError/RuntimeError genéricos nos guardrails do build

Regras:
- Toda exceção carrega `details` serializável e uma `hint` acionável
- Nenhuma exceção é capturada e descartada silenciosamente pelo core
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .errors import (
    ARTIFACT_ACCESS_DISABLED,
    ARTIFACT_DUPLICATE,
    ARTIFACT_MISSING,
    ARTIFACT_NOT_FOUND,
    ARTIFACT_UNDECLARED,
    BUILD_CANCELLED,
    BUILD_FAILED,
    BUILD_IN_PROGRESS,
    DIGEST_CORRUPTED,
    DIGEST_PERSISTENCE,
    SCRIPT_FAILED,
    VERSION_GATE,
    ErrorPayload,
)


class DatapackError(Exception):
    """Base de todas as exceções do Datapack.

    - `message`: mensagem curta e humana
    - `details`: dados estruturados (sempre serializáveis)
    - `hint`: onde/como corrigir
    """

    code: str = BUILD_FAILED
    default_hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.hint = hint if hint is not None else self.default_hint

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(
            type=self.code,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Object Store
# ---------------------------------------------------------------------------

class ObjectStoreError(DatapackError):
    """Uso indevido do Object Store (indica bug no script)."""


class DuplicateArtifactError(ObjectStoreError):
    """Um script tentou sobrescrever um artefato produzido por outro script."""

    code = ARTIFACT_DUPLICATE
    default_hint = "Cada artefato deve ser produzido por um único script. Renomeie o objeto ou remova a escrita duplicada."

    def __init__(self, name: str, *, owner: Optional[str], writer: Optional[str]) -> None:
        super().__init__(
            f"Artefato '{name}' já foi escrito neste build por '{owner}'",
            details={"artifact": name, "owner": owner, "writer": writer},
        )
        self.name = name
        self.owner = owner
        self.writer = writer


class ArtifactNotFoundError(ObjectStoreError):
    """Leitura de um artefato que ainda não foi escrito neste build."""

    code = ARTIFACT_NOT_FOUND
    default_hint = "Declare o script produtor antes do script consumidor na lista `files` da configuração."

    def __init__(self, name: str, *, reader: Optional[str]) -> None:
        super().__init__(
            f"Artefato '{name}' ainda não foi escrito neste build",
            details={"artifact": name, "reader": reader},
        )
        self.name = name
        self.reader = reader


class AccessDisabledError(ObjectStoreError):
    """Leitura cruzada entre scripts desabilitada para este build."""

    code = ARTIFACT_ACCESS_DISABLED
    default_hint = "O build está em modo isolado: cada script deve ser autocontido. Habilite `cross_script_access` se a dependência for intencional."

    def __init__(self, name: str, *, reader: Optional[str]) -> None:
        super().__init__(
            f"Leitura de '{name}' bloqueada: acesso entre scripts desabilitado",
            details={"artifact": name, "reader": reader},
        )
        self.name = name
        self.reader = reader


class UndeclaredArtifactError(ObjectStoreError):
    """Escrita de um nome ausente de `objects` na configuração."""

    code = ARTIFACT_UNDECLARED
    default_hint = "Adicione o nome do artefato à lista `objects` da configuração."

    def __init__(self, name: str, *, writer: Optional[str], expected: Iterable[str]) -> None:
        expected_list = list(expected)
        super().__init__(
            f"Artefato '{name}' não está declarado na configuração",
            details={"artifact": name, "writer": writer, "expected": expected_list},
        )
        self.name = name
        self.writer = writer


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

class RunError(DatapackError):
    """Falha de um script de processamento (exceção, assert ou timeout)."""

    code = SCRIPT_FAILED
    default_hint = "Corrija o script indicado e reexecute o build. Nenhum commit anterior foi alterado."

    def __init__(self, script_path: str, cause: BaseException) -> None:
        super().__init__(
            f"Script '{script_path}' falhou: {cause.__class__.__name__}: {cause}",
            details={
                "script_path": script_path,
                "exc_type": cause.__class__.__name__,
                "exc_message": str(cause),
            },
        )
        self.script_path = script_path
        self.cause = cause


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------

class BuildError(DatapackError):
    """Falha fatal de um build. `stage` indica em que fase o build parou."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        merged = {"stage": stage}
        merged.update(details or {})
        if isinstance(cause, DatapackError):
            merged.setdefault("cause", cause.to_payload().to_dict())
            if hint is None:
                hint = cause.hint
        super().__init__(message, details=merged, hint=hint)
        self.stage = stage
        self.cause = cause


class MissingArtifactError(BuildError):
    """Artefatos declarados que nenhum script produziu."""

    code = ARTIFACT_MISSING
    default_hint = "Garanta que algum script habilitado escreva cada nome listado em `objects`, ou remova o nome da configuração."

    def __init__(self, names: Iterable[str]) -> None:
        missing = sorted(names)
        super().__init__(
            f"Artefatos declarados não foram produzidos: {', '.join(missing)}",
            stage="harvest",
            details={"missing": missing},
        )
        self.names: List[str] = missing


class VersionGateError(BuildError):
    """Conteúdo de artefatos mudou sem incremento da versão dos dados."""

    code = VERSION_GATE

    def __init__(
        self,
        changed: Iterable[str],
        *,
        recorded_version: Optional[str],
        requested_version: str,
    ) -> None:
        changed_list = sorted(changed)
        super().__init__(
            "Artefatos alterados sem incremento de versão: "
            f"{', '.join(changed_list)} (versão registrada {recorded_version}, "
            f"versão solicitada {requested_version})",
            stage="version_gate",
            details={
                "changed_artifacts": changed_list,
                "recorded_version": recorded_version,
                "requested_version": requested_version,
            },
            hint=(
                f"Incremente a versão dos dados para um valor maior que {recorded_version} "
                "antes de reexecutar o build."
            ),
        )
        self.changed_artifacts = changed_list
        self.recorded_version = recorded_version
        self.requested_version = requested_version


class BuildInProgressError(BuildError):
    """Outro build detém o lock do working root / digest."""

    code = BUILD_IN_PROGRESS
    default_hint = "Aguarde o término do build em andamento; builds concorrentes no mesmo projeto não são permitidos."

    def __init__(self, lock_path: str) -> None:
        super().__init__(
            f"Build em andamento: lock ocupado em {lock_path}",
            stage="lock",
            details={"lock_path": lock_path},
        )
        self.lock_path = lock_path


class BuildCancelledError(BuildError):
    """Build cancelado entre a execução de dois scripts."""

    code = BUILD_CANCELLED
    default_hint = "O build foi cancelado pelo chamador; nenhum commit foi realizado."

    def __init__(self, next_script: Optional[str]) -> None:
        super().__init__(
            "Build cancelado antes da execução do próximo script",
            stage="execution",
            details={"next_script": next_script},
        )
        self.next_script = next_script


class DigestPersistenceError(BuildError):
    """Falha de I/O ao ler ou persistir o digest ou os artefatos."""

    code = DIGEST_PERSISTENCE
    default_hint = "Verifique permissões e espaço em disco. O digest anterior permanece intacto."

    def __init__(self, path: str, cause: BaseException, *, stage: str = "commit") -> None:
        super().__init__(
            f"Falha de I/O em {path}: {cause}",
            stage=stage,
            cause=cause,
            details={"path": path, "exc_type": cause.__class__.__name__},
        )
        self.path = path


class DigestCorruptedError(BuildError):
    """O arquivo de digest existe mas não pode ser interpretado."""

    code = DIGEST_CORRUPTED
    default_hint = "Restaure o arquivo de digest a partir do controle de versão; ele não é regenerado automaticamente."

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Digest inválido em {path}: {reason}",
            stage="digest",
            details={"path": path, "reason": reason},
        )
        self.path = path
