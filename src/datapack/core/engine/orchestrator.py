# src/datapack/core/engine/orchestrator.py
"""
Build Orchestrator do Datapack.

Fluxo de um build:
    1. resolve a versão solicitada (opções → configuração)
    2. adquire o lock do digest e do working root
    3. carrega o digest do último commit aceito
    4. executa os scripts habilitados, em ordem, no working root
       (fail-fast: a primeira falha interrompe o build)
    5. leva adiante os artefatos de scripts desabilitados
    6. coleta os artefatos esperados e calcula fingerprints
    7. aplica o version gate
    8. commit: blobs de artefatos → digest (atômico) → limpeza de blobs

Invariantes:
    - Um build que falha em qualquer etapa não altera o digest
    - Sem mudança de conteúdo, o commit é um no-op e a versão registrada
      permanece em vigor
    - Conteúdo alterado exige versão estritamente maior que a registrada

Rastreabilidade:
    - Todo evento relevante vai para o `BuildContext` e para o Build Manifest
    - O Manifest é salvo ao final de toda tentativa de build (sucesso ou falha)
      quando `manifest_path` está configurado
    - O Manifest é informativo: uma falha ao salvá-lo vira warning num build
      aceito e `details["manifest_error"]` no erro de um build com falha
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from datapack._version import __version__
from datapack.core.config.errors import MissingDataVersionError
from datapack.core.config.hashing import compute_config_hash
from datapack.core.config.model import BuildConfig
from datapack.core.config.version import compare_data_versions, parse_data_version
from datapack.core.digest.fingerprint import fingerprint_artifact
from datapack.core.digest.gate import GateDecision, evaluate_version_gate
from datapack.core.digest.store import DigestRecord, DigestStore
from datapack.core.exceptions import (
    BuildCancelledError,
    BuildError,
    DatapackError,
    DigestPersistenceError,
    MissingArtifactError,
)
from datapack.core.pipeline.context import BuildContext
from datapack.core.pipeline.objects import ObjectStore
from datapack.core.pipeline.runner import ProjectPaths, ScriptRunner, ScriptRuntime
from datapack.core.pipeline.types import BuildResult, ScriptResult, ScriptStatus
from datapack.core.traceability.manifest import (
    BuildManifest,
    add_event,
    build_failed,
    build_finished,
    create_manifest,
    save_manifest,
    script_failed,
    script_finished,
    script_skipped,
    script_started,
)
from datapack.persistence.artifact_store import ArtifactStore

from .cancellation import CancellationToken
from .lock import LOCK_FILE_NAME, BuildLock, lock_path_for

DEFAULT_OBJECTS_DIRNAME = "objects"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BuildOptions:
    """
    Opções de um build.

    - project_dir: diretório do projeto (`{project}` e caminhos relativos)
    - data_version: versão solicitada (sobrepõe `dataVersion` da configuração)
    - scripts_dir: base dos caminhos em `files` (padrão: project_dir)
    - artifact_store: store dos valores aceitos (padrão: `objects/` ao lado do digest)
    - cross_script_access: False ativa o modo isolado (toda leitura falha)
    - script_timeout: timeout por script, em segundos
    - cancel_token: cancelamento cooperativo entre scripts
    - manifest_path: onde salvar o Build Manifest (None: não salva)
    - project: caminhos injetados nos scripts como `project`
    - runtimes: extensão → ScriptRuntime (padrão: apenas `.py`)
    """

    project_dir: Path = field(default_factory=Path.cwd)
    data_version: Optional[str] = None
    scripts_dir: Optional[Path] = None
    artifact_store: Optional[ArtifactStore] = None
    cross_script_access: bool = True
    script_timeout: Optional[float] = None
    cancel_token: Optional[CancellationToken] = None
    manifest_path: Optional[Path] = None
    project: Optional[ProjectPaths] = None
    runtimes: Optional[Mapping[str, ScriptRuntime]] = None


class BuildOrchestrator:
    """Executa um build completo para uma configuração e um digest."""

    def __init__(
        self,
        config: BuildConfig,
        digest_store: DigestStore,
        options: Optional[BuildOptions] = None,
    ):
        self.config = config
        self.digest_store = digest_store
        self.options = options or BuildOptions()
        self.project_dir = Path(self.options.project_dir).resolve()
        self.artifact_store = self.options.artifact_store or ArtifactStore(
            self.digest_store.path.parent / DEFAULT_OBJECTS_DIRNAME
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def requested_version(self) -> str:
        version = self.options.data_version or self.config.data_version
        if version is None:
            raise MissingDataVersionError(
                "Nenhuma versão dos dados informada",
                hint="Informe `data_version` ao iniciar o build ou declare `dataVersion` na configuração.",
            )
        parse_data_version(version)
        return version

    def _runner(self) -> ScriptRunner:
        scripts_dir = Path(self.options.scripts_dir or self.project_dir)
        kwargs: Dict[str, Any] = {}
        if self.options.runtimes is not None:
            kwargs["runtimes"] = dict(self.options.runtimes)
        return ScriptRunner(
            scripts_dir=scripts_dir,
            project=self.options.project,
            timeout=self.options.script_timeout,
            **kwargs,
        )

    def _cancelled(self) -> bool:
        token = self.options.cancel_token
        return token is not None and token.cancelled

    def _save_manifest(self, manifest: BuildManifest) -> Optional[str]:
        """Salva o Manifest; retorna a descrição da falha de I/O, se houver."""
        if self.options.manifest_path is None:
            return None
        try:
            save_manifest(manifest, Path(self.options.manifest_path))
        except OSError as e:
            return f"Build Manifest não foi salvo em {self.options.manifest_path}: {e}"
        return None

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def run(self) -> BuildResult:
        requested = self.requested_version()
        working_root = self.config.resolve_working_root(self.project_dir)

        ctx = BuildContext(
            build_id=uuid.uuid4().hex,
            created_at=_now(),
            config=self.config,
            project_dir=self.project_dir,
            working_root=working_root,
        )
        manifest = create_manifest(
            build_id=ctx.build_id,
            started_at=ctx.created_at,
            datapack_version=__version__,
            config_hash=compute_config_hash(self.config),
            requested_version=requested,
        )
        add_event(
            manifest,
            event_type="build_started",
            ts=ctx.created_at,
            payload={"working_root": str(working_root), "scripts": self.config.list_scripts()},
        )
        ctx.log(level="info", message="build started", requested_version=requested)

        lock = BuildLock(lock_path_for(self.digest_store.path), working_root / LOCK_FILE_NAME)
        try:
            with lock:
                result = self._build(ctx, manifest, requested)
        except DatapackError as e:
            payload = e.to_payload().to_dict()
            ctx.log(level="error", message="build failed", error=payload)
            build_failed(manifest, ts=_now(), error=payload)
            problem = self._save_manifest(manifest)
            if problem:
                ctx.log(level="warning", message=problem)
                e.details["manifest_error"] = problem
            raise

        build_finished(
            manifest,
            ts=_now(),
            outcome={
                "data_version": result.data_version,
                "version_changed": result.version_changed,
                "changed_artifacts": list(result.changed_artifacts),
                "carried_artifacts": list(result.carried_artifacts),
            },
        )
        problem = self._save_manifest(manifest)
        if problem:
            ctx.add_warning(message=problem)
            result = replace(result, events=list(ctx.events))
        return result

    def _build(self, ctx: BuildContext, manifest: BuildManifest, requested: str) -> BuildResult:
        previous = self.digest_store.load()
        objects = ObjectStore(
            expected=self.config.expected_artifacts,
            cross_script_access=self.options.cross_script_access,
        )

        scripts = self._execute_scripts(ctx, manifest, objects)
        carried, carried_fps = self._carry_forward(ctx, manifest, previous, objects)
        artifacts = objects.harvest(carried)

        fingerprints, producers = self._fingerprint(objects, artifacts, carried_fps, previous)
        decision = self._gate(ctx, manifest, previous, fingerprints, requested)

        if decision.commit:
            self._commit(ctx, manifest, artifacts, fingerprints, producers, decision)
        else:
            self._ensure_blobs(artifacts, fingerprints)
            producers = dict(previous.producers)

        ctx.log(
            level="info",
            message="build finished",
            data_version=decision.data_version,
            version_changed=decision.version_changed,
        )
        return BuildResult(
            committed_artifacts=artifacts,
            fingerprints=fingerprints,
            data_version=decision.data_version,
            version_changed=decision.version_changed,
            skipped_scripts=[e.path for e in self.config.disabled_scripts()],
            changed_artifacts=decision.diff.changed_artifacts,
            carried_artifacts=sorted(carried),
            producers=producers,
            scripts=scripts,
            events=list(ctx.events),
        )

    def _execute_scripts(
        self,
        ctx: BuildContext,
        manifest: BuildManifest,
        objects: ObjectStore,
    ) -> Dict[str, ScriptResult]:
        runner = self._runner()
        working_root = ctx.working_root
        working_root.mkdir(parents=True, exist_ok=True)

        results: Dict[str, ScriptResult] = {}
        for entry in self.config.scripts:
            if not entry.enabled:
                script_skipped(manifest, script=entry.path, ts=_now())
                ctx.log(level="info", message="script skipped", script=entry.path)
                results[entry.path] = ScriptResult(
                    script_path=entry.path,
                    status=ScriptStatus.SKIPPED,
                    summary="desabilitado na configuração",
                )
                continue

            if self._cancelled():
                raise BuildCancelledError(entry.path)

            script_started(manifest, script=entry.path, ts=_now())
            result = runner.run(entry, working_root, objects, ctx=ctx)
            results[entry.path] = result

            if not result.ok:
                script_failed(manifest, script=entry.path, ts=_now(), error=result.error or {})
                raise BuildError(
                    f"Build interrompido: {result.summary}",
                    stage="execution",
                    cause=result.exception,
                    details={"script_path": entry.path},
                )
            script_finished(manifest, script=entry.path, ts=_now(), result=result.to_dict())

        return results

    def _carry_forward(
        self,
        ctx: BuildContext,
        manifest: BuildManifest,
        previous: DigestRecord,
        objects: ObjectStore,
    ) -> Tuple[Dict[str, Any], Dict[str, str]]:
        """Artefatos não escritos cujo produtor anterior está desabilitado."""
        disabled = {e.path for e in self.config.disabled_scripts()}
        names = [
            name
            for name in self.config.expected_artifacts
            if not objects.has(name)
            and name in previous.fingerprints
            and previous.producers.get(name) in disabled
        ]
        if not names:
            return {}, {}

        fps = {name: previous.fingerprints[name] for name in names}
        try:
            values = self.artifact_store.load_committed(previous, names)
        except FileNotFoundError as e:
            missing = [n for n in names if not self.artifact_store.has(fps[n])]
            raise MissingArtifactError(missing or names) from e

        payload = {name: previous.producers[name] for name in names}
        add_event(manifest, event_type="artifacts_carried", ts=_now(), payload={"artifacts": payload})
        ctx.log(level="info", message="artifacts carried", artifacts=sorted(names))
        return values, fps

    def _fingerprint(
        self,
        objects: ObjectStore,
        artifacts: Mapping[str, Any],
        carried_fps: Mapping[str, str],
        previous: DigestRecord,
    ) -> Tuple[Dict[str, str], Dict[str, str]]:
        fingerprints: Dict[str, str] = {}
        producers: Dict[str, str] = {}
        for name, value in artifacts.items():
            if name in carried_fps:
                fingerprints[name] = carried_fps[name]
                producers[name] = previous.producers[name]
                continue
            try:
                fingerprints[name] = fingerprint_artifact(value)
            except Exception as e:
                raise BuildError(
                    f"Não foi possível calcular o fingerprint de '{name}': {e}",
                    stage="fingerprint",
                    cause=e,
                    details={"artifact": name, "type": type(value).__name__},
                    hint="Artefatos precisam ser serializáveis (DataFrame, ndarray, JSON ou pickle).",
                ) from e
            producers[name] = objects.owner(name) or ""
        return fingerprints, producers

    def _gate(
        self,
        ctx: BuildContext,
        manifest: BuildManifest,
        previous: DigestRecord,
        fingerprints: Mapping[str, str],
        requested: str,
    ) -> GateDecision:
        diff = previous.diff(fingerprints)
        event_payload: Dict[str, Any] = {
            "changed_artifacts": diff.changed_artifacts,
            "recorded_version": previous.data_version,
            "requested_version": requested,
        }
        try:
            decision = evaluate_version_gate(previous, fingerprints, requested)
        except DatapackError:
            add_event(manifest, event_type="version_gate", ts=_now(), payload={**event_payload, "accepted": False})
            raise

        add_event(
            manifest,
            event_type="version_gate",
            ts=_now(),
            payload={**event_payload, "accepted": True, "commit": decision.commit},
        )
        if (
            not decision.commit
            and previous.data_version is not None
            and compare_data_versions(requested, previous.data_version) < 0
        ):
            ctx.add_warning(
                message=(
                    f"Versão solicitada {requested} é menor que a registrada "
                    f"{previous.data_version}; nenhum artefato mudou e a versão registrada foi mantida"
                )
            )
        return decision

    def _commit(
        self,
        ctx: BuildContext,
        manifest: BuildManifest,
        artifacts: Mapping[str, Any],
        fingerprints: Dict[str, str],
        producers: Dict[str, str],
        decision: GateDecision,
    ) -> None:
        try:
            self.artifact_store.put_many(artifacts, fingerprints)
        except OSError as e:
            raise DigestPersistenceError(str(self.artifact_store.root), e) from e

        record = DigestRecord(
            data_version=decision.data_version,
            fingerprints=dict(fingerprints),
            producers=dict(producers),
        )
        self.digest_store.commit(record)
        add_event(
            manifest,
            event_type="digest_committed",
            ts=_now(),
            payload={"data_version": decision.data_version, "changed_artifacts": decision.diff.changed_artifacts},
        )
        ctx.log(level="info", message="digest committed", data_version=decision.data_version)

        try:
            removed = self.artifact_store.prune(record.fingerprints.values())
        except OSError as e:
            ctx.add_warning(message=f"Limpeza de blobs obsoletos falhou: {e}")
            return
        if removed:
            ctx.log(level="info", message="stale blobs pruned", removed=removed)

    def _ensure_blobs(self, artifacts: Mapping[str, Any], fingerprints: Mapping[str, str]) -> None:
        try:
            self.artifact_store.put_many(artifacts, fingerprints)
        except OSError as e:
            raise DigestPersistenceError(str(self.artifact_store.root), e) from e


def build(
    config: BuildConfig,
    digest_store: DigestStore,
    options: Optional[BuildOptions] = None,
) -> BuildResult:
    """Atalho funcional para `BuildOrchestrator(config, digest_store, options).run()`."""
    return BuildOrchestrator(config, digest_store, options).run()
