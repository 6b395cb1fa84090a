# src/datapack/core/pipeline/runner.py
"""
Script Runner — execução de um script de processamento.

O Runner executa um único script com:
    - o diretório de trabalho fixado no working root do build (o mesmo para
      todos os scripts, permitindo troca de arquivos entre eles)
    - o Object Store injetado como global `objects`
    - os caminhos do projeto injetados como global `project`

A interpretação do script é delegada a um `ScriptRuntime`, escolhido pela
extensão do arquivo. O runtime padrão executa arquivos `.py` via `runpy`;
outros formatos entram registrando um runtime para a extensão. O
Orchestrator nunca vê essa distinção.

Qualquer exceção do script (inclusive `assert` e `sys.exit`) ou um timeout
produz um ScriptResult FAILED carregando um `RunError`. O Runner não valida
quais artefatos o script escreveu: isso é feito na coleta final.
"""

from __future__ import annotations

import os
import runpy
import signal
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol, Union, runtime_checkable

from datapack.core.config.model import ScriptEntry
from datapack.core.exceptions import RunError

from .context import BuildContext
from .objects import ObjectStore
from .types import ScriptResult, ScriptStatus


class ScriptTimeoutError(TimeoutError):
    """O script excedeu o timeout configurado."""


class UnsupportedScriptError(ValueError):
    """Nenhum runtime registrado para a extensão do script."""


@runtime_checkable
class ScriptRuntime(Protocol):
    """Executa um script com o namespace global fornecido."""

    def execute(self, script: Path, namespace: Dict[str, Any]) -> None:
        ...


class PythonScriptRuntime:
    """Executa scripts `.py` no processo corrente."""

    run_name = "__datapack__"

    def execute(self, script: Path, namespace: Dict[str, Any]) -> None:
        runpy.run_path(str(script), init_globals=namespace, run_name=self.run_name)


@dataclass(frozen=True)
class ProjectPaths:
    """Caminhos do projeto expostos aos scripts como global `project`."""

    root: Path
    raw_dir: Path
    data_dir: Path
    extdata_dir: Path

    def path(self, *parts: Union[str, Path]) -> Path:
        return self.root.joinpath(*parts)

    def raw_path(self, *parts: Union[str, Path]) -> Path:
        return self.raw_dir.joinpath(*parts)

    def extdata_path(self, *parts: Union[str, Path]) -> Path:
        return self.extdata_dir.joinpath(*parts)

    @classmethod
    def for_project(cls, root: Union[str, Path]) -> "ProjectPaths":
        root = Path(root).resolve()
        return cls(
            root=root,
            raw_dir=root / "data-raw",
            data_dir=root / "data",
            extdata_dir=root / "extdata",
        )


@contextmanager
def _working_directory(path: Path) -> Iterator[None]:
    previous = os.getcwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(previous)


@contextmanager
def _deadline(seconds: Optional[float], script_path: str) -> Iterator[None]:
    if not seconds:
        yield
        return

    if not hasattr(signal, "SIGALRM") or threading.current_thread() is not threading.main_thread():
        raise RuntimeError("timeout por script requer SIGALRM e execução na thread principal")

    def _on_alarm(signum: int, frame: Any) -> None:
        raise ScriptTimeoutError(f"Script '{script_path}' excedeu o timeout de {seconds}s")

    previous = signal.signal(signal.SIGALRM, _on_alarm)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def _default_runtimes() -> Dict[str, ScriptRuntime]:
    return {".py": PythonScriptRuntime()}


@dataclass
class ScriptRunner:
    """
    Executa scripts de um build.

    Args:
        scripts_dir: diretório base dos caminhos declarados em `files`.
        project: caminhos injetados nos scripts como `project`.
        timeout: timeout opcional por script, em segundos.
        runtimes: extensão → ScriptRuntime.
    """

    scripts_dir: Path
    project: Optional[ProjectPaths] = None
    timeout: Optional[float] = None
    runtimes: Mapping[str, ScriptRuntime] = field(default_factory=_default_runtimes)

    def resolve(self, entry: ScriptEntry) -> Path:
        script = Path(entry.path)
        if not script.is_absolute():
            script = Path(self.scripts_dir) / script
        if not script.is_file():
            raise FileNotFoundError(f"Script não encontrado: {script}")
        return script.resolve()

    def runtime_for(self, script: Path) -> ScriptRuntime:
        runtime = self.runtimes.get(script.suffix.lower())
        if runtime is None:
            raise UnsupportedScriptError(
                f"Nenhum runtime registrado para '{script.suffix}' ({script.name})"
            )
        return runtime

    def run(
        self,
        entry: ScriptEntry,
        working_root: Path,
        objects: ObjectStore,
        *,
        ctx: Optional[BuildContext] = None,
    ) -> ScriptResult:
        started = time.monotonic()
        if ctx is not None:
            ctx.log(level="info", message="script started", script=entry.path)

        try:
            script = self.resolve(entry)
            runtime = self.runtime_for(script)
            namespace: Dict[str, Any] = {"objects": objects, "project": self.project}
            with objects.scope(entry.path), _working_directory(working_root), _deadline(self.timeout, entry.path):
                runtime.execute(script, namespace)
        except (Exception, SystemExit) as e:
            error = RunError(entry.path, e)
            duration_ms = int((time.monotonic() - started) * 1000)
            if ctx is not None:
                ctx.log(
                    level="error",
                    message="script failed",
                    script=entry.path,
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    duration_ms=duration_ms,
                )
            return ScriptResult(
                script_path=entry.path,
                status=ScriptStatus.FAILED,
                summary=error.message,
                duration_ms=duration_ms,
                written=objects.written_by(entry.path),
                error=error.to_payload().to_dict(),
                exception=error,
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        written = objects.written_by(entry.path)
        if ctx is not None:
            ctx.log(
                level="info",
                message="script finished",
                script=entry.path,
                written=written,
                duration_ms=duration_ms,
            )
        return ScriptResult(
            script_path=entry.path,
            status=ScriptStatus.SUCCESS,
            summary=f"{len(written)} artefato(s) escrito(s)",
            duration_ms=duration_ms,
            written=written,
        )
