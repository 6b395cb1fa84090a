# src/datapack/__init__.py
"""
Datapack — builds versionados de pacotes de dados.

Um pacote de dados é produzido por uma sequência ordenada de scripts de
processamento. Cada script publica artefatos nomeados num Object Store
compartilhado; ao final do build, o conteúdo de cada artefato é
identificado por um fingerprint (SHA-256) e comparado com o digest do
último build aceito.

Princípios centrais:
    - Se o conteúdo de algum artefato mudou, a versão dos dados precisa
      aumentar (version gate)
    - Se nada mudou, o build é um no-op: a versão registrada permanece
    - Um build que falha nunca altera o estado aceito anteriormente

Arquitetura em alto nível:
    - core.config       → modelo, carga (PyYAML), merge, hash e versões
    - core.pipeline     → Object Store, Script Runner e tipos do build
    - core.digest       → fingerprints, digest e version gate
    - core.engine       → Build Orchestrator, lock e cancelamento
    - core.traceability → Build Manifest e Event Log
    - persistence       → valores dos artefatos aceitos (joblib)
    - project           → fachada sobre o layout convencional de projeto
"""

from ._version import __version__
from .core.config import BuildConfig, ScriptEntry, load_config, save_config
from .core.digest import DigestRecord, DigestStore
from .core.engine import BuildOptions, BuildOrchestrator, CancellationToken, build
from .core.exceptions import BuildError, DatapackError, RunError
from .core.pipeline import BuildResult, ObjectStore, ScriptRunner
from .project import DataPackageProject

__all__ = [
    "__version__",
    "BuildConfig",
    "ScriptEntry",
    "load_config",
    "save_config",
    "DigestRecord",
    "DigestStore",
    "BuildOptions",
    "BuildOrchestrator",
    "CancellationToken",
    "build",
    "BuildError",
    "DatapackError",
    "RunError",
    "BuildResult",
    "ObjectStore",
    "ScriptRunner",
    "DataPackageProject",
]
