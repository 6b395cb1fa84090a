# src/datapack/core/pipeline/__init__.py
"""
# Pipeline Core — Datapack

Este pacote define as estruturas que um build usa para executar scripts
de processamento e trocar artefatos entre eles.

## Componentes

- **objects**
  - `ObjectStore`: mapa nome → valor do build, com dono por artefato

- **runner**
  - `ScriptRunner`: executa um script no working root do build
  - `ScriptRuntime` (Protocol) / `PythonScriptRuntime`
  - `ProjectPaths`: caminhos do projeto expostos aos scripts

- **context**
  - `BuildContext`: identidade do build, log estruturado e warnings

- **types**
  - `ScriptStatus`, `ScriptResult`, `BuildResult`

## Invariantes

- Scripts se comunicam apenas via Object Store (ou arquivos no working root)
- Um artefato tem exatamente um script produtor por build
- A ordem de execução é a ordem declarada em `files`

## Limites Explícitos

- Não decide commit nem versão (responsabilidade do engine)
- Não persiste artefatos
"""

from .context import BuildContext
from .objects import ObjectStore
from .runner import (
    ProjectPaths,
    PythonScriptRuntime,
    ScriptRunner,
    ScriptRuntime,
    ScriptTimeoutError,
    UnsupportedScriptError,
)
from .types import BuildResult, ScriptResult, ScriptStatus

__all__ = [
    "BuildContext",
    "ObjectStore",
    "ProjectPaths",
    "PythonScriptRuntime",
    "ScriptRunner",
    "ScriptRuntime",
    "ScriptTimeoutError",
    "UnsupportedScriptError",
    "BuildResult",
    "ScriptResult",
    "ScriptStatus",
]
