# src/datapack/core/engine/__init__.py
"""
Engine do Datapack.

O Engine coordena um build de ponta a ponta: execução ordenada dos
scripts, coleta dos artefatos, version gate e commit do digest.

Componentes principais:
    - orchestrator → BuildOrchestrator, BuildOptions e `build()`
    - lock         → exclusão mútua entre builds (portalocker)
    - cancellation → cancelamento cooperativo entre scripts

Invariantes:
    - Scripts executam na ordem declarada, um por vez
    - Um build que falha nunca altera o digest
    - Builds concorrentes no mesmo digest ou working root são rejeitados

Limites explícitos:
    - Não interpreta scripts (delegado ao Script Runner)
    - Não define o formato do digest (delegado ao Digest Store)
"""

from .cancellation import CancellationToken
from .lock import BuildLock
from .orchestrator import BuildOptions, BuildOrchestrator, build

__all__ = [
    "BuildLock",
    "BuildOptions",
    "BuildOrchestrator",
    "CancellationToken",
    "build",
]
