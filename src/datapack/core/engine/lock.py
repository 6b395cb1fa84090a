# src/datapack/core/engine/lock.py
"""
Exclusão mútua entre builds.

Dois builds concorrentes sobre o mesmo digest ou o mesmo working root
poderiam intercalar escritas de arquivos e commits. O `BuildLock` adquire,
sem espera, um lock de arquivo (portalocker) para cada caminho protegido;
se algum já estiver ocupado, o build falha com `BuildInProgressError`
antes de executar qualquer script.

Os arquivos de lock permanecem em disco após a liberação: apenas o lock
do sistema operacional indica posse.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Union

import portalocker

from datapack.core.exceptions import BuildInProgressError

LOCK_FILE_NAME = ".datapack.lock"


def lock_path_for(path: Union[str, Path]) -> Path:
    """Caminho do lock associado a um arquivo (`digest.json` → `digest.json.lock`)."""
    p = Path(path)
    return p.with_name(p.name + ".lock")


class BuildLock:
    """Conjunto de locks de arquivo adquiridos juntos, em ordem estável."""

    def __init__(self, *paths: Union[str, Path]):
        unique = {Path(p).resolve() for p in paths}
        self.paths: List[Path] = sorted(unique)
        self._held: List[portalocker.Lock] = []

    @property
    def locked(self) -> bool:
        return bool(self._held)

    def acquire(self) -> "BuildLock":
        for path in self.paths:
            path.parent.mkdir(parents=True, exist_ok=True)
            lock = portalocker.Lock(str(path), mode="a", timeout=0, fail_when_locked=True)
            try:
                lock.acquire()
            except portalocker.LockException as e:
                self.release()
                raise BuildInProgressError(str(path)) from e
            self._held.append(lock)
        return self

    def release(self) -> None:
        while self._held:
            self._held.pop().release()

    def __enter__(self) -> "BuildLock":
        return self.acquire()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
