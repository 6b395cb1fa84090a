"""Persistência dos valores de artefatos aceitos (content-addressed).

O digest guarda apenas fingerprints. Para que um script desabilitado possa
ser pulado, o valor do artefato que ele produziu no último commit precisa
continuar disponível: esta Store guarda esses valores em joblib, endereçados
pelo fingerprint.

Layout (relativo a `root`):

    ab/cdef0123....joblib     # fingerprint "abcdef0123..."

Decisões:
- Formato: joblib
- `put` é idempotente: um blob existente com o mesmo fingerprint não é reescrito
- Escrita atômica (temp → rename): um blob parcial nunca fica visível
- `prune` remove apenas blobs não referenciados pelo digest em vigor

Protocolo de commit (executado pelo Orchestrator):
    1. `put` de todos os artefatos do build
    2. commit atômico do digest
    3. `prune` dos blobs que o novo digest não referencia
Um crash em qualquer ponto deixa o digest apontando para blobs existentes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Union

import joblib

from datapack.core.digest.store import DigestRecord
from datapack.core.io import atomic_writer

BLOB_SUFFIX = ".joblib"


class ArtifactStore:
    """Store de valores de artefatos, endereçada por fingerprint."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def blob_path(self, fp: str) -> Path:
        if len(fp) < 3 or not all(c in "0123456789abcdef" for c in fp):
            raise ValueError(f"Fingerprint inválido: {fp!r}")
        return self.root / fp[:2] / f"{fp[2:]}{BLOB_SUFFIX}"

    def _iter_blobs(self) -> Iterator[Path]:
        if not self.root.exists():
            return
        for shard in sorted(p for p in self.root.iterdir() if p.is_dir()):
            yield from sorted(shard.glob(f"*{BLOB_SUFFIX}"))

    def fingerprints(self) -> List[str]:
        return [p.parent.name + p.name[: -len(BLOB_SUFFIX)] for p in self._iter_blobs()]

    # ------------------------------------------------------------------
    # Persist / Load
    # ------------------------------------------------------------------
    def has(self, fp: str) -> bool:
        return self.blob_path(fp).exists()

    def put(self, fp: str, value: Any) -> bool:
        """Persiste `value` sob `fp`. Retorna False se o blob já existia."""
        path = self.blob_path(fp)
        if path.exists():
            return False
        with atomic_writer(path) as f:
            joblib.dump(value, f)
        return True

    def put_many(self, values: Mapping[str, Any], fingerprints: Mapping[str, str]) -> List[str]:
        """Persiste cada artefato de `values`; retorna os nomes efetivamente escritos."""
        written = []
        for name, value in values.items():
            if self.put(fingerprints[name], value):
                written.append(name)
        return written

    def get(self, fp: str) -> Any:
        path = self.blob_path(fp)
        if not path.exists():
            raise FileNotFoundError(str(path))
        return joblib.load(path)

    def load_committed(self, record: DigestRecord, names: Iterable[str] = ()) -> Dict[str, Any]:
        """Carrega nome → valor do digest `record` (todos os nomes, ou só `names`)."""
        wanted = list(names) or sorted(record.fingerprints)
        return {name: self.get(record.fingerprints[name]) for name in wanted}

    # ------------------------------------------------------------------
    # Garbage collection
    # ------------------------------------------------------------------
    def prune(self, keep: Iterable[str]) -> List[str]:
        """Remove blobs cujo fingerprint não está em `keep`. Retorna os removidos."""
        keep_set = set(keep)
        removed = []
        for path in list(self._iter_blobs()):
            fp = path.parent.name + path.name[: -len(BLOB_SUFFIX)]
            if fp in keep_set:
                continue
            path.unlink()
            removed.append(fp)
            if not any(path.parent.iterdir()):
                path.parent.rmdir()
        return removed


__all__ = ["ArtifactStore", "BLOB_SUFFIX"]
