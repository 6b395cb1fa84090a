# src/datapack/core/io.py
"""
Escrita atômica em disco.

Todo arquivo de estado do Datapack (configuração, digest, blobs de
artefatos, build manifest) é gravado com a disciplina temp → fsync →
rename: um crash no meio da escrita nunca deixa um arquivo parcial no
caminho final. `os.replace` é atômico no mesmo sistema de arquivos, por
isso o arquivo temporário é criado no mesmo diretório do destino.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Union


@contextmanager
def atomic_writer(path: Union[str, Path]) -> Iterator[BinaryIO]:
    """Abre um arquivo temporário ao lado de `path` e o publica em `path` ao sair sem erro."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def atomic_write_bytes(path: Union[str, Path], data: bytes) -> None:
    with atomic_writer(path) as f:
        f.write(data)


def atomic_write_text(path: Union[str, Path], text: str) -> None:
    atomic_write_bytes(path, text.encode("utf-8"))
