# src/datapack/core/digest/store.py
"""
Digest Store — persistência do último estado aceito do build.

O digest registra, por artefato, o fingerprint do último commit aceito,
junto com a versão dos dados (`dataVersion`) e o script produtor de cada
artefato. Formato em disco (JSON determinístico):

    {
      "dataVersion": "0.1.0",
      "fingerprints": {"cars_over_20": "ab12..."},
      "producers": {"cars_over_20": "cars.py"}
    }

Decisões:
    - `load()` retorna um registro vazio quando o arquivo ainda não existe
    - `commit()` substitui o arquivo inteiro de forma atômica (temp → rename):
      nunca existe um digest misturando fingerprints antigos e novos
    - um arquivo existente porém ilegível é erro (nunca é "resetado")
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from datapack.core.exceptions import DigestCorruptedError, DigestPersistenceError
from datapack.core.io import atomic_write_text

DATA_VERSION_KEY = "dataVersion"
FINGERPRINTS_KEY = "fingerprints"
PRODUCERS_KEY = "producers"


@dataclass(frozen=True)
class DigestDiff:
    """Diferença entre o digest registrado e um novo mapa de fingerprints."""

    added: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)

    @property
    def changed_artifacts(self) -> List[str]:
        return sorted(self.added + self.changed + self.removed)

    @property
    def is_unchanged(self) -> bool:
        return not (self.added or self.changed or self.removed)


@dataclass(frozen=True)
class DigestRecord:
    """Fingerprints + versão dos dados do último commit aceito."""

    data_version: Optional[str] = None
    fingerprints: Dict[str, str] = field(default_factory=dict)
    producers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.data_version is None and not self.fingerprints

    def diff(self, fingerprints: Mapping[str, str]) -> DigestDiff:
        previous = self.fingerprints
        added, changed, unchanged = [], [], []
        for name in sorted(fingerprints):
            if name not in previous:
                added.append(name)
            elif previous[name] != fingerprints[name]:
                changed.append(name)
            else:
                unchanged.append(name)
        removed = sorted(n for n in previous if n not in fingerprints)
        return DigestDiff(added=added, changed=changed, removed=removed, unchanged=unchanged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            DATA_VERSION_KEY: self.data_version,
            FINGERPRINTS_KEY: dict(sorted(self.fingerprints.items())),
            PRODUCERS_KEY: dict(sorted(self.producers.items())),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DigestRecord":
        return cls(
            data_version=data.get(DATA_VERSION_KEY),
            fingerprints=dict(data.get(FINGERPRINTS_KEY) or {}),
            producers=dict(data.get(PRODUCERS_KEY) or {}),
        )


def _check_document(path: Path, data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise DigestCorruptedError(str(path), f"raiz deve ser objeto, recebido {type(data).__name__}")
    version = data.get(DATA_VERSION_KEY)
    if version is not None and not isinstance(version, str):
        raise DigestCorruptedError(str(path), f"`{DATA_VERSION_KEY}` deve ser string")
    for key in (FINGERPRINTS_KEY, PRODUCERS_KEY):
        mapping = data.get(key) or {}
        if not isinstance(mapping, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in mapping.items()
        ):
            raise DigestCorruptedError(str(path), f"`{key}` deve mapear nome → string")
    return data


class DigestStore:
    """Leitura e commit atômico do arquivo de digest."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> DigestRecord:
        if not self.path.exists():
            return DigestRecord()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise DigestCorruptedError(str(self.path), f"JSON inválido: {e}") from e
        except UnicodeDecodeError as e:
            raise DigestCorruptedError(str(self.path), f"conteúdo não é UTF-8: {e}") from e
        except OSError as e:
            raise DigestPersistenceError(str(self.path), e, stage="digest") from e
        return DigestRecord.from_dict(_check_document(self.path, data))

    def commit(self, record: DigestRecord) -> None:
        text = json.dumps(record.to_dict(), ensure_ascii=False, indent=2, sort_keys=True) + "\n"
        try:
            atomic_write_text(self.path, text)
        except OSError as e:
            raise DigestPersistenceError(str(self.path), e) from e
