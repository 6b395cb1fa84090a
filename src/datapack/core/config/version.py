# src/datapack/core/config/version.py
"""
Versão dos dados (DataVersion).

A versão dos dados é uma string de componentes inteiros não negativos
separados por ponto (`0.1.0`, `1.2`, `1.0.0.9000`). A comparação é
numérica por componente, completando com zeros à direita (`1.0 == 1.0.0`).

A versão é o identificador que consumidores fixam: se a string não muda,
os bytes dos artefatos também não mudam (garantido pelo version gate).
"""

from __future__ import annotations

import re
from typing import Tuple

from .errors import InvalidDataVersionError

_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")

_PARTS = ("major", "minor", "patch")


def parse_data_version(value: str) -> Tuple[int, ...]:
    """Converte `"0.1.0"` em `(0, 1, 0)`; formato inválido → InvalidDataVersionError."""
    if not isinstance(value, str) or not _VERSION_RE.match(value.strip()):
        raise InvalidDataVersionError(
            f"Versão dos dados inválida: {value!r} (esperado N.N.N)",
            details={"version": value},
        )
    return tuple(int(p) for p in value.strip().split("."))


def _padded(a: Tuple[int, ...], b: Tuple[int, ...]) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    width = max(len(a), len(b))
    return a + (0,) * (width - len(a)), b + (0,) * (width - len(b))


def compare_data_versions(left: str, right: str) -> int:
    """Retorna -1, 0 ou 1 conforme `left` <, == ou > `right`."""
    a, b = _padded(parse_data_version(left), parse_data_version(right))
    return (a > b) - (a < b)


def is_newer_version(candidate: str, recorded: str) -> bool:
    return compare_data_versions(candidate, recorded) > 0


def bump_data_version(value: str, part: str = "minor") -> str:
    """
    Incrementa um componente da versão e zera os componentes à direita.

    `bump_data_version("0.1.3", "minor") == "0.2.0"`. Versões com menos de
    três componentes são completadas com zeros antes do incremento.
    """
    if part not in _PARTS:
        raise InvalidDataVersionError(
            f"Componente de versão desconhecido: {part!r}",
            details={"part": part, "allowed": list(_PARTS)},
        )
    parsed = list(parse_data_version(value))
    while len(parsed) < len(_PARTS):
        parsed.append(0)
    idx = _PARTS.index(part)
    parsed[idx] += 1
    for i in range(idx + 1, len(parsed)):
        parsed[i] = 0
    return ".".join(str(p) for p in parsed)
