# src/datapack/core/config/merge.py
"""
Deep-merge do override local sobre o documento de configuração.

Um override local (ex.: `datapack.local.yml`, fora do controle de versão)
permite desabilitar scripts ou trocar o `workingRoot` numa máquina sem
editar o documento principal.

Política de merge (v1):
    - dict  → merge recursivo por chave
    - list  → sobrescrita total (ex.: `objects` é sempre substituída inteira)
    - escalar → sobrescrita direta
    - conflito de tipos → ConfigTypeConflictError

Nenhum input é mutado; a mesma entrada sempre produz a mesma saída.
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _merge_value(key: str, base_value: Any, override_value: Any) -> Any:
    if isinstance(base_value, dict) and isinstance(override_value, dict):
        return deep_merge(base_value, override_value, _path=key)

    if isinstance(override_value, list):
        return deepcopy(override_value)

    # None no documento base significa "não definido": qualquer tipo pode sobrescrever
    if base_value is not None and type(base_value) is not type(override_value):
        raise ConfigTypeConflictError(
            f"Conflito de tipo na chave '{key}': "
            f"{type(base_value).__name__} vs {type(override_value).__name__}",
            details={"key": key},
        )
    return deepcopy(override_value)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any], *, _path: str = "") -> Dict[str, Any]:
    """Retorna um novo dict com `override` aplicado sobre `base`."""
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}",
            details={"key": _path or "<root>"},
        )

    result: Dict[str, Any] = deepcopy(base)
    for key, override_value in override.items():
        dotted = f"{_path}.{key}" if _path else str(key)
        if key in result:
            result[key] = _merge_value(dotted, result[key], override_value)
        else:
            result[key] = deepcopy(override_value)
    return result
