# src/datapack/core/config/hashing.py
"""
Hash canônico da configuração do build.

O hash representa a identidade estrutural da configuração efetiva usada
num build e é registrado no build manifest para rastreabilidade.

Política de hashing (v1):
    - documento serializado via `BuildConfig.to_dict()`
    - JSON canônico: chaves ordenadas, separadores compactos, UTF-8
    - SHA-256 (hex, 64 caracteres)

Observação: a ordem dos scripts faz parte da configuração (é a ordem de
build) e por isso altera o hash, mesmo com `sort_keys=True`, porque `files`
é serializado como lista de pares antes do hashing.
"""

import hashlib
import json
from typing import Any, Dict, Union

from .model import BuildConfig, FILES_KEY


def _canonical_document(config: Union[BuildConfig, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(config, BuildConfig):
        data = config.to_dict()
    elif isinstance(config, dict):
        data = dict(config)
    else:
        raise TypeError(
            f"Config para hashing deve ser BuildConfig ou dict, recebido: {type(config).__name__}"
        )
    files = data.get(FILES_KEY)
    if isinstance(files, dict):
        data[FILES_KEY] = [[path, opts] for path, opts in files.items()]
    return data


def compute_config_hash(config: Union[BuildConfig, Dict[str, Any]]) -> str:
    canonical_json = json.dumps(
        _canonical_document(config),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
