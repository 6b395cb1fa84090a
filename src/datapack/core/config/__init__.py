# src/datapack/core/config/__init__.py
"""
Camada de configuração do Datapack.

Este pacote carrega, valida, mescla, persiste e identifica (hash) o
documento de configuração do build, além de tratar a versão dos dados.

A configuração no Datapack é:
    - declarativa (lista ordenada de scripts + artefatos esperados)
    - um valor imutável (`BuildConfig`), nunca estado global
    - explicitamente versionável (`dataVersion`)

Limites explícitos:
    - Não executa scripts
    - Não interage com o digest nem com o Object Store
"""

from .errors import ConfigError
from .hashing import compute_config_hash
from .loader import dump_config, load_config, load_config_document, save_config
from .model import BuildConfig, ScriptEntry
from .version import (
    bump_data_version,
    compare_data_versions,
    is_newer_version,
    parse_data_version,
)

__all__ = [
    "BuildConfig",
    "ScriptEntry",
    "ConfigError",
    "compute_config_hash",
    "dump_config",
    "load_config",
    "load_config_document",
    "save_config",
    "bump_data_version",
    "compare_data_versions",
    "is_newer_version",
    "parse_data_version",
]
