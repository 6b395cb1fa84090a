# src/datapack/core/config/loader.py
"""
Loader canônico de configuração do Datapack.

Este módulo carrega o documento de configuração do build (YAML ou JSON),
aplica opcionalmente um override local via deep-merge e produz um
`BuildConfig` validado. Também persiste um `BuildConfig` de volta em YAML.

Política de resolução:
    - O arquivo principal é obrigatório
    - O override local é opcional; quando existe, tem precedência
    - O resultado é sempre um `BuildConfig` validado (nunca um dict solto)

Invariantes:
    - `load_config(save_config(cfg))` produz um valor igual a `cfg`
    - A escrita é atômica (temp → rename)

Limites explícitos:
    - Não executa scripts
    - Não lê nem grava o digest
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import json

import yaml  # PyYAML

from datapack.core.io import atomic_write_text

from .errors import (
    ConfigFileNotFoundError,
    ConfigSchemaError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge
from .model import BuildConfig

PathLike = Union[str, Path]


def load_config_document(path: PathLike) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida sua estrutura básica.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        ConfigFileNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        ConfigSchemaError: Se o conteúdo não puder ser interpretado.
        InvalidConfigRootTypeError: Se a raiz não for um dicionário.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigFileNotFoundError(
            f"Arquivo de configuração não encontrado: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        elif suffix == ".json":
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise UnsupportedConfigFormatError(
                f"Formato não suportado: {path.suffix}",
                details={"path": str(path)},
            )
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigSchemaError(
            f"Não foi possível interpretar {path}: {e}",
            details={"path": str(path)},
        ) from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}",
            details={"path": str(path)},
        )
    return data


def load_config(path: PathLike, *, local_path: Optional[PathLike] = None) -> BuildConfig:
    """
    Carrega e resolve a configuração efetiva do build.

    Args:
        path: Documento principal de configuração.
        local_path: Override local opcional; ignorado se não existir.

    Returns:
        BuildConfig validado.
    """
    document = load_config_document(path)

    if local_path is not None and Path(local_path).exists():
        document = deep_merge(document, load_config_document(local_path))

    return BuildConfig.from_dict(document)


def dump_config(config: BuildConfig) -> str:
    return yaml.safe_dump(
        config.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def save_config(config: BuildConfig, path: PathLike) -> Path:
    """Grava `config` em YAML (ou JSON, pela extensão) de forma atômica."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        text = dump_config(config)
    elif suffix == ".json":
        text = json.dumps(config.to_dict(), ensure_ascii=False, indent=2) + "\n"
    else:
        raise UnsupportedConfigFormatError(
            f"Formato não suportado: {path.suffix}",
            details={"path": str(path)},
        )
    atomic_write_text(path, text)
    return path
