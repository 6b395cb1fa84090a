# src/datapack/core/config/model.py
"""
Modelo canônico de configuração do build.

Este módulo define `ScriptEntry` e `BuildConfig`, a representação
explícita e imutável do documento de configuração do build:

    files:                 # script → {enabled: bool}, na ordem de build
      cars.py:
        enabled: true
    objects:               # artefatos esperados do build
      - cars_over_20
    workingRoot: "{tmp}/datapack-build"
    dataVersion: 0.1.0     # opcional

Princípios fundamentais:
    - A configuração é um valor, nunca estado global
    - Toda mutação retorna um novo `BuildConfig` já validado
    - A ordem de `files` é a ordem de execução dos scripts
    - serializar (`to_dict`) e reinterpretar (`from_dict`) produz um valor igual

Invariantes:
    - caminhos de script são únicos
    - `objects` é não vazio e sem duplicatas
    - `workingRoot` só usa os placeholders `{tmp}` e `{project}`
    - `dataVersion`, quando presente, é uma versão válida

Limites explícitos:
    - Não lê nem grava arquivos (ver `loader`)
    - Não executa scripts
"""

from __future__ import annotations

import string
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .errors import (
    ConfigSchemaError,
    DuplicateArtifactNameError,
    DuplicateScriptError,
    EmptyArtifactListError,
    InvalidConfigRootTypeError,
    UnknownScriptError,
    WorkingRootError,
)
from .version import parse_data_version


# chaves do documento (nomes externos)
FILES_KEY = "files"
OBJECTS_KEY = "objects"
WORKING_ROOT_KEY = "workingRoot"
DATA_VERSION_KEY = "dataVersion"
LEGACY_WRAPPER_KEY = "configuration"

_DOCUMENT_KEYS = (FILES_KEY, OBJECTS_KEY, WORKING_ROOT_KEY, DATA_VERSION_KEY)
_WORKING_ROOT_FIELDS = ("tmp", "project")


@dataclass(frozen=True)
class ScriptEntry:
    """Um script de processamento e sua flag de habilitação."""

    path: str
    enabled: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.path, str) or not self.path.strip():
            raise ConfigSchemaError(
                "Caminho de script deve ser uma string não vazia",
                details={"path": self.path},
            )
        if not isinstance(self.enabled, bool):
            raise ConfigSchemaError(
                f"`enabled` do script '{self.path}' deve ser booleano",
                details={"path": self.path, "enabled": repr(self.enabled)},
            )


def validate_working_root(value: Any) -> str:
    """Valida que `workingRoot` é resolvível (string não vazia, placeholders conhecidos)."""
    if not isinstance(value, str) or not value.strip():
        raise WorkingRootError(
            "`workingRoot` deve ser um caminho não vazio",
            details={"working_root": value},
        )
    try:
        fields = [f for _, f, _, _ in string.Formatter().parse(value) if f is not None]
    except ValueError as e:
        raise WorkingRootError(
            f"`workingRoot` malformado: {value!r}",
            details={"working_root": value, "reason": str(e)},
        ) from e

    unknown = [f for f in fields if f not in _WORKING_ROOT_FIELDS]
    if unknown:
        raise WorkingRootError(
            f"`workingRoot` usa placeholder desconhecido: {', '.join(repr(f) for f in unknown)}",
            details={"working_root": value, "allowed": list(_WORKING_ROOT_FIELDS)},
        )
    return value


@dataclass(frozen=True)
class BuildConfig:
    """
    Configuração validada de um build.

    Campos:
        - scripts: sequência ordenada de `ScriptEntry` (ordem = ordem de build)
        - expected_artifacts: nomes de artefatos que o build deve produzir
        - working_root: diretório (ou template) compartilhado pelos scripts
        - data_version: versão dos dados declarada no documento (opcional)

    A validação ocorre em `__post_init__`: uma instância inválida nunca existe.
    """

    scripts: Tuple[ScriptEntry, ...]
    expected_artifacts: Tuple[str, ...]
    working_root: str
    data_version: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "scripts", tuple(self.scripts))
        object.__setattr__(self, "expected_artifacts", tuple(self.expected_artifacts))
        self._validate()

    def _validate(self) -> None:
        seen_paths = set()
        for entry in self.scripts:
            if not isinstance(entry, ScriptEntry):
                raise ConfigSchemaError(
                    "Entradas de `files` devem ser ScriptEntry",
                    details={"received": type(entry).__name__},
                )
            if entry.path in seen_paths:
                raise DuplicateScriptError(
                    f"Script duplicado na configuração: {entry.path}",
                    details={"path": entry.path},
                )
            seen_paths.add(entry.path)

        if not self.expected_artifacts:
            raise EmptyArtifactListError(
                "`objects` não pode ser vazio: declare ao menos um artefato",
            )
        seen_names = set()
        for name in self.expected_artifacts:
            if not isinstance(name, str) or not name.strip():
                raise ConfigSchemaError(
                    "Nomes em `objects` devem ser strings não vazias",
                    details={"name": repr(name)},
                )
            if name in seen_names:
                raise DuplicateArtifactNameError(
                    f"Artefato declarado mais de uma vez em `objects`: {name}",
                    details={"artifact": name},
                )
            seen_names.add(name)

        validate_working_root(self.working_root)

        if self.data_version is not None:
            parse_data_version(self.data_version)

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def list_scripts(self, *, enabled_only: bool = False) -> List[str]:
        return [s.path for s in self.scripts if s.enabled or not enabled_only]

    def enabled_scripts(self) -> List[ScriptEntry]:
        return [s for s in self.scripts if s.enabled]

    def disabled_scripts(self) -> List[ScriptEntry]:
        return [s for s in self.scripts if not s.enabled]

    def list_artifacts(self) -> List[str]:
        return list(self.expected_artifacts)

    def get_script(self, path: str) -> ScriptEntry:
        for entry in self.scripts:
            if entry.path == path:
                return entry
        raise UnknownScriptError(
            f"Script não encontrado na configuração: {path}",
            details={"path": path, "known": self.list_scripts()},
        )

    def resolve_working_root(self, project_dir: Union[str, Path]) -> Path:
        """
        Resolve `workingRoot` para um caminho absoluto.

        `{tmp}` expande para o diretório temporário do sistema e `{project}`
        para `project_dir`. Caminhos relativos são relativos a `project_dir`.
        """
        project = Path(project_dir)
        expanded = self.working_root.format(tmp=tempfile.gettempdir(), project=str(project))
        p = Path(expanded).expanduser()
        if not p.is_absolute():
            p = project / p
        return p.resolve()

    # ------------------------------------------------------------------
    # Mutações (sempre retornam um novo BuildConfig validado)
    # ------------------------------------------------------------------
    def _set_enabled(self, path: str, enabled: bool) -> "BuildConfig":
        self.get_script(path)
        scripts = [replace(s, enabled=enabled) if s.path == path else s for s in self.scripts]
        return replace(self, scripts=tuple(scripts))

    def enable(self, path: str) -> "BuildConfig":
        return self._set_enabled(path, True)

    def disable(self, path: str) -> "BuildConfig":
        return self._set_enabled(path, False)

    def add_script(self, entry: Union[ScriptEntry, str]) -> "BuildConfig":
        if isinstance(entry, str):
            entry = ScriptEntry(path=entry)
        return replace(self, scripts=self.scripts + (entry,))

    def remove_script(self, path: str) -> "BuildConfig":
        self.get_script(path)
        return replace(self, scripts=tuple(s for s in self.scripts if s.path != path))

    def add_artifacts(self, *names: str) -> "BuildConfig":
        return replace(self, expected_artifacts=self.expected_artifacts + tuple(names))

    def remove_artifacts(self, *names: str) -> "BuildConfig":
        unknown = [n for n in names if n not in self.expected_artifacts]
        if unknown:
            raise ConfigSchemaError(
                f"Artefatos não declarados não podem ser removidos: {', '.join(unknown)}",
                details={"unknown": unknown},
            )
        kept = tuple(n for n in self.expected_artifacts if n not in set(names))
        return replace(self, expected_artifacts=kept)

    def with_data_version(self, version: Optional[str]) -> "BuildConfig":
        return replace(self, data_version=version)

    # ------------------------------------------------------------------
    # Serialização
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            FILES_KEY: {s.path: {"enabled": s.enabled} for s in self.scripts},
            OBJECTS_KEY: list(self.expected_artifacts),
            WORKING_ROOT_KEY: self.working_root,
        }
        if self.data_version is not None:
            data[DATA_VERSION_KEY] = self.data_version
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildConfig":
        """
        Interpreta o documento de configuração.

        Aceita tanto o formato plano (`files`, `objects`, `workingRoot`,
        `dataVersion`) quanto o mesmo conteúdo sob a chave legada
        `configuration`. Chaves desconhecidas são erro.
        """
        if not isinstance(data, dict):
            raise InvalidConfigRootTypeError(
                f"Config root deve ser dict, recebido: {type(data).__name__}"
            )
        if set(data) == {LEGACY_WRAPPER_KEY}:
            data = data[LEGACY_WRAPPER_KEY]
            if not isinstance(data, dict):
                raise InvalidConfigRootTypeError(
                    f"`{LEGACY_WRAPPER_KEY}` deve ser dict, recebido: {type(data).__name__}"
                )

        unknown = sorted(k for k in data if k not in _DOCUMENT_KEYS)
        if unknown:
            raise ConfigSchemaError(
                f"Chaves desconhecidas na configuração: {', '.join(map(str, unknown))}",
                details={"unknown": unknown, "allowed": list(_DOCUMENT_KEYS)},
            )

        if WORKING_ROOT_KEY not in data:
            raise WorkingRootError(f"Configuração sem `{WORKING_ROOT_KEY}`")

        version = data.get(DATA_VERSION_KEY)
        if version is not None and not isinstance(version, str):
            # YAML interpreta `0.1` como float; exigimos string explícita
            raise ConfigSchemaError(
                f"`{DATA_VERSION_KEY}` deve ser string (use aspas no YAML)",
                details={"received": repr(version)},
            )

        return cls(
            scripts=tuple(_parse_files(data.get(FILES_KEY) or {})),
            expected_artifacts=tuple(_parse_objects(data.get(OBJECTS_KEY))),
            working_root=data[WORKING_ROOT_KEY],
            data_version=version,
        )


def _parse_files(files: Any) -> Iterable[ScriptEntry]:
    if not isinstance(files, dict):
        raise ConfigSchemaError(
            f"`{FILES_KEY}` deve mapear caminho → {{enabled: bool}}",
            details={"received": type(files).__name__},
        )
    for path, opts in files.items():
        if opts is None:
            opts = {}
        if not isinstance(opts, dict):
            raise ConfigSchemaError(
                f"Opções do script '{path}' devem ser um mapa",
                details={"path": path, "received": type(opts).__name__},
            )
        extra = sorted(k for k in opts if k != "enabled")
        if extra:
            raise ConfigSchemaError(
                f"Opções desconhecidas para o script '{path}': {', '.join(map(str, extra))}",
                details={"path": path, "unknown": extra},
            )
        yield ScriptEntry(path=path, enabled=opts.get("enabled", True))


def _parse_objects(objects: Any) -> List[str]:
    if objects is None:
        return []
    if not isinstance(objects, list):
        raise ConfigSchemaError(
            f"`{OBJECTS_KEY}` deve ser uma lista de nomes",
            details={"received": type(objects).__name__},
        )
    return list(objects)
