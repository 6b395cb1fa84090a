# src/datapack/core/pipeline/objects.py
"""
Object Store — artefatos em memória de um build.

O Object Store é o único canal explícito de troca de dados entre scripts:
cada script recebe a instância do build como global `objects` e chama
`objects.write(nome, valor)` para publicar um artefato e
`objects.read(nome)` para consumir um artefato publicado antes.

Regras:
    - só nomes declarados em `objects` (configuração) podem ser escritos
    - um nome pertence ao primeiro script que o escreve; outro script que
      tente escrevê-lo falha com DuplicateArtifactError (o próprio dono pode
      reescrever)
    - leitura reflete a ordem de build: só existe o que já foi escrito
    - com `cross_script_access=False`, toda leitura falha (modo isolado,
      usado para validar que cada script é reprodutível sozinho)

O store vive apenas durante um build e pertence ao Orchestrator.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from datapack.core.exceptions import (
    AccessDisabledError,
    ArtifactNotFoundError,
    DuplicateArtifactError,
    MissingArtifactError,
    UndeclaredArtifactError,
)


class ObjectStore:
    """Mapa nome → valor de um build, com controle de dono e de acesso."""

    def __init__(self, *, expected: Iterable[str], cross_script_access: bool = True):
        self.expected = tuple(expected)
        self.cross_script_access = cross_script_access
        self._values: Dict[str, Any] = {}
        self._owners: Dict[str, Optional[str]] = {}
        self._current: Optional[str] = None

    # -----------------------------
    # Escopo do script em execução
    # -----------------------------
    @property
    def current_script(self) -> Optional[str]:
        return self._current

    @contextmanager
    def scope(self, script_path: str) -> Iterator["ObjectStore"]:
        """Associa leituras/escritas ao script `script_path` enquanto ativo."""
        previous = self._current
        self._current = script_path
        try:
            yield self
        finally:
            self._current = previous

    # -----------------------------
    # API exposta aos scripts
    # -----------------------------
    def write(self, name: str, value: Any) -> None:
        if name not in self.expected:
            raise UndeclaredArtifactError(name, writer=self._current, expected=self.expected)

        if name in self._owners and self._owners[name] != self._current:
            raise DuplicateArtifactError(name, owner=self._owners[name], writer=self._current)

        self._owners[name] = self._current
        self._values[name] = value

    def read(self, name: str) -> Any:
        if not self.cross_script_access:
            raise AccessDisabledError(name, reader=self._current)
        if name not in self._values:
            raise ArtifactNotFoundError(name, reader=self._current)
        return self._values[name]

    def has(self, name: str) -> bool:
        return name in self._values

    __contains__ = has

    # -----------------------------
    # API do Orchestrator
    # -----------------------------
    def names(self) -> List[str]:
        """Nomes escritos neste build, na ordem da primeira escrita."""
        return list(self._values)

    def owner(self, name: str) -> Optional[str]:
        return self._owners.get(name)

    def written_by(self, script_path: str) -> List[str]:
        return [n for n, owner in self._owners.items() if owner == script_path]

    def harvest(self, carried: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Coleta final dos artefatos esperados.

        `carried` contém valores levados adiante do build anterior (scripts
        desabilitados); valores escritos neste build têm precedência.

        Raises:
            MissingArtifactError: algum nome esperado não foi escrito nem levado adiante.
        """
        carried = carried or {}
        harvested: Dict[str, Any] = {}
        missing: List[str] = []
        for name in self.expected:
            if name in self._values:
                harvested[name] = self._values[name]
            elif name in carried:
                harvested[name] = carried[name]
            else:
                missing.append(name)
        if missing:
            raise MissingArtifactError(missing)
        return harvested
