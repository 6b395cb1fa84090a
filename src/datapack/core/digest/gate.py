# src/datapack/core/digest/gate.py
"""
Version gate.

Regra: qualquer mudança de fingerprint (artefato novo, alterado ou
removido) exige que a versão solicitada seja estritamente maior que a
versão registrada no último commit. Sem mudança, o commit é um no-op e a
versão registrada permanece em vigor.

Garantia para consumidores: se a string de versão não mudou, os bytes dos
artefatos não mudaram; se os bytes mudaram, a string necessariamente mudou.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from datapack.core.config.version import is_newer_version, parse_data_version
from datapack.core.exceptions import VersionGateError

from .store import DigestDiff, DigestRecord


@dataclass(frozen=True)
class GateDecision:
    """Resultado do gate: se haverá commit e qual versão fica em vigor."""

    diff: DigestDiff
    commit: bool
    recorded_version: Optional[str]
    data_version: Optional[str]

    @property
    def version_changed(self) -> bool:
        return self.commit


def evaluate_version_gate(
    previous: DigestRecord,
    fingerprints: Mapping[str, str],
    requested_version: str,
) -> GateDecision:
    """
    Aplica o version gate sobre o novo mapa de fingerprints.

    Raises:
        InvalidDataVersionError: versão solicitada malformada.
        VersionGateError: conteúdo mudou e a versão não é maior que a registrada.
    """
    parse_data_version(requested_version)
    diff = previous.diff(fingerprints)
    recorded = previous.data_version

    if diff.is_unchanged:
        return GateDecision(diff=diff, commit=False, recorded_version=recorded, data_version=recorded)

    # primeiro commit: não há versão registrada com a qual comparar
    if recorded is not None and not is_newer_version(requested_version, recorded):
        raise VersionGateError(
            diff.changed_artifacts,
            recorded_version=recorded,
            requested_version=requested_version,
        )

    return GateDecision(diff=diff, commit=True, recorded_version=recorded, data_version=requested_version)
