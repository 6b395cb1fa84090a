# src/datapack/core/digest/__init__.py
"""
Fingerprints, digest e version gate do Datapack.

Componentes:
    - fingerprint → serialização canônica + SHA-256 de artefatos
    - store       → DigestRecord e commit atômico do arquivo de digest
    - gate        → regra fingerprint × versão dos dados
"""

from .fingerprint import fingerprint, fingerprint_artifact, serialize_artifact
from .gate import GateDecision, evaluate_version_gate
from .store import DigestDiff, DigestRecord, DigestStore

__all__ = [
    "fingerprint",
    "fingerprint_artifact",
    "serialize_artifact",
    "GateDecision",
    "evaluate_version_gate",
    "DigestDiff",
    "DigestRecord",
    "DigestStore",
]
