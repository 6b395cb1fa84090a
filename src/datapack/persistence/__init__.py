"""Persistência de valores de artefatos aceitos."""

from .artifact_store import ArtifactStore

__all__ = ["ArtifactStore"]
