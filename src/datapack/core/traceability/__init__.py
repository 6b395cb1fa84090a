# src/datapack/core/traceability/__init__.py
"""
Rastreabilidade de builds do Datapack — Build Manifest.

API pública:
    - BuildManifest     → estrutura canônica do Manifest
    - create_manifest   → criação explícita do Manifest
    - add_event         → registro explícito no Event Log
    - script_started / script_finished / script_failed / script_skipped
    - build_finished / build_failed
    - save_manifest / load_manifest

Invariantes:
    - O Manifest inicia com `scripts` e `events` vazios
    - Eventos nunca são reordenados
"""

from .manifest import (
    BuildManifest,
    add_event,
    build_failed,
    build_finished,
    create_manifest,
    load_manifest,
    save_manifest,
    script_failed,
    script_finished,
    script_skipped,
    script_started,
)

__all__ = [
    "BuildManifest",
    "add_event",
    "build_failed",
    "build_finished",
    "create_manifest",
    "load_manifest",
    "save_manifest",
    "script_failed",
    "script_finished",
    "script_skipped",
    "script_started",
]
