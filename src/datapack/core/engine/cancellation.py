# src/datapack/core/engine/cancellation.py
"""Cancelamento cooperativo de builds (verificado entre scripts)."""

from __future__ import annotations

import threading


class CancellationToken:
    """
    Sinal de cancelamento compartilhável entre threads.

    O Orchestrator consulta o token antes de iniciar cada script; um script
    em execução nunca é interrompido. Um build cancelado não faz commit.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
