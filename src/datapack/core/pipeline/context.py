# src/datapack/core/pipeline/context.py
"""
Contexto de execução de um build.

O `BuildContext` concentra a identidade do build e o log estruturado de
eventos produzido pelo Orchestrator e pelo Script Runner. Cada evento
carrega `build_id`, `script` (ou None para eventos do build), nível,
mensagem e timestamp UTC. Warnings não fatais são agrupados por script.

Invariantes:
    - Cada build possui um BuildContext próprio
    - Logs sempre incluem `build_id`
    - Warnings são associados explicitamente a um script (ou ao build)

Limites explícitos:
    - Não executa scripts
    - Não persiste nada (o build manifest é responsabilidade de traceability)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from datapack.core.config.model import BuildConfig

BUILD_SCOPE = "<build>"


@dataclass
class BuildContext:
    build_id: str
    created_at: datetime
    config: BuildConfig
    project_dir: Path
    working_root: Path
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, level: str, message: str, script: Optional[str] = None, **extra: Any) -> None:
        event = {
            "build_id": self.build_id,
            "script": script,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, message: str, script: Optional[str] = None) -> None:
        self.warnings.setdefault(script or BUILD_SCOPE, []).append(message)
        self.log(level="warning", message=message, script=script)
