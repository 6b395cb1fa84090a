# src/datapack/core/traceability/manifest.py
"""
Build Manifest — rastreabilidade forense de builds do Datapack.

O Build Manifest consolida, de forma determinística e auditável:
    - metadados do build (build_id, started_at, datapack_version)
    - entradas semânticas (hash da configuração, versão solicitada)
    - estado incremental de cada script
    - Event Log ordenado de eventos explícitos

Eventos usados pelo Orchestrator:
    build_started, script_started, script_finished, script_failed,
    script_skipped, artifacts_carried, version_gate, digest_committed,
    build_failed

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem de chamada
    - O Manifest é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - Persistência em JSON determinístico, escrito de forma atômica

Limites explícitos:
    - Não executa scripts
    - Não decide commit nem versão
    - Não substitui o digest (o manifest é informativo)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from datapack.core.io import atomic_write_text


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps timezone-naive são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class BuildManifest:
    """
    Registro forense de um build.

    Campos:
        - build: metadados do build (build_id, started_at, datapack_version)
        - inputs: config_hash e requested_version
        - scripts: estado incremental por caminho de script
        - events: Event Log ordenado
        - outcome: resultado final (preenchido por `build_finished`/`build_failed`)
    """

    build: Dict[str, Any]
    inputs: Dict[str, Any]
    scripts: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    outcome: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "build": dict(self.build),
            "inputs": dict(self.inputs),
            "scripts": {k: dict(v) for k, v in self.scripts.items()},
            "events": [dict(e) for e in self.events],
            "outcome": dict(self.outcome),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildManifest":
        return cls(
            build=dict(data.get("build", {})),
            inputs=dict(data.get("inputs", {})),
            scripts={k: dict(v) for k, v in (data.get("scripts", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
            outcome=dict(data.get("outcome", {}) or {}),
        )

    def event_types(self) -> List[str]:
        return [e["event_type"] for e in self.events]


def create_manifest(
    *,
    build_id: str,
    started_at: datetime,
    datapack_version: str,
    config_hash: str,
    requested_version: Optional[str],
) -> BuildManifest:
    """
    Cria o Manifest inicial de um build.

    O Event Log inicia vazio: `build_started` deve ser registrado
    explicitamente via `add_event`.
    """
    return BuildManifest(
        build={
            "build_id": build_id,
            "started_at": _iso(started_at),
            "datapack_version": datapack_version,
        },
        inputs={
            "config_hash": config_hash,
            "requested_version": requested_version,
        },
    )


def add_event(
    manifest: BuildManifest,
    *,
    event_type: str,
    ts: datetime,
    script: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if script is not None:
        ev["script"] = script
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def script_started(manifest: BuildManifest, *, script: str, ts: datetime) -> None:
    manifest.scripts.setdefault(script, {})
    manifest.scripts[script].update(
        {
            "script": script,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="script_started", ts=ts, script=script)


def script_finished(
    manifest: BuildManifest,
    *,
    script: str,
    ts: datetime,
    result: Dict[str, Any],
) -> None:
    """
    Registra a conclusão de um script.

    A duração é calculada a partir de `started_at` quando disponível;
    `result` segue o formato de `ScriptResult.to_dict()`.
    """
    s = manifest.scripts.setdefault(script, {"script": script})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    status = result.get("status", "success")
    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "summary": result.get("summary"),
            "written": list(result.get("written", []) or []),
        }
    )
    add_event(
        manifest,
        event_type="script_finished",
        ts=ts,
        script=script,
        payload={"status": status, "written": s["written"], "duration_ms": s["duration_ms"]},
    )


def script_failed(
    manifest: BuildManifest,
    *,
    script: str,
    ts: datetime,
    error: Dict[str, Any],
) -> None:
    s = manifest.scripts.setdefault(script, {"script": script})
    s.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "error": dict(error),
        }
    )
    add_event(manifest, event_type="script_failed", ts=ts, script=script, payload={"error": dict(error)})


def script_skipped(manifest: BuildManifest, *, script: str, ts: datetime, reason: str = "disabled") -> None:
    manifest.scripts[script] = {"script": script, "status": "skipped", "reason": reason}
    add_event(manifest, event_type="script_skipped", ts=ts, script=script, payload={"reason": reason})


def build_finished(manifest: BuildManifest, *, ts: datetime, outcome: Dict[str, Any]) -> None:
    """Registra o resultado final de um build aceito (sem evento próprio)."""
    manifest.outcome = {"status": "success", "finished_at": _iso(ts), **outcome}


def build_failed(manifest: BuildManifest, *, ts: datetime, error: Dict[str, Any]) -> None:
    manifest.outcome = {"status": "failed", "finished_at": _iso(ts), "error": dict(error)}
    add_event(manifest, event_type="build_failed", ts=ts, payload={"error": dict(error)})


def save_manifest(manifest: BuildManifest, path: Path) -> None:
    """
    Persiste o Manifest em JSON (chaves ordenadas, escrita atômica).

    Raises:
        OSError: falha ao criar diretórios ou escrever o arquivo.
        TypeError: conteúdo não serializável em JSON.
    """
    text = json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True)
    atomic_write_text(Path(path), text)


def load_manifest(path: Path) -> BuildManifest:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return BuildManifest.from_dict(data)
