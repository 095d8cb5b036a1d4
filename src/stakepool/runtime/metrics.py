from __future__ import annotations

import os
import threading
import time
from typing import Dict


_lock = threading.Lock()
_counters: Dict[str, int] = {}
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("STAKEPOOL_METRICS_ENABLED") or "").strip().lower()
    if not v:
        return False
    return v in {"1", "true", "yes", "y", "on"}


def inc_counter(name: str, value: int = 1) -> None:
    n = str(name or "").strip()
    if not n:
        return
    with _lock:
        _counters[n] = int(_counters.get(n, 0)) + int(value)


def record_pool_totals(*, total_staked: int, total_assets: int, participants: int) -> None:
    with _lock:
        _gauges["total_staked"] = int(total_staked)
        _gauges["total_assets"] = int(total_assets)
        _gauges["participants"] = int(participants)


def reset() -> None:
    with _lock:
        _counters.clear()
        _gauges.clear()


def snapshot() -> dict:
    with _lock:
        return {
            "ts_ms": int(time.time() * 1000),
            "started_ms": int(_started_ms),
            "uptime_ms": int(time.time() * 1000) - int(_started_ms),
            "counters": dict(_counters),
            "gauges": dict(_gauges),
        }


def format_prometheus(prefix: str = "stakepool_") -> str:
    """Prometheus exposition text with a TYPE line per series.

    Counter names come from pool operations (`event_Staked`,
    `stake_rejected_invalid_amount`, `http_4xx`), gauges mirror pool totals.
    """
    pre = str(prefix or "").strip() or "stakepool_"
    snap = snapshot()
    lines: list[str] = [f"# TYPE {pre}uptime_ms gauge", f"{pre}uptime_ms {int(snap['uptime_ms'])}"]

    for kind, series in (("counter", snap["counters"]), ("gauge", snap["gauges"])):
        for k in sorted(series):
            lines.append(f"# TYPE {pre}{k} {kind}")
            lines.append(f"{pre}{k} {int(series[k])}")

    return "\n".join(lines) + "\n"
