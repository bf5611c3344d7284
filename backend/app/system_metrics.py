import threading
import time
from typing import Any


_lock = threading.Lock()
_metrics: dict[str, float] = {
    "activities_logged_total": 0.0,
    "graph_rebuilds_total": 0.0,
    "graph_rebuild_failures_total": 0.0,
    "graph_rebuild_total_ms": 0.0,
    "layout_sessions_active": 0.0,
    "layout_frames_total": 0.0,
}


def increment_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        _metrics[key] = float(_metrics.get(key, 0.0)) + float(amount)


def decrement_metric(name: str, amount: float = 1.0) -> None:
    key = str(name or "").strip()
    if not key:
        return
    with _lock:
        next_value = float(_metrics.get(key, 0.0)) - float(amount)
        _metrics[key] = max(0.0, next_value)


def observe_graph_rebuild_ms(value_ms: float) -> None:
    elapsed = max(0.0, float(value_ms or 0.0))
    with _lock:
        _metrics["graph_rebuild_total_ms"] = float(_metrics.get("graph_rebuild_total_ms", 0.0)) + elapsed
        _metrics["graph_rebuilds_total"] = float(_metrics.get("graph_rebuilds_total", 0.0)) + 1.0


def get_metrics_snapshot(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    with _lock:
        data = dict(_metrics)

    rebuild_samples = max(1.0, float(data.get("graph_rebuilds_total") or 0.0))

    payload: dict[str, Any] = {
        "generated_at": time.time(),
        "activities_logged_total": int(data.get("activities_logged_total") or 0.0),
        "graph_rebuilds_total": int(data.get("graph_rebuilds_total") or 0.0),
        "graph_rebuild_failures_total": int(data.get("graph_rebuild_failures_total") or 0.0),
        "layout_sessions_active": int(data.get("layout_sessions_active") or 0.0),
        "layout_frames_total": int(data.get("layout_frames_total") or 0.0),
        "avg_graph_rebuild_ms": round(float(data.get("graph_rebuild_total_ms") or 0.0) / rebuild_samples, 2),
    }

    if extra:
        payload.update(extra)
    return payload
