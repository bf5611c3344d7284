import asyncio
import json
import logging

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from app.api import career_graph as career_graph_api
from app.auth import bearer_token, resolve_user_id_from_token
from app.careergraph.models import SkillNode
from app.layout.simulator import ForceLayoutSimulator, RenderFrame
from app.system_metrics import decrement_metric, increment_metric
from core.config import LAYOUT_CANVAS_HEIGHT, LAYOUT_CANVAS_WIDTH, LAYOUT_FRAME_INTERVAL_SEC
from core.logger import log_event

router = APIRouter()
logger = logging.getLogger("app.ws_layout")


def _canvas_dimension(raw, default: int) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return float(default)
    return float(default) if value < 200 else min(value, 4000.0)


def _as_float(payload: dict, key: str, default: float = 0.0) -> float:
    try:
        return float(payload.get(key, default))
    except (TypeError, ValueError):
        return default


@router.websocket("/ws/career/layout")
async def career_layout_ws(websocket: WebSocket):
    token = (
        bearer_token(websocket.headers.get("authorization"))
        or str(websocket.query_params.get("token") or "").strip()
        or str(websocket.query_params.get("access_token") or "").strip()
    )
    if not token:
        await websocket.close(code=1008, reason="Unauthorized")
        return
    try:
        user_id = resolve_user_id_from_token(token)
    except HTTPException:
        await websocket.close(code=1008, reason="Unauthorized")
        return

    width = _canvas_dimension(websocket.query_params.get("width"), LAYOUT_CANVAS_WIDTH)
    height = _canvas_dimension(websocket.query_params.get("height"), LAYOUT_CANVAS_HEIGHT)

    await websocket.accept()
    send_lock = asyncio.Lock()

    async def _safe_send(payload: dict) -> None:
        if websocket.client_state != WebSocketState.CONNECTED:
            return
        try:
            async with send_lock:
                await websocket.send_text(json.dumps(payload))
        except Exception as exc:
            logger.warning("layout ws send failed | user_id=%s err=%s", user_id, exc)

    async def _send_frame(frame: RenderFrame) -> None:
        await _safe_send({"type": "frame", **frame.to_dict()})

    simulator = ForceLayoutSimulator(frame_interval_sec=LAYOUT_FRAME_INTERVAL_SEC, on_frame=_send_frame)

    @simulator.on_node_click
    def _log_selection(node: SkillNode | None) -> None:
        log_event("ws_layout", "node_selected", user_id, node_id=node.id if node else None)

    service = career_graph_api.get_service()
    nodes = service.build_skill_graph(user_id)
    simulator.start(nodes, (width, height))
    increment_metric("layout_sessions_active")
    log_event("ws_layout", "connect", user_id, node_count=len(nodes), width=width, height=height)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await _safe_send({"type": "error", "detail": "invalid json"})
                continue
            if not isinstance(message, dict):
                await _safe_send({"type": "error", "detail": "expected an object"})
                continue

            kind = str(message.get("type") or "").strip().lower()
            if kind == "click":
                node = simulator.click(_as_float(message, "x"), _as_float(message, "y"))
                await _safe_send({"type": "node_selected", "node": node.to_dict() if node else None})
            elif kind == "pan":
                simulator.pan(_as_float(message, "dx"), _as_float(message, "dy"))
            elif kind == "zoom":
                level = simulator.zoom(_as_float(message, "factor", 1.0))
                await _safe_send({"type": "zoom", "zoom": level})
            elif kind == "reset":
                simulator.reset_view()
            elif kind == "refresh":
                nodes = service.build_skill_graph(user_id)
                simulator.load(nodes, (width, height))
            elif kind == "stop":
                break
            else:
                await _safe_send({"type": "error", "detail": f"unknown message type: {kind or 'missing'}"})
    except WebSocketDisconnect:
        pass
    finally:
        simulator.stop()
        await simulator.join()
        decrement_metric("layout_sessions_active")
        log_event("ws_layout", "disconnect", user_id, frames=simulator.frame_index)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
