"""Force-directed layout for the skill graph view.

Each view owns one ``ForceLayoutSimulator``. It keeps private position and
velocity state keyed by node id, steps a damped spring/repulsion model on an
asyncio task, and hands rendered frames to whoever owns the drawing surface.
The ``SkillNode`` list it is given is only ever read.

The model is not expected to converge; it is stable enough to look settled.
"""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

from app.careergraph.models import SkillCategory, SkillNode
from app.system_metrics import increment_metric
from core.config import LAYOUT_FRAME_INTERVAL_SEC

FrameHandler = Callable[["RenderFrame"], Awaitable[None]]
NodeClickHandler = Callable[[SkillNode | None], None]

CATEGORY_COLORS = {
    SkillCategory.TECHNICAL: "#8B5CF6",
    SkillCategory.SOFT: "#10B981",
    SkillCategory.DOMAIN: "#F59E0B",
    SkillCategory.TOOL: "#3B82F6",
    SkillCategory.LANGUAGE: "#EF4444",
}

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0


@dataclass
class NodeState:
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0


@dataclass(frozen=True)
class ForceParams:
    repulsion_strength: float = 100.0
    repulsion_radius: float = 200.0
    attraction_strength: float = 0.001
    centering_strength: float = 0.0001
    damping: float = 0.9
    alpha: float = 0.02
    velocity_scale: float = 10.0
    margin: float = 50.0
    init_radius: float = 150.0
    init_radius_jitter: float = 100.0

    @property
    def step_scale(self) -> float:
        return self.alpha * self.velocity_scale


@dataclass
class NodeSprite:
    id: str
    name: str
    x: float
    y: float
    radius: float
    color: str
    label: str | None
    glow: bool
    border: bool


@dataclass
class EdgeSegment:
    source: str
    target: str
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass
class RenderFrame:
    frame_index: int
    width: float
    height: float
    zoom: float
    offset_x: float
    offset_y: float
    selected_id: str | None
    nodes: list[NodeSprite] = field(default_factory=list)
    edges: list[EdgeSegment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "frame_index": self.frame_index,
            "width": self.width,
            "height": self.height,
            "zoom": round(self.zoom, 4),
            "offset": {"x": round(self.offset_x, 2), "y": round(self.offset_y, 2)},
            "selected_id": self.selected_id,
            "nodes": [
                {
                    "id": s.id,
                    "name": s.name,
                    "x": round(s.x, 2),
                    "y": round(s.y, 2),
                    "radius": round(s.radius, 2),
                    "color": s.color,
                    "label": s.label,
                    "glow": s.glow,
                    "border": s.border,
                }
                for s in self.nodes
            ],
            "edges": [
                {
                    "source": e.source,
                    "target": e.target,
                    "x1": round(e.x1, 2),
                    "y1": round(e.y1, 2),
                    "x2": round(e.x2, 2),
                    "y2": round(e.y2, 2),
                }
                for e in self.edges
            ],
        }


def node_radius(weight: float) -> float:
    return 5.0 + (float(weight) / 100.0) * 20.0


class ForceLayoutSimulator:
    def __init__(
        self,
        params: ForceParams | None = None,
        rng: random.Random | None = None,
        frame_interval_sec: float = LAYOUT_FRAME_INTERVAL_SEC,
        on_frame: FrameHandler | None = None,
    ):
        self.params = params or ForceParams()
        self.frame_interval_sec = max(0.0, float(frame_interval_sec))
        self._rng = rng or random.Random()
        self._on_frame = on_frame
        self._click_handlers: list[NodeClickHandler] = []
        self._nodes: tuple[SkillNode, ...] = ()
        self._states: dict[str, NodeState] = {}
        self._width = 800.0
        self._height = 600.0
        self._zoom = 1.0
        self._offset_x = 0.0
        self._offset_y = 0.0
        self._selected_id: str | None = None
        self._frame_index = 0
        self._task: asyncio.Task | None = None

    # ---- state -----------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def zoom_level(self) -> float:
        return self._zoom

    @property
    def offset(self) -> tuple[float, float]:
        return self._offset_x, self._offset_y

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def frame_index(self) -> int:
        return self._frame_index

    def position(self, node_id: str) -> NodeState | None:
        state = self._states.get(node_id)
        return NodeState(state.x, state.y, state.vx, state.vy) if state else None

    def place(self, node_id: str, x: float, y: float) -> None:
        self._states[node_id] = NodeState(float(x), float(y))

    def load(self, nodes: Iterable[SkillNode], canvas_size: tuple[float, float]) -> None:
        """Adopt a node list and canvas size, seeding positions for new ids."""
        self._nodes = tuple(nodes)
        self._width = float(canvas_size[0])
        self._height = float(canvas_size[1])

        live_ids = {node.id for node in self._nodes}
        for stale_id in [node_id for node_id in self._states if node_id not in live_ids]:
            self._states.pop(stale_id, None)
        if self._selected_id not in live_ids:
            self._selected_id = None

        center_x, center_y = self._width / 2.0, self._height / 2.0
        count = len(self._nodes)
        for index, node in enumerate(self._nodes):
            if node.id in self._states:
                continue
            angle = (index / count) * 2.0 * math.pi
            radius = self.params.init_radius + self._rng.random() * self.params.init_radius_jitter
            self._states[node.id] = NodeState(
                x=center_x + math.cos(angle) * radius,
                y=center_y + math.sin(angle) * radius,
            )

    # ---- physics ---------------------------------------------------------

    def step(self) -> None:
        p = self.params
        center_x, center_y = self._width / 2.0, self._height / 2.0

        for node in self._nodes:
            pos = self._states.get(node.id)
            if pos is None:
                continue

            for other in self._nodes:
                if other.id == node.id:
                    continue
                other_pos = self._states.get(other.id)
                if other_pos is None:
                    continue
                dx = pos.x - other_pos.x
                dy = pos.y - other_pos.y
                distance = math.sqrt(dx * dx + dy * dy) or 1.0
                if distance < p.repulsion_radius:
                    force = p.repulsion_strength / (distance * distance)
                    pos.vx += (dx / distance) * force
                    pos.vy += (dy / distance) * force

            for connection_id in node.connections:
                conn_pos = self._states.get(connection_id)
                if conn_pos is None:
                    continue
                dx = conn_pos.x - pos.x
                dy = conn_pos.y - pos.y
                distance = math.sqrt(dx * dx + dy * dy) or 1.0
                force = distance * p.attraction_strength
                pos.vx += (dx / distance) * force
                pos.vy += (dy / distance) * force

            pos.vx += (center_x - pos.x) * p.centering_strength
            pos.vy += (center_y - pos.y) * p.centering_strength

            pos.vx *= p.damping
            pos.vy *= p.damping
            pos.x += pos.vx * p.step_scale
            pos.y += pos.vy * p.step_scale

            pos.x = max(p.margin, min(self._width - p.margin, pos.x))
            pos.y = max(p.margin, min(self._height - p.margin, pos.y))

        self._frame_index += 1

    # ---- rendering -------------------------------------------------------

    def render(self) -> RenderFrame:
        frame = RenderFrame(
            frame_index=self._frame_index,
            width=self._width,
            height=self._height,
            zoom=self._zoom,
            offset_x=self._offset_x,
            offset_y=self._offset_y,
            selected_id=self._selected_id,
        )

        for node in self._nodes:
            pos = self._states.get(node.id)
            if pos is None:
                continue
            for connection_id in node.connections:
                conn_pos = self._states.get(connection_id)
                if conn_pos is None:
                    continue
                frame.edges.append(EdgeSegment(node.id, connection_id, pos.x, pos.y, conn_pos.x, conn_pos.y))

        for node in self._nodes:
            pos = self._states.get(node.id)
            if pos is None:
                continue
            selected = node.id == self._selected_id
            frame.nodes.append(
                NodeSprite(
                    id=node.id,
                    name=node.name,
                    x=pos.x,
                    y=pos.y,
                    radius=node_radius(node.weight),
                    color=CATEGORY_COLORS.get(node.category, CATEGORY_COLORS[SkillCategory.TECHNICAL]),
                    label=node.name if (node.weight > 60 or selected) else None,
                    glow=selected,
                    border=node.weight > 70,
                )
            )
        return frame

    # ---- interaction -----------------------------------------------------

    def on_node_click(self, handler: NodeClickHandler) -> NodeClickHandler:
        self._click_handlers.append(handler)
        return handler

    def to_world(self, x: float, y: float) -> tuple[float, float]:
        return (float(x) - self._offset_x) / self._zoom, (float(y) - self._offset_y) / self._zoom

    def node_at(self, x: float, y: float) -> SkillNode | None:
        world_x, world_y = self.to_world(x, y)
        hit: SkillNode | None = None
        best = math.inf
        for node in self._nodes:
            pos = self._states.get(node.id)
            if pos is None:
                continue
            distance = math.hypot(pos.x - world_x, pos.y - world_y)
            if distance < node_radius(node.weight) and distance < best:
                best = distance
                hit = node
        return hit

    def click(self, x: float, y: float) -> SkillNode | None:
        hit = self.node_at(x, y)
        self._selected_id = hit.id if hit is not None else None
        for handler in list(self._click_handlers):
            handler(hit)
        return hit

    def pan(self, dx: float, dy: float) -> None:
        self._offset_x += float(dx)
        self._offset_y += float(dy)

    def zoom(self, factor: float) -> float:
        self._zoom = max(MIN_ZOOM, min(MAX_ZOOM, self._zoom * float(factor)))
        return self._zoom

    def reset_view(self) -> None:
        self._zoom = 1.0
        self._offset_x = 0.0
        self._offset_y = 0.0
        self._selected_id = None

    # ---- lifecycle -------------------------------------------------------

    def start(self, nodes: Iterable[SkillNode], canvas_size: tuple[float, float]) -> asyncio.Task:
        """Load ``nodes`` and run the frame loop on the current event loop."""
        self.load(nodes, canvas_size)
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def join(self) -> None:
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    async def _run(self) -> None:
        while True:
            self.step()
            increment_metric("layout_frames_total")
            if self._on_frame is not None:
                await self._on_frame(self.render())
            await asyncio.sleep(self.frame_interval_sec)
