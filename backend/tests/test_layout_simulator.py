import asyncio
import copy
import math
import random

import pytest

from app.careergraph.models import SkillCategory, SkillNode
from app.layout.simulator import ForceLayoutSimulator, ForceParams, node_radius


def _node(node_id: str, weight: float = 50.0, connections=None, category=SkillCategory.TECHNICAL) -> SkillNode:
    return SkillNode(
        id=node_id,
        name=node_id.title(),
        category=category,
        weight=weight,
        connections=list(connections or []),
    )


def _distance(sim: ForceLayoutSimulator, a: str, b: str) -> float:
    pa, pb = sim.position(a), sim.position(b)
    return math.hypot(pa.x - pb.x, pa.y - pb.y)


def test_nodes_start_on_a_ring_around_the_center():
    sim = ForceLayoutSimulator(rng=random.Random(3))
    nodes = [_node(f"n{i}") for i in range(6)]
    sim.load(nodes, (1000, 800))

    for node in nodes:
        state = sim.position(node.id)
        radius = math.hypot(state.x - 500, state.y - 400)
        assert 150 <= radius <= 250
        assert state.vx == 0 and state.vy == 0


def test_unconnected_nodes_repel_until_out_of_range():
    sim = ForceLayoutSimulator(params=ForceParams(centering_strength=0.0))
    sim.load([_node("a"), _node("b")], (1000, 1000))
    sim.place("a", 490, 500)
    sim.place("b", 510, 500)

    previous = _distance(sim, "a", "b")
    for _ in range(50000):
        sim.step()
        current = _distance(sim, "a", "b")
        assert current > previous
        previous = current
        if current > 200:
            break
    assert previous > 200


def test_default_centering_holds_lone_pair_near_equilibrium():
    sim = ForceLayoutSimulator()
    sim.load([_node("a"), _node("b")], (800, 500))
    sim.place("a", 390, 250)
    sim.place("b", 410, 250)

    for _ in range(20000):
        sim.step()

    # repulsion 100/d^2 balances centering 0.0001 * d/2 at d = cbrt(2e6)
    assert _distance(sim, "a", "b") == pytest.approx(126.0, abs=2.0)


def test_connected_nodes_are_pulled_together():
    sim = ForceLayoutSimulator()
    sim.load([_node("a", connections=["b"]), _node("b", connections=["a"])], (800, 500))
    sim.place("a", 100, 250)
    sim.place("b", 700, 250)

    start = _distance(sim, "a", "b")
    for _ in range(300):
        sim.step()
    assert _distance(sim, "a", "b") < start


def test_dangling_connections_are_skipped():
    sim = ForceLayoutSimulator()
    sim.load([_node("a", connections=["ghost"])], (800, 500))
    sim.step()

    frame = sim.render()
    assert frame.edges == []
    assert [sprite.id for sprite in frame.nodes] == ["a"]


def test_positions_are_clamped_to_margin():
    sim = ForceLayoutSimulator()
    sim.load([_node("a")], (800, 500))
    sim.place("a", -300, 9000)
    sim.step()

    state = sim.position("a")
    assert state.x == 50
    assert state.y == 450


def test_simulation_never_mutates_skill_nodes():
    nodes = [_node("a", connections=["b", "ghost"]), _node("b", weight=90)]
    before = copy.deepcopy([node.to_dict() for node in nodes])

    sim = ForceLayoutSimulator(rng=random.Random(1))
    sim.load(nodes, (800, 500))
    for _ in range(20):
        sim.step()
    sim.render()
    sim.click(0, 0)

    assert [node.to_dict() for node in nodes] == before


def test_render_styles_nodes_by_weight_and_selection():
    sim = ForceLayoutSimulator()
    sim.load(
        [
            _node("low", weight=0, category=SkillCategory.SOFT),
            _node("mid", weight=65),
            _node("high", weight=100, connections=["low"]),
        ],
        (800, 500),
    )
    sim.place("low", 100, 100)
    sim.place("mid", 300, 300)
    sim.place("high", 600, 300)
    sim.click(100, 100)

    sprites = {sprite.id: sprite for sprite in sim.render().nodes}
    assert sprites["low"].radius == 5
    assert sprites["low"].label == "Low"
    assert sprites["low"].glow is True
    assert sprites["low"].color == "#10B981"
    assert sprites["mid"].label == "Mid"
    assert sprites["mid"].border is False
    assert sprites["high"].radius == 25
    assert sprites["high"].border is True
    assert sprites["high"].glow is False

    edges = sim.render().edges
    assert [(e.source, e.target) for e in edges] == [("high", "low")]


def test_click_picks_nearest_node_within_radius_and_notifies():
    sim = ForceLayoutSimulator()
    sim.load([_node("a", weight=100), _node("b", weight=100)], (800, 500))
    sim.place("a", 100, 100)
    sim.place("b", 120, 100)

    seen = []
    sim.on_node_click(seen.append)

    hit = sim.click(115, 100)
    assert hit.id == "b"
    assert sim.selected_id == "b"

    assert sim.click(400, 400) is None
    assert sim.selected_id is None
    assert [node.id if node else None for node in seen] == ["b", None]


def test_click_accounts_for_pan_and_zoom():
    sim = ForceLayoutSimulator()
    sim.load([_node("a", weight=0)], (800, 500))
    sim.place("a", 100, 100)

    sim.zoom(2)
    sim.pan(50, 0)

    assert sim.node_at(250, 200).id == "a"
    assert sim.node_at(100, 100) is None


def test_zoom_is_clamped():
    sim = ForceLayoutSimulator()
    assert sim.zoom(10) == 3.0
    assert sim.zoom(0.001) == 0.5
    sim.pan(10, -5)
    sim.reset_view()
    assert sim.zoom_level == 1.0
    assert sim.offset == (0.0, 0.0)


def test_node_radius():
    assert node_radius(0) == 5
    assert node_radius(50) == 15
    assert node_radius(100) == 25


def test_reload_keeps_positions_of_surviving_nodes():
    sim = ForceLayoutSimulator(rng=random.Random(5))
    sim.load([_node("a"), _node("b")], (800, 500))
    sim.place("a", 123, 321)
    sim.load([_node("a"), _node("c")], (800, 500))

    assert sim.position("a").x == 123
    assert sim.position("b") is None
    assert sim.position("c") is not None


@pytest.mark.asyncio
async def test_start_runs_frames_until_stopped():
    frames = []

    async def _on_frame(frame):
        frames.append(frame.frame_index)

    sim = ForceLayoutSimulator(frame_interval_sec=0.001, on_frame=_on_frame)
    sim.start([_node("a"), _node("b")], (800, 500))
    assert sim.running

    await asyncio.sleep(0.05)
    sim.stop()
    await sim.join()

    assert not sim.running
    assert frames
    assert frames == sorted(frames)
    stopped_at = sim.frame_index
    await asyncio.sleep(0.01)
    assert sim.frame_index == stopped_at


@pytest.mark.asyncio
async def test_stop_before_start_is_harmless():
    sim = ForceLayoutSimulator()
    sim.stop()
    await sim.join()
    assert not sim.running
