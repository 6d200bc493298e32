import pytest

from vgraph.candidates import collect_candidates
from vgraph.config import ReconstructConfig
from vgraph.edges import EdgeStats, find_closest_candidate, infer_edges, orient
from vgraph.errors import GeometryFault
from vgraph.schema import BBox, Point, StrokePath
from tests._factories import stroke, text


@pytest.fixture
def three():
    # 中心：A(20,10) B(120,10) C(120,110)
    return collect_candidates([text("A", 0, 0), text("B", 100, 0), text("C", 100, 100)])


def test_containment_hit_wins_over_closer_edge(three):
    a, b, _ = three
    # 点在 A 内，同时离 B 也很近
    assert find_closest_candidate(39, 10, three, 100) is a
    assert find_closest_candidate(100, 20, three, 100) is b  # 边界点算包含


def test_proximity_uses_distance_to_box_edge(three):
    a = three[0]
    assert find_closest_candidate(60, 10, three, 100) is a  # 距 A 20，距 B 40
    assert find_closest_candidate(20, 50, three, 100) is a  # 正下方 30


def test_threshold_boundary_is_exclusive(three):
    a = three[0]
    # 到 A 左边界正好 100：悬空
    assert find_closest_candidate(-100, 10, three, 100) is None
    assert find_closest_candidate(-99.5, 10, three, 100) is a


def test_diagonal_distance(three):
    # 到 A 左上角的距离 = hypot(60, 80) = 100
    assert find_closest_candidate(-60, -80, three, 100) is None
    assert find_closest_candidate(-59, -80, three, 100) is three[0]


def test_no_candidates_resolves_to_none():
    assert find_closest_candidate(0, 0, [], 100) is None


def test_direction_is_left_to_right_regardless_of_drawing_order(three):
    forward = infer_edges(three, [stroke(20, 10, 120, 10)])
    backward = infer_edges(three, [stroke(120, 10, 20, 10)])
    assert [(e.source, e.target) for e in forward] == [(0, 1)]
    assert [(e.source, e.target) for e in backward] == [(0, 1)]
    assert forward[0].origin == "stroke"


def test_vertical_tie_breaks_by_y(three):
    b, c = three[1], three[2]
    assert orient(c, b) == (b, c)
    edges = infer_edges(three, [stroke(120, 110, 120, 10)])
    assert [(e.source, e.target) for e in edges] == [(1, 2)]


def test_same_pair_yields_one_edge(three):
    stats = EdgeStats()
    edges = infer_edges(three, [stroke(20, 10, 120, 10), stroke(120, 12, 20, 12), stroke(20, 8, 120, 8)], stats=stats)
    assert len(edges) == 1
    assert stats.dropped["duplicate_pair"] == 2


def test_icon_sized_strokes_are_skipped(three):
    stats = EdgeStats()
    # 端点分别落在 A 与 B 内，但包围盒小于 10x10
    icon = StrokePath(bbox=BBox(left=35, top=5, width=8, height=8), length=60, start=Point(x=35, y=10), end=Point(x=101, y=10))
    assert infer_edges(three, [icon], stats=stats) == []
    assert stats.dropped["icon"] == 1


def test_wide_but_flat_stroke_is_not_an_icon(three):
    assert len(infer_edges(three, [stroke(20, 10, 120, 10)])) == 1


@pytest.mark.parametrize("length", [None, 0, 5])
def test_short_or_unmeasurable_strokes_are_skipped(three, length):
    stats = EdgeStats()
    s = stroke(20, 10, 120, 10)
    s = s.model_copy(update={"length": length})
    assert infer_edges(three, [s], stats=stats) == []
    assert stats.dropped["short"] == 1


def test_dangling_endpoint_drops_whole_stroke(three):
    stats = EdgeStats()
    assert infer_edges(three, [stroke(20, 10, 600, 10)], stats=stats) == []
    assert stats.dropped["unresolved"] == 1


def test_self_loop_is_dropped(three):
    stats = EdgeStats()
    assert infer_edges(three, [stroke(2, 2, 38, 18)], stats=stats) == []
    assert stats.dropped["self_loop"] == 1


def test_geometry_fault_is_isolated_per_stroke(three):
    broken = StrokePath(bbox=BBox(left=0, top=0, width=100, height=100), error="element detached")
    stats = EdgeStats()
    edges = infer_edges(three, [stroke(120, 10, 120, 110), broken, stroke(20, 10, 120, 10)], stats=stats)
    assert [(e.source, e.target) for e in edges] == [(1, 2), (0, 1)]
    assert [(f.stroke_index, str(f)) for f in stats.faults] == [(1, "element detached")]


def test_arbitrary_exception_from_live_stroke_is_isolated(three):
    class LiveStroke:
        def bounding_box(self):
            return BBox(left=0, top=0, width=100, height=20)

        def total_length(self):
            raise RuntimeError("Target closed")

        def point_at(self, fraction):
            raise AssertionError("not reached")

    stats = EdgeStats()
    edges = infer_edges(three, [LiveStroke(), stroke(120, 10, 120, 110)], stats=stats)
    assert [(e.source, e.target) for e in edges] == [(1, 2)]
    assert stats.dropped["fault"] == 1
    fault = stats.faults[0]
    assert isinstance(fault, GeometryFault)
    assert fault.stroke_index == 0
    assert str(fault) == "RuntimeError: Target closed"


def test_snapshot_only_samples_extremities():
    s = stroke(0, 0, 100, 0)
    assert s.point_at(0) == Point(x=0, y=0)
    assert s.point_at(1) == Point(x=100, y=0)
    with pytest.raises(GeometryFault):
        s.point_at(0.5)


def test_missing_endpoint_counts_as_fault(three):
    s = StrokePath(bbox=BBox(left=0, top=0, width=100, height=20), length=100)
    stats = EdgeStats()
    assert infer_edges(three, [s], stats=stats) == []
    assert stats.dropped["fault"] == 1


def test_custom_noise_distance(three):
    cfg = ReconstructConfig(noise_distance_px=10)
    # 终点距 B 右边界 20：默认阈值下可解析，阈值 10 时悬空
    assert len(infer_edges(three, [stroke(20, 10, 160, 10)])) == 1
    assert infer_edges(three, [stroke(20, 10, 160, 10)], cfg) == []
