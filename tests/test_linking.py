from vgraph.assemble import assemble_tree
from vgraph.candidates import collect_candidates
from vgraph.config import ReconstructConfig
from vgraph.edges import infer_edges
from vgraph.graph import LinkGraph
from vgraph.linking import best_left_parent, sort_by_x, spatial_fallback_link, spatial_metric
from tests._factories import stroke, text


def _parents(graph):
    return {e.target: e.source for e in graph.edges}


def test_orphan_is_linked_to_nearest_left_node():
    cands = collect_candidates([text("A", 0, 0), text("B", 100, 0), text("C", 200, 0)])
    graph = LinkGraph.from_edges(infer_edges(cands, [stroke(20, 10, 120, 10)]))
    added = spatial_fallback_link(cands, graph)
    assert [(e.source, e.target, e.origin) for e in added] == [(1, 2, "spatial")]
    assert _parents(graph) == {1: 0, 2: 1}
    assert assemble_tree(cands, graph).to_dict() == {
        "name": "A",
        "children": [{"name": "B", "children": [{"name": "C", "children": []}]}],
    }


def test_leftmost_node_is_never_linked():
    cands = collect_candidates([text("B", 100, 0), text("A", 0, 0)])
    graph = LinkGraph()
    spatial_fallback_link(cands, graph)
    assert graph.is_orphan(1)
    assert _parents(graph) == {0: 1}


def test_no_strictly_left_neighbour_stays_orphan():
    # 中心 x 相同：谁都不在对方左侧
    cands = collect_candidates([text("Top", 0, 0), text("Bottom", 0, 100)])
    graph = LinkGraph()
    assert spatial_fallback_link(cands, graph) == []
    assert graph.is_orphan(0) and graph.is_orphan(1)


def test_vertical_offset_is_penalised():
    # R(20,70) Pa(170,10) Pb(130,70) X(200,70)
    cands = collect_candidates([
        text("R", 0, 60),
        text("Pa", 150, 0),
        text("Pb", 110, 60),
        text("X", 180, 60),
    ])
    r, pa, pb, x = cands
    assert spatial_metric(pa, x, 0.5) > spatial_metric(pb, x, 0.5)
    assert spatial_metric(pa, x, 0.0) < spatial_metric(pb, x, 0.0)

    graph = LinkGraph()
    spatial_fallback_link(cands, graph)
    assert _parents(graph)[x.id] == pb.id

    graph = LinkGraph()
    spatial_fallback_link(cands, graph, ReconstructConfig(vertical_penalty=0.0))
    assert _parents(graph)[x.id] == pa.id


def test_existing_parent_is_never_reassigned():
    cands = collect_candidates([text("A", 0, 0), text("B", 100, 0), text("C", 200, 0)])
    # 唯一的线条直接连 A 与 C，B 比 A 更靠近 C
    graph = LinkGraph.from_edges(infer_edges(cands, [stroke(20, 10, 220, 10)]))
    before = list(graph.edges)
    added = spatial_fallback_link(cands, graph)
    assert graph.edges[: len(before)] == before
    assert [(e.source, e.target) for e in added] == [(0, 1)]
    assert _parents(graph) == {2: 0, 1: 0}


def test_best_left_parent_only_looks_before_index():
    cands = collect_candidates([text("A", 0, 0), text("B", 100, 0), text("C", 200, 0)])
    ordered = sort_by_x(cands)
    assert best_left_parent(ordered[2], ordered, 1, 0.5) is ordered[0]
    assert best_left_parent(ordered[0], ordered, 0, 0.5) is None


def test_sort_by_x_is_stable():
    cands = collect_candidates([text("first", 0, 50), text("second", 0, 0)])
    assert [c.text for c in sort_by_x(cands)] == ["first", "second"]
