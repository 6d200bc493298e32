from vgraph.assemble import assemble_tree, build_tree, select_root
from vgraph.candidates import collect_candidates
from vgraph.graph import LinkGraph
from vgraph.schema import DirectedEdge
from tests._factories import text


def _graph(*pairs):
    return LinkGraph.from_edges(DirectedEdge(source=s, target=t) for s, t in pairs)


def _names(tree):
    out = [tree.name]
    for c in tree.children:
        out.extend(_names(c))
    return out


def test_root_is_leftmost_orphan():
    cands = collect_candidates([text("Child", 0, 0), text("Root", 100, 0), text("Leaf", 200, 0)])
    graph = _graph((1, 0), (1, 2))
    assert select_root(cands, graph).text == "Root"


def test_no_candidates_has_no_root():
    assert select_root([], LinkGraph()) is None
    assert assemble_tree([], LinkGraph()) is None


def test_children_are_ordered_top_to_bottom():
    cands = collect_candidates([
        text("Root", 0, 100),
        text("Low", 200, 300),
        text("High", 200, 0),
        text("Mid", 200, 120),
    ])
    tree = assemble_tree(cands, _graph((0, 1), (0, 2), (0, 3)))
    assert tree.name == "Root"
    assert [c.name for c in tree.children] == ["High", "Mid", "Low"]


def test_cycle_falls_back_to_leftmost_and_terminates():
    cands = collect_candidates([text("A", 0, 0), text("B", 100, 0), text("C", 200, 0)])
    graph = _graph((0, 1), (1, 2), (2, 0))
    assert select_root(cands, graph).text == "A"
    tree = build_tree(cands[0], cands, graph)
    assert _names(tree) == ["A", "B", "C"]


def test_node_with_two_parents_appears_once():
    cands = collect_candidates([
        text("Root", 0, 50),
        text("Up", 100, 0),
        text("Down", 100, 100),
        text("Shared", 200, 50),
    ])
    tree = assemble_tree(cands, _graph((0, 1), (0, 2), (1, 3), (2, 3)))
    names = _names(tree)
    assert sorted(names) == ["Down", "Root", "Shared", "Up"]
    assert names.count("Shared") == 1
    assert [c.name for c in tree.children] == ["Up", "Down"]
    assert tree.children[0].children[0].name == "Shared"


def test_unreachable_nodes_are_left_out():
    cands = collect_candidates([text("Root", 0, 0), text("Island", 100, 500), text("Sea", 200, 500)])
    tree = assemble_tree(cands, _graph((1, 2)))
    assert tree.to_dict() == {"name": "Root", "children": []}


def test_single_candidate_is_a_leaf_root():
    cands = collect_candidates([text("Only", 10, 10)])
    tree = assemble_tree(cands, LinkGraph())
    assert tree.to_dict() == {"name": "Only", "children": []}
    assert tree.count() == 1


def test_shared_child_stays_with_first_subtree_in_depth_first_order():
    # Root → X、Root → Y、X → Y：先深入 X，Y 归 X 所有
    cands = collect_candidates([text("Root", 0, 50), text("X", 100, 0), text("Y", 200, 100)])
    tree = assemble_tree(cands, _graph((0, 1), (0, 2), (1, 2)))
    assert tree.to_dict() == {
        "name": "Root",
        "children": [{"name": "X", "children": [{"name": "Y", "children": []}]}],
    }


def test_long_chain_builds_without_recursion():
    n = 3000
    cands = collect_candidates([text(f"n{i}", i * 100, 0) for i in range(n)])
    graph = _graph(*[(i, i + 1) for i in range(n - 1)])
    tree = build_tree(cands[0], cands, graph)
    assert tree.count() == n
    node, depth = tree, 1
    while node.children:
        node, depth = node.children[0], depth + 1
    assert (depth, node.name) == (n, f"n{n - 1}")
