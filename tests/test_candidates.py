from vgraph.candidates import CollectStats, collect_candidates, dedup_key
from vgraph.classify import Verdict
from tests._factories import text


def test_ids_are_dense_in_discovery_order():
    cands = collect_candidates([text("A", 0, 0), text("→", 50, 0), text("B", 100, 0), text("C", 200, 0)])
    assert [(c.id, c.text) for c in cands] == [(0, "A"), (1, "B"), (2, "C")]


def test_text_is_trimmed():
    cands = collect_candidates([text("  Root \n", 0, 0)])
    assert cands[0].text == "Root"


def test_duplicate_layers_collapse_regardless_of_order():
    a = text("Topic", 10.2, 5.4)
    b = text(" Topic ", 9.8, 4.6, width=80)
    assert dedup_key(a) == dedup_key(b) == (10, 5, "Topic")
    for order in ([a, b], [b, a]):
        stats = CollectStats()
        cands = collect_candidates(order, stats=stats)
        assert len(cands) == 1
        assert stats.duplicates == 1
    # 先到先得：保留第一个元素的几何
    assert collect_candidates([b, a])[0].bbox.width == 80


def test_same_text_at_different_positions_is_kept():
    cands = collect_candidates([text("Same", 0, 0), text("Same", 0, 40)])
    assert len(cands) == 2


def test_half_pixel_rounds_up():
    assert dedup_key(text("A", 0.5, 2.5))[:2] == (1, 3)


def test_svg_text_pass_runs_before_containers():
    cands = collect_candidates([
        text("Container label", 0, 0, source="container", group=0),
        text("Svg label", 100, 0),
    ])
    assert [c.text for c in cands] == ["Svg label", "Container label"]
    assert cands[1].source == "container"


def test_container_contributes_first_usable_option_only():
    els = [
        text("", 0, 0, source="container", group=3),
        text("Inner title", 0, 0, source="container", group=3),
        text("Inner subtitle", 0, 20, source="container", group=3),
        text("Other node", 200, 0, source="container", group=4),
    ]
    stats = CollectStats()
    cands = collect_candidates(els, stats=stats)
    assert [c.text for c in cands] == ["Inner title", "Other node"]
    assert stats.group_skipped == 1
    assert stats.verdicts[Verdict.REJECTED_EMPTY] == 1


def test_arrow_glyph_never_becomes_candidate():
    cands = collect_candidates([text("→", 0, 0), text("Idea", 100, 0)])
    assert [c.text for c in cands] == ["Idea"]


def test_empty_surface_is_not_an_error():
    assert collect_candidates([]) == []
    assert collect_candidates([text("", 0, 0), text("12", 0, 30)]) == []


def test_stats_to_dict_has_every_verdict():
    stats = CollectStats()
    collect_candidates([text("A", 0, 0), text("B", 0, 0, visibility="hidden")], stats=stats)
    d = stats.to_dict()
    assert d["scanned"] == 2
    assert d["accepted"] == 1
    assert d["rejected_invisible"] == 1
    assert d["rejected_size"] == 0
