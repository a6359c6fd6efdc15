from pflow.metamodel.schema import Model
from pflow.metamodel.validate import StructureIssueKind, check_structure


def _net() -> Model:
    m = Model()
    m.add_place("p0", initial=1)
    m.add_place("p1")
    m.add_transition("t0")
    return m


def test_well_formed_net_has_no_issues() -> None:
    m = _net()
    m.add_arrow("p0", "t0", weight=1)
    m.add_arrow("t0", "p1")
    m.add_arrow("p1", "t0", inhibit=True)
    assert check_structure(m) == []


def test_label_collision_reported_sorted() -> None:
    m = _net()
    m.add_transition("p1")
    m.add_transition("p0")
    issues = check_structure(m)
    assert [(i.kind, i.subject) for i in issues] == [
        (StructureIssueKind.LABEL_COLLISION, "p0"),
        (StructureIssueKind.LABEL_COLLISION, "p1"),
    ]


def test_unknown_endpoint_skips_other_checks() -> None:
    m = _net()
    m.add_arrow("ghost", "p0", inhibit=True)
    issues = check_structure(m)
    assert len(issues) == 1
    assert issues[0].kind is StructureIssueKind.UNKNOWN_ENDPOINT
    assert issues[0].subject == "arcs[0]"
    assert "ghost" in issues[0].detail


def test_place_to_place_and_transition_to_transition() -> None:
    m = _net()
    m.add_transition("t1")
    m.add_arrow("p0", "p1")
    m.add_arrow("t0", "t1")
    issues = check_structure(m)
    assert [(i.kind, i.subject) for i in issues] == [
        (StructureIssueKind.NOT_BIPARTITE, "arcs[0]"),
        (StructureIssueKind.NOT_BIPARTITE, "arcs[1]"),
    ]


def test_inhibitor_must_start_at_place() -> None:
    m = _net()
    m.add_arrow("t0", "p0", inhibit=True)
    issues = check_structure(m)
    assert [i.kind for i in issues] == [StructureIssueKind.INHIBITOR_FROM_TRANSITION]


def test_check_does_not_mutate_or_block_encoding() -> None:
    from pflow.metamodel.codec import decode_model, encode_model

    m = _net()
    m.add_arrow("p0", "p1")
    before = m.model_copy(deep=True)
    assert check_structure(m)
    assert m == before
    assert decode_model(encode_model(m)) == m
