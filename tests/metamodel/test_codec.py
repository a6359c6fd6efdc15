import json
import logging

import pytest

from pflow.config import Settings
from pflow.core.cid import Cid, identify
from pflow.core.errors import FieldShapeMismatch, MalformedWire
from pflow.core.serde import OversizedInt, json_loads
from pflow.metamodel.codec import (
    IssueKind,
    WireSchema,
    decode_model,
    detect_schema,
    encode_model,
    model_cid,
    normalize_document,
    to_document,
)
from pflow.metamodel.schema import Arrow, Model, Token

EXPECTED_EXPORT = (
    '{"@context":"https://pflow.xyz/schema","@type":"PetriNet",'
    '"arcs":[{"@type":"Arrow","source":"p0","target":"t0","weight":[1]},'
    '{"@type":"Arrow","source":"t0","target":"p0"}],'
    '"places":{"p0":{"@type":"Place","initial":[1],"offset":0,"x":10,"y":20}},'
    '"token":["https://pflow.xyz/tokens/black"],'
    '"transitions":{"t0":{"@type":"Transition","x":50,"y":20}}}'
)


def make_small_model() -> Model:
    m = Model()
    m.add_place("p0", initial=1, x=10, y=20)
    m.add_transition("t0", x=50, y=20)
    m.add_arrow("p0", "t0", weight=1)
    m.add_arrow("t0", "p0")
    return m


def make_zero_model() -> Model:
    m = Model(model_type="PetriNet")
    m.add_place("a", x=1, y=2)
    m.add_place("b", x=3, y=4)
    m.add_transition("t", x=5, y=6)
    m.add_arrow("a", "t")
    m.add_arrow("t", "b")
    return m


def test_export_bytes_are_canonical_literal() -> None:
    assert encode_model(make_small_model()) == EXPECTED_EXPORT.encode("utf-8")


def test_zero_elision_roundtrip() -> None:
    m = make_zero_model()
    wire = encode_model(m)
    doc = json.loads(wire)

    for entry in doc["places"].values():
        assert "initial" not in entry
        assert "capacity" not in entry
        assert entry["@type"] == "Place"
    for arc in doc["arcs"]:
        assert "weight" not in arc
        assert "inhibitTransition" not in arc
        assert arc["@type"] == "Arrow"
    for entry in doc["transitions"].values():
        assert entry["@type"] == "Transition"

    back = decode_model(wire)
    assert back == m
    assert back.places["a"].initial == Token()
    assert back.arrows[0].weight == Token()
    assert back.arrows[0].inhibit is False


def test_nonzero_roundtrip_keeps_every_component() -> None:
    m = Model()
    m.add_place("p", initial=[2, 0], capacity=5)
    m.add_transition("t")
    m.add_arrow("p", "t", weight=[0, 3], inhibit=True)
    doc = to_document(m)
    assert doc["places"]["p"]["initial"] == [2, 0]
    assert doc["places"]["p"]["capacity"] == [5]
    assert doc["arcs"][0]["weight"] == [0, 3]
    assert doc["arcs"][0]["inhibitTransition"] is True
    assert decode_model(encode_model(m)) == m


def test_arrow_order_preserved() -> None:
    m = Model()
    for label in ("A", "B", "C", "D"):
        m.add_place(label)
    m.add_arrow("A", "B")
    m.add_arrow("C", "D")
    back = decode_model(encode_model(m))
    assert [(a.source, a.target) for a in back.arrows] == [("A", "B"), ("C", "D")]

    m2 = Model()
    m2.add_arrow("C", "D")
    m2.add_arrow("A", "B")
    back2 = decode_model(encode_model(m2))
    assert [(a.source, a.target) for a in back2.arrows] == [("C", "D"), ("A", "B")]


def test_missing_capacity_decodes_to_zero_without_error() -> None:
    wire = b'{"places": {"p0": {"offset": 0, "initial": [3], "x": 1, "y": 1}}}'
    result = normalize_document(json.loads(wire))
    assert result.issues == ()
    m = decode_model(wire)
    assert m.places["p0"].capacity == Token()
    assert m.places["p0"].initial == Token.of(3)


def test_everything_optional() -> None:
    m = decode_model(b"{}")
    assert m.model_type == ""
    assert m.places == {} and m.transitions == {} and m.arrows == []

    m = decode_model(b'{"places": {"p": {}}, "transitions": {"t": {}}, "arcs": [{}]}')
    assert m.places["p"].offset == 0
    assert m.transitions["t"].x == 0
    assert m.arrows == [Arrow(source="", target="")]


def test_import_schema_decode() -> None:
    wire = json.dumps(
        {
            "modelType": "workflow",
            "places": {"p0": {"offset": 2, "initial": 1, "capacity": 4, "x": 10, "y": 20}},
            "transitions": {"t0": {"x": 50, "y": 20}},
            "arcs": [
                {"source": "p0", "target": "t0", "weight": 2, "inhibit": True},
                {"source": "t0", "target": "p0"},
            ],
        }
    )
    m = decode_model(wire)
    assert m.model_type == "workflow"
    p = m.places["p0"]
    assert (p.offset, p.initial, p.capacity, p.x, p.y) == (2, Token.of(1), Token.of(4), 10, 20)
    assert m.arrows[0].weight == Token.of(2)
    assert m.arrows[0].inhibit is True
    assert m.arrows[1].weight.is_zero
    assert detect_schema(json.loads(wire)) is WireSchema.IMPORT


def test_import_schema_encode_roundtrip() -> None:
    m = make_small_model()
    m.model_type = "workflow"
    m.add_arrow("p0", "t0", inhibit=True)
    doc = to_document(m, WireSchema.IMPORT)
    assert doc["modelType"] == "workflow"
    assert doc["places"]["p0"] == {"offset": 0, "x": 10, "y": 20, "initial": 1}
    assert doc["transitions"]["t0"] == {"x": 50, "y": 20}
    assert doc["arcs"][0] == {"source": "p0", "target": "t0", "weight": 1}
    assert doc["arcs"][2] == {"source": "p0", "target": "t0", "inhibit": True}
    assert decode_model(encode_model(m, WireSchema.IMPORT)) == m


def test_model_type_sources() -> None:
    assert decode_model(b'{"@type": "PetriNet"}').model_type == "PetriNet"
    assert decode_model(b'{"modelType": "a", "@type": "PetriNet"}').model_type == "a"

    m = Model(model_type="")
    assert "@type" not in to_document(m)
    assert decode_model(encode_model(m)) == m


def test_unknown_metadata_ignored() -> None:
    wire = json.dumps(
        {
            "@context": "https://example.org/other",
            "@type": "PetriNet",
            "@id": "urn:x",
            "token": ["https://pflow.xyz/tokens/black"],
            "version": 3,
            "places": {"p": {"@type": "Place", "offset": 0, "label": "ignored"}},
            "arcs": [],
        }
    )
    result = normalize_document(json.loads(wire))
    assert result.issues == ()
    assert result.schema is WireSchema.EXPORT
    assert list(result.model.places) == ["p"]


@pytest.mark.parametrize("data", [b"not json", b"[1, 2]", b'"str"', b"3", b"null"])
def test_malformed_top_level(data: bytes) -> None:
    with pytest.raises(MalformedWire):
        decode_model(data)


def test_field_shape_mismatch_lenient_logs_and_defaults(caplog) -> None:
    doc = {
        "places": {"p0": {"offset": "3", "initial": [1, "x"], "x": True, "y": 2}},
        "arcs": [{"source": "p0", "target": 7, "inhibitTransition": "yes"}],
    }
    with caplog.at_level(logging.WARNING, logger="pflow.metamodel.codec"):
        result = normalize_document(doc)

    p = result.model.places["p0"]
    assert (p.offset, p.initial, p.x, p.y) == (0, Token(), 0, 2)
    a = result.model.arrows[0]
    assert (a.source, a.target, a.inhibit) == ("p0", "", False)

    paths = [i.path for i in result.issues]
    assert paths == [
        "places.p0.offset",
        "places.p0.initial",
        "places.p0.x",
        "arcs[0].target",
        "arcs[0].inhibitTransition",
    ]
    assert all(i.kind is IssueKind.FIELD_SHAPE_MISMATCH for i in result.issues)
    assert "places.p0.offset" in caplog.text


def test_field_shape_mismatch_strict_raises() -> None:
    wire = b'{"places": {"p0": {"offset": "3"}}}'
    with pytest.raises(FieldShapeMismatch) as ei:
        decode_model(wire, strict=True)
    assert ei.value.path == "places.p0.offset"

    with pytest.raises(FieldShapeMismatch):
        decode_model(wire, settings=Settings(strict_fields=True))

    # Explicit argument overrides settings.
    assert decode_model(wire, strict=False, settings=Settings(strict_fields=True)).places["p0"].offset == 0


def test_wrongly_shaped_collections_and_entries() -> None:
    doc = {
        "places": ["p0"],
        "transitions": {"t0": 5, "t1": {"x": 1}},
        "arcs": {"source": "a"},
    }
    result = normalize_document(doc)
    assert result.model.places == {}
    assert list(result.model.transitions) == ["t1"]
    assert result.model.arrows == []
    assert [i.path for i in result.issues] == ["places", "transitions.t0", "arcs"]


def test_out_of_range_token_is_mismatch() -> None:
    result = normalize_document({"arcs": [{"source": "a", "target": "b", "weight": [2**63]}]})
    assert result.model.arrows[0].weight == Token()
    assert result.issues[0].path == "arcs[0].weight"


def test_indent_export_is_pretty_and_decodable() -> None:
    m = make_small_model()
    pretty = encode_model(m, indent=2)
    assert pretty.startswith(b'{\n  "@context"')
    assert decode_model(pretty) == m
    assert encode_model(m, settings=Settings(export_indent=2)) == pretty


def test_model_cid_is_identifier_of_export_bytes() -> None:
    m = make_small_model()
    c = model_cid(m)
    assert isinstance(c, Cid)
    assert c == identify(EXPECTED_EXPORT.encode("utf-8"))
    assert model_cid(decode_model(encode_model(m))) == c


def test_model_cid_ignores_map_order_and_tracks_mutation() -> None:
    a, b = Model(), Model()
    a.add_place("p0", offset=0)
    a.add_place("p1", offset=1)
    b.add_place("p1", offset=1)
    b.add_place("p0", offset=0)
    assert model_cid(a) == model_cid(b)

    before = model_cid(a)
    a.add_transition("t0")
    assert model_cid(a) != before


def test_model_cid_respects_multibase_setting() -> None:
    m = make_small_model()
    flickr = model_cid(m, settings=Settings(multibase="base58flickr"))
    assert str(flickr).startswith("Z")
    assert str(model_cid(m)).startswith("z")
    assert flickr == model_cid(m)


def test_integer_beyond_conversion_limit_is_field_mismatch() -> None:
    wire = b'{"places": {"p0": {"offset": 1' + b"0" * 5000 + b', "x": 3}}}'
    doc = json_loads(wire)
    assert isinstance(doc["places"]["p0"]["offset"], OversizedInt)
    result = normalize_document(doc)
    assert [i.path for i in result.issues] == ["places.p0.offset"]

    m = decode_model(wire)
    assert m.places["p0"].offset == 0
    assert m.places["p0"].x == 3

    with pytest.raises(FieldShapeMismatch, match="outside int64"):
        decode_model(wire, strict=True)


def test_null_inhibit_transition_falls_back_to_inhibit() -> None:
    wire = b'{"arcs": [{"source": "p", "target": "t", "inhibitTransition": null, "inhibit": true}]}'
    result = normalize_document(json.loads(wire))
    assert result.issues == ()
    assert result.model.arrows[0].inhibit is True
