"""Integrity codec and flow element model.

checksum/verify over canonical JSON, tab/node counting, payload validation.
"""

from __future__ import annotations

import copy
import json

import pytest

from nodered_mcp.backup.errors import InvalidPayload
from nodered_mcp.backup.flow_types import FlowElement
from nodered_mcp.backup.integrity import analyze, canonical_bytes, content_hash, verify

SAMPLE_FLOWS = [
    {"id": "tab1", "type": "tab", "label": "Flow 1"},
    {"id": "tab2", "type": "tab", "label": "Flow 2"},
    {"id": "sf1", "type": "subflow", "name": "Helper"},
    {"id": "n1", "type": "inject", "z": "tab1", "wires": [["n2"]]},
    {"id": "n2", "type": "function", "z": "tab1", "func": "return msg;", "wires": [["n3"]]},
    {"id": "n3", "type": "debug", "z": "tab1", "wires": []},
    {"id": "n4", "type": "mqtt-broker", "broker": "localhost"},
]


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------


def test_analyze_counts_tabs_and_nodes():
    a = analyze(SAMPLE_FLOWS)
    assert a.flows_count == 2
    # subflow definition and tabs are excluded; config nodes count
    assert a.nodes_count == 4
    assert a.size == len(canonical_bytes(SAMPLE_FLOWS))
    assert len(a.checksum) == 64


def test_analyze_empty_payload():
    a = analyze([])
    assert (a.flows_count, a.nodes_count, a.size) == (0, 0, 2)


def test_analyze_ignores_untyped_elements():
    a = analyze([{"id": "x"}, {"id": "y", "type": ""}, {"id": "z", "type": "debug"}])
    assert a.nodes_count == 1


def test_analyze_counts_agree_with_flow_elements():
    elements = FlowElement.parse_many(SAMPLE_FLOWS)
    a = analyze(SAMPLE_FLOWS)
    assert a.flows_count == sum(el.is_tab for el in elements)
    assert a.nodes_count == sum(el.is_node for el in elements)


def test_analyze_rejects_non_object_element():
    with pytest.raises(InvalidPayload, match="#1"):
        analyze([{"id": "t", "type": "tab"}, "stray"])


def test_analyze_rejects_non_string_type():
    with pytest.raises(InvalidPayload):
        analyze([{"id": "t", "type": ["tab"]}])


@pytest.mark.parametrize("payload", [{"flows": []}, "[]", None, 42])
def test_analyze_rejects_non_list(payload):
    with pytest.raises(InvalidPayload):
        analyze(payload)


def test_canonical_bytes_are_compact_and_key_sorted():
    raw = canonical_bytes([{"type": "tab", "id": "a"}])
    assert raw == b'[{"id":"a","type":"tab"}]'


def test_checksum_independent_of_key_order():
    reordered = [dict(reversed(list(el.items()))) for el in SAMPLE_FLOWS]
    assert content_hash(reordered) == content_hash(SAMPLE_FLOWS)


# ---------------------------------------------------------------------------
# verify
# ---------------------------------------------------------------------------


def test_verify_accepts_own_checksum():
    assert verify(SAMPLE_FLOWS, analyze(SAMPLE_FLOWS).checksum) is True


def test_verify_survives_pretty_printed_round_trip():
    reloaded = json.loads(json.dumps(SAMPLE_FLOWS, indent=2))
    assert verify(reloaded, analyze(SAMPLE_FLOWS).checksum) is True


@pytest.mark.parametrize(
    "mutate",
    [
        lambda p: p[3].__setitem__("type", "change"),
        lambda p: p.pop(),
        lambda p: p.append({"id": "extra", "type": "debug"}),
        lambda p: p[4].__setitem__("func", "return null;"),
        lambda p: p.reverse(),
    ],
)
def test_verify_rejects_mutations(mutate):
    checksum = analyze(SAMPLE_FLOWS).checksum
    mutated = copy.deepcopy(SAMPLE_FLOWS)
    mutate(mutated)
    assert verify(mutated, checksum) is False


def test_verify_unserializable_payload_is_false():
    assert verify([{"id": object()}], analyze(SAMPLE_FLOWS).checksum) is False


# ---------------------------------------------------------------------------
# FlowElement
# ---------------------------------------------------------------------------


def test_flow_element_keeps_type_specific_fields():
    el = FlowElement.model_validate({"id": "n2", "type": "function", "z": "tab1", "func": "return msg;"})
    assert el.is_node and not el.is_tab
    assert el.z == "tab1"
    assert el.model_extra["func"] == "return msg;"


def test_flow_element_tab_and_subflow():
    assert FlowElement(type="tab").is_tab
    assert not FlowElement(type="subflow").is_node


def test_parse_many_rejects_non_object_element():
    with pytest.raises(InvalidPayload, match="#1"):
        FlowElement.parse_many([{"type": "tab"}, "oops"])


def test_parse_many_rejects_non_list():
    with pytest.raises(InvalidPayload):
        FlowElement.parse_many({"error": "nope"})


def test_parse_many_rejects_non_string_type():
    with pytest.raises(InvalidPayload):
        FlowElement.parse_many([{"type": 7}])
