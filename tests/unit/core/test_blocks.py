"""Unit tests for core/blocks.py"""

import copy

import pytest

from postingest.core.blocks import LENIENT, STRICT, default_block, repair_body


def all_keys(body: list[dict]) -> list[str]:
    """Every block and span key of a repaired body, in order."""
    keys = []
    for block in body:
        keys.append(block["_key"])
        keys.extend(child["_key"] for child in block["children"])
    return keys


def _assert_default(body):
    assert len(body) == 1
    block = body[0]
    assert block["_type"] == "block"
    assert block["style"] == "normal"
    assert block["markDefs"] == []
    assert len(block["children"]) == 1
    child = block["children"][0]
    assert child == {"_type": "span", "_key": child["_key"], "text": "", "marks": []}
    assert block["_key"].strip() and child["_key"].strip()
    assert block["_key"] != child["_key"]


@pytest.mark.parametrize("raw", [[], None, "not a list", 42, {"_type": "block"}])
def test_repair_body_empty_or_non_list_yields_default_block(raw):
    """Anything that is not a non-empty list becomes one empty paragraph."""
    _assert_default(repair_body(raw))


def test_default_block_has_fresh_keys():
    assert default_block()["_key"] != default_block()["_key"]


def test_repair_body_keeps_existing_keys():
    raw = [{"_type": "block", "_key": "b1", "children": [{"_type": "span", "_key": "s1", "text": "hi"}]}]
    body = repair_body(raw)
    assert body[0]["_key"] == "b1"
    assert body[0]["children"][0]["_key"] == "s1"
    assert body[0]["children"][0]["text"] == "hi"


@pytest.mark.parametrize("bad_key", [None, "", "   ", 123])
def test_repair_body_replaces_unusable_keys(bad_key):
    raw = [{"_type": "block", "_key": bad_key, "children": [{"_type": "span", "_key": bad_key, "text": "x"}]}]
    body = repair_body(raw)
    keys = all_keys(body)
    assert all(isinstance(k, str) and k.strip() for k in keys)
    assert len(set(keys)) == 2


def test_repair_body_rekeys_duplicates():
    """Duplicate keys keep their first occurrence; later ones get fresh keys."""
    raw = [
        {"_key": "dup", "children": [{"_key": "dup", "text": "a"}, {"_key": "s", "text": "b"}]},
        {"_key": "dup", "children": [{"_key": "s", "text": "c"}]},
    ]
    body = repair_body(raw)
    assert body[0]["_key"] == "dup"
    assert body[0]["children"][1]["_key"] == "s"
    keys = all_keys(body)
    assert len(keys) == len(set(keys)) == 5


def test_repair_body_keys_unique_across_large_body():
    raw = [
        {"_key": "k" if i % 3 == 0 else None, "children": [{"text": str(j)} for j in range(5)]}
        for i in range(50)
    ]
    keys = all_keys(repair_body(raw))
    assert len(keys) == 50 * 6
    assert len(set(keys)) == len(keys)
    assert all(k.strip() for k in keys)


def test_repair_body_preserves_extra_fields():
    raw = [{
        "_type": "block", "_key": "b1", "style": "h2", "listItem": "bullet", "level": 1,
        "markDefs": [{"_key": "m1", "_type": "link", "href": "https://example.com"}],
        "children": [{"_type": "span", "_key": "s1", "text": "link", "marks": ["m1"], "custom": {"a": 1}}],
    }]
    block = repair_body(raw)[0]
    assert block["style"] == "h2"
    assert block["listItem"] == "bullet"
    assert block["level"] == 1
    assert block["markDefs"] == raw[0]["markDefs"]
    assert block["children"][0]["marks"] == ["m1"]
    assert block["children"][0]["custom"] == {"a": 1}


def test_repair_body_defaults_marks_and_types():
    raw = [{"markDefs": "oops", "children": [{"text": "t", "marks": None}]}]
    block = repair_body(raw)[0]
    assert block["_type"] == "block"
    assert block["markDefs"] == []
    assert block["children"][0]["_type"] == "span"
    assert block["children"][0]["marks"] == []


def test_repair_body_keeps_custom_block_type():
    block = repair_body([{"_type": "image", "_key": "img", "asset": {"_ref": "image-1"}}])[0]
    assert block["_type"] == "image"
    assert block["asset"] == {"_ref": "image-1"}
    assert block["children"] == []


def test_repair_body_does_not_mutate_input():
    raw = [{"children": [{"text": "a"}]}, "loose"]
    snapshot = copy.deepcopy(raw)
    repair_body(raw)
    assert raw == snapshot


# --- repair modes ---

def test_lenient_mode_wraps_unrecognized_nodes():
    body = repair_body(["plain text", 42, {"_key": "b", "children": ["child text", None]}], LENIENT)
    assert len(body) == 3
    assert body[0]["children"][0]["text"] == "plain text"
    assert body[1]["children"][0]["text"] == ""
    assert [c["text"] for c in body[2]["children"]] == ["child text", ""]
    keys = all_keys(body)
    assert len(keys) == len(set(keys))


def test_strict_mode_drops_unrecognized_nodes():
    body = repair_body(["x", {"_key": "k", "children": ["y", {"text": "z"}]}], STRICT)
    assert len(body) == 1
    assert body[0]["_key"] == "k"
    assert [c["text"] for c in body[0]["children"]] == ["z"]


def test_strict_mode_all_dropped_yields_default_block():
    _assert_default(repair_body(["x", 1, None], STRICT))
