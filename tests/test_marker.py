# tests/test_marker.py

from wordref.models.marker import GroupMarker, SingleMarker, decode_tag, encode_tag, is_valid_id


def test_decode_single_and_group():
    assert decode_tag("cite:smith2020") == SingleMarker("smith2020")
    assert decode_tag("group:a,b,a") == GroupMarker(("a", "b", "a"))


def test_decode_rejects_foreign_and_malformed_tags():
    assert decode_tag("other:thing") is None
    assert decode_tag("") is None
    assert decode_tag(None) is None
    assert decode_tag("cite:") is None
    assert decode_tag("cite:has space") is None


def test_group_keeps_only_valid_ids():
    assert decode_tag("group:a,,b c,d") == GroupMarker(("a", "d"))
    assert decode_tag("group:") == GroupMarker(())


def test_encode_matches_wire_format():
    assert encode_tag(SingleMarker("x")) == "cite:x"
    assert encode_tag(GroupMarker(("x", "y"))) == "group:x,y"
    assert decode_tag(encode_tag(GroupMarker(("x", "y")))).ids == ("x", "y")


def test_id_validity():
    assert is_valid_id("smith2020")
    assert not is_valid_id("a:b")
    assert not is_valid_id("a,b")
    assert not is_valid_id("")
