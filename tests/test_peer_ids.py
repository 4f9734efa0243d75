from __future__ import annotations

from core.peer_ids import expand_chat_id_variants, parse_chat_id


def test_parse_chat_id() -> None:
    assert parse_chat_id(" -100123 ") == -100123
    assert parse_chat_id("42") == 42
    assert parse_chat_id("") is None
    assert parse_chat_id("   ") is None
    assert parse_chat_id("@channel") is None
    assert parse_chat_id(None) is None


def test_expand_chat_id_variants_positive() -> None:
    variants = expand_chat_id_variants(123)
    assert variants == {123, -123, -1000000000123}


def test_expand_chat_id_variants_negative_100() -> None:
    variants = expand_chat_id_variants(-100987654321)
    assert -100987654321 in variants
    assert 987654321 in variants


def test_expand_chat_id_variants_plain_negative_chat() -> None:
    variants = expand_chat_id_variants(-4242)
    assert variants == {-4242, 4242}
