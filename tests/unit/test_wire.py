# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the tagged-union reference codec."""

import json

import pytest

from macrogen.diagnostics import ExpansionContext
from macrogen.parser import parse_declaration
from macrogen.syntax import TypeDecl
from macrogen.wire import (
    EnumValue,
    KeyNotFoundError,
    TaggedUnionCodec,
    UnknownDiscriminatorError,
    WireFormatError,
)


def _codec(source: str, context: ExpansionContext | None = None) -> TaggedUnionCodec:
    declaration = parse_declaration(source)
    assert isinstance(declaration, TypeDecl)
    return TaggedUnionCodec.from_enum(declaration, context)


@pytest.fixture
def role_codec() -> TaggedUnionCodec:
    return _codec(
        "enum Role {\n"
        "    case nobody\n"
        "    case user(user: User)\n"
        "    case admin(user: User, level: Int)\n"
        "}"
    )


def test_ph6_wir_001_encode_puts_discriminator_first(role_codec: TaggedUnionCodec) -> None:
    encoded = role_codec.encode(
        EnumValue(case="admin", payload={"level": 3, "user": {"name": "ada"}})
    )

    assert encoded == {"type": "admin", "user": {"name": "ada"}, "level": 3}
    assert list(encoded) == ["type", "user", "level"]


def test_ph6_wir_002_case_without_payload_has_only_discriminator(
    role_codec: TaggedUnionCodec,
) -> None:
    assert role_codec.encode(EnumValue(case="nobody")) == {"type": "nobody"}
    assert role_codec.decode({"type": "nobody"}) == EnumValue(case="nobody")


def test_ph6_wir_003_text_round_trip(role_codec: TaggedUnionCodec) -> None:
    value = EnumValue(case="user", payload={"user": {"name": "ada"}})

    text = role_codec.dumps(value)

    assert json.loads(text) == {"type": "user", "user": {"name": "ada"}}
    assert role_codec.loads(text) == value


def test_ph6_wir_004_decode_ignores_undeclared_keys(role_codec: TaggedUnionCodec) -> None:
    value = role_codec.decode({"type": "user", "user": 1, "extra": True})

    assert value == EnumValue(case="user", payload={"user": 1})


def test_ph6_wir_005_missing_discriminator(role_codec: TaggedUnionCodec) -> None:
    with pytest.raises(KeyNotFoundError) as exc_info:
        role_codec.decode({"user": 1})

    assert exc_info.value.key == "type"
    assert exc_info.value.case is None


def test_ph6_wir_006_unknown_discriminator(role_codec: TaggedUnionCodec) -> None:
    with pytest.raises(UnknownDiscriminatorError) as exc_info:
        role_codec.decode({"type": "guest"})

    assert exc_info.value.value == "guest"
    assert exc_info.value.known == ["nobody", "user", "admin"]


def test_ph6_wir_007_missing_payload_key(role_codec: TaggedUnionCodec) -> None:
    with pytest.raises(KeyNotFoundError) as exc_info:
        role_codec.decode({"type": "admin", "user": 1})

    assert exc_info.value.key == "level"
    assert exc_info.value.case == "admin"

    with pytest.raises(KeyNotFoundError):
        role_codec.encode(EnumValue(case="user"))


def test_ph6_wir_008_non_object_and_invalid_json(role_codec: TaggedUnionCodec) -> None:
    with pytest.raises(WireFormatError):
        role_codec.loads("[1, 2]")
    with pytest.raises(WireFormatError):
        role_codec.loads("{not json")


def test_ph6_wir_009_invalid_cases_are_left_out() -> None:
    context = ExpansionContext()
    codec = _codec("enum Role {\n    case ok\n    case bad(User)\n}", context)

    assert codec.discriminators == ["ok"]
    assert len(context.diagnostics) == 1
    with pytest.raises(UnknownDiscriminatorError):
        codec.decode({"type": "bad"})


def test_ph6_wir_010_describe_lists_labels_and_types(role_codec: TaggedUnionCodec) -> None:
    assert role_codec.describe() == {
        "discriminator": "type",
        "cases": {
            "nobody": [],
            "user": [{"label": "user", "type": "User"}],
            "admin": [
                {"label": "user", "type": "User"},
                {"label": "level", "type": "Int"},
            ],
        },
    }


def test_ph6_wir_011_non_enum_is_rejected() -> None:
    declaration = parse_declaration("struct Role {\n}")

    assert isinstance(declaration, TypeDecl)
    with pytest.raises(WireFormatError):
        TaggedUnionCodec.from_enum(declaration)


def test_ph6_wir_012_backticked_names_use_plain_wire_keys() -> None:
    codec = _codec(
        "enum Token {\n"
        "    case `default`\n"
        "    case keyword(`for`: String)\n"
        "}"
    )

    assert codec.discriminators == ["default", "keyword"]
    assert codec.encode(EnumValue(case="default")) == {"type": "default"}
    assert codec.encode(EnumValue(case="keyword", payload={"for": "x"})) == {
        "type": "keyword",
        "for": "x",
    }
    assert codec.decode({"type": "keyword", "for": "y"}) == EnumValue(
        case="keyword", payload={"for": "y"}
    )
