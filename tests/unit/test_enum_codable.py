# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for tagged-union Codable generation."""

import pytest

from macrogen.diagnostics import ExpansionContext
from macrogen.enum_codable import EnumCodable, collect_cases, is_simple_type
from macrogen.parser import parse_declaration, parse_type
from macrogen.printer import normalize_whitespace, render
from macrogen.syntax import NamedType, SourcePosition, TypeDecl

_ROLE = (
    "enum Role {\n"
    "    case nobody\n"
    "    case user(user: User)\n"
    "    case admin(user: User)\n"
    "}"
)


def _codable(source: str) -> tuple[EnumCodable, ExpansionContext]:
    context = ExpansionContext()
    return EnumCodable(parse_declaration(source), context), context


def test_ph4_enc_001_generates_four_members_in_order() -> None:
    codable, context = _codable(_ROLE)

    members = codable.generate()

    assert not context.diagnostics
    assert [render(m).split("\n")[0] for m in members] == [
        "enum SubType: String, Codable {",
        "private enum CodingKeys: String, CodingKey {",
        "public func encode(to encoder: Encoder) throws {",
        "public init(from decoder: Decoder) throws {",
    ]


def test_ph4_enc_002_discriminators_and_keys_are_reverse_sorted() -> None:
    # Reverse lexicographic order is what existing generated code relies on,
    # even though declaration order would read more naturally.
    codable, _ = _codable(_ROLE)
    subtype, keys, _, _ = codable.generate()

    assert codable.discriminators() == ["user", "nobody", "admin"]
    assert codable.coding_keys() == ["user", "type"]
    assert render(subtype) == "enum SubType: String, Codable {\n    case user, nobody, admin\n}"
    assert render(keys) == (
        "private enum CodingKeys: String, CodingKey {\n    case user, type\n}"
    )


def test_ph4_enc_003_encode_writes_discriminator_then_payload() -> None:
    codable, _ = _codable(_ROLE)
    encode = codable.generate()[2]

    assert render(encode) == (
        "public func encode(to encoder: Encoder) throws {\n"
        "    var container = encoder.container(keyedBy: CodingKeys.self)\n"
        "    switch self {\n"
        "    case .nobody:\n"
        "        try container.encode(SubType.nobody, forKey: .type)\n"
        "    case .user(let user):\n"
        "        try container.encode(SubType.user, forKey: .type)\n"
        "        try container.encode(user, forKey: .user)\n"
        "    case .admin(let user):\n"
        "        try container.encode(SubType.admin, forKey: .type)\n"
        "        try container.encode(user, forKey: .user)\n"
        "    }\n"
        "}"
    )


def test_ph4_enc_004_decode_reads_discriminator_then_payload() -> None:
    codable, _ = _codable(_ROLE)
    decode = codable.generate()[3]

    assert render(decode) == (
        "public init(from decoder: Decoder) throws {\n"
        "    let container = try decoder.container(keyedBy: CodingKeys.self)\n"
        "    let subtype = try container.decode(SubType.self, forKey: .type)\n"
        "    switch subtype {\n"
        "    case .nobody:\n"
        "        self = .nobody\n"
        "    case .user:\n"
        "        let user = try container.decode(User.self, forKey: .user)\n"
        "        self = .user(user: user)\n"
        "    case .admin:\n"
        "        let user = try container.decode(User.self, forKey: .user)\n"
        "        self = .admin(user: user)\n"
        "    }\n"
        "}"
    )


def test_ph4_enc_005_several_values_and_nested_types() -> None:
    codable, context = _codable(
        "enum Event {\n"
        "    case moved(from: Point, to: Point), renamed(profile: User.Profile)\n"
        "}"
    )

    members = codable.generate()
    encode = normalize_whitespace(render(members[2]))
    decode = normalize_whitespace(render(members[3]))

    assert not context.diagnostics
    assert codable.coding_keys() == ["type", "to", "profile", "from"]
    assert "case .moved(let from, let to):" in encode
    assert "try container.encode(to, forKey: .to)" in encode
    assert "let profile = try container.decode(User.Profile.self, forKey: .profile)" in decode
    assert "self = .moved(from: from, to: to)" in decode


def test_ph4_enc_006_missing_label_is_diagnosed_and_case_is_skipped() -> None:
    codable, context = _codable(
        "enum Role {\n"
        "    case nobody\n"
        "    case bad(User)\n"
        "}"
    )

    members = codable.generate()

    assert len(context.diagnostics) == 1
    diagnostic = context.diagnostics[0]
    assert diagnostic.message_id.key == "enum-case-value-missing-label"
    assert diagnostic.position == SourcePosition(line=3, column=14)
    assert codable.discriminators() == ["nobody"]
    assert all("bad" not in render(member) for member in members)


@pytest.mark.parametrize(
    ("case", "key"),
    [
        ("case items(list: [Item])", "enum-case-value-type"),
        ("case boxed(value: Box<Int>)", "enum-case-value-type"),
        ("case maybe(value: Int?)", "enum-case-value-type"),
        ("case unnamed(_ value: Int)", "enum-case-value-missing-label"),
        ("case tagged(type: String)", "enum-case-value-reserved-label"),
        ("case both(_ items: [Int])", "enum-case-value-type"),
    ],
)
def test_ph4_enc_007_invalid_payloads_are_diagnosed(case: str, key: str) -> None:
    codable, context = _codable(f"enum Broken {{\n    case ok\n    {case}\n}}")

    codable.generate()

    assert [d.message_id.key for d in context.diagnostics] == [key]
    assert codable.discriminators() == ["ok"]


def test_ph4_enc_008_every_case_is_validated() -> None:
    context = ExpansionContext()
    declaration = parse_declaration(
        "enum Mixed {\n"
        "    case a(User), b(value: Int), c(_ v: Int)\n"
        "}"
    )

    assert isinstance(declaration, TypeDecl)
    cases = collect_cases(declaration, context)

    assert [case.name for case in cases] == ["b"]
    assert len(context.diagnostics) == 2


def test_ph4_enc_009_non_enum_is_diagnosed_without_output() -> None:
    codable, context = _codable("struct Role {\n}")

    assert codable.generate() == []
    assert codable.conformances() == []
    assert context.diagnostics[0].message_id.key == "enum-codable"
    assert context.diagnostics[0].text == "EnumCodable can only be applied to enums"


def test_ph4_enc_010_codable_conformance_is_added_when_missing() -> None:
    plain, _ = _codable("enum A {\n    case x\n}")
    declared, _ = _codable("enum B: Codable {\n    case x\n}")
    split, _ = _codable("enum C: Encodable, Decodable {\n    case x\n}")
    half, _ = _codable("enum D: Encodable {\n    case x\n}")

    assert plain.conformances() == [(NamedType("Codable"), None)]
    assert declared.conformances() == []
    assert split.conformances() == []
    assert half.conformances() == [(NamedType("Codable"), None)]


def test_ph4_enc_011_public_enum_gets_public_discriminator() -> None:
    codable, _ = _codable("public enum Kind {\n    case a\n}")

    subtype = codable.generate()[0]

    assert render(subtype).startswith("public enum SubType: String, Codable {")


def test_ph4_enc_012_simple_type_check() -> None:
    assert is_simple_type(parse_type("User"))
    assert is_simple_type(parse_type("User.Profile"))
    assert not is_simple_type(parse_type("[User]"))
    assert not is_simple_type(parse_type("Box<Int>"))
    assert not is_simple_type(parse_type("(Int, Int)"))
