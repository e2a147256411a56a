# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for member signature analysis and requirement synthesis."""

import pytest

from macrogen.parser import parse_declaration
from macrogen.printer import normalize_whitespace, render
from macrogen.requirement import requirement_modifiers, synthesize
from macrogen.signature import (
    MemberSignature,
    PropertyRequirement,
    SignatureError,
    SignatureErrorKind,
    analyze,
)
from macrogen.syntax import Modifier


def _requirement(source: str) -> str:
    signature = analyze(parse_declaration(source))
    assert signature is not None
    return normalize_whitespace(render(synthesize(signature)))


@pytest.mark.parametrize(
    "expected",
    [
        "func foo(bar: String) -> String",
        "func foo(bar: String) async -> String",
        "func foo(bar: String) throws -> String",
        "func foo(bar: String) async throws -> String",
        "func foo<T>(bar: T) -> T",
        "func foo<T>(bar: T) async throws -> T",
        "func foo<T>(bar: T) -> T where T: Equatable",
        "func foo<T>(bar: T) async throws -> T where T: Equatable",
    ],
)
def test_ph2_sig_001_function_requirement_drops_only_the_body(expected: str) -> None:
    source = f"{expected} {{\n    fatalError()\n}}"

    assert _requirement(source) == expected


def test_ph2_sig_002_unlabeled_generic_parameter_keeps_where_clause() -> None:
    source = (
        "func foo<Input>(_ input: Input) where Input: CustomStringConvertible {\n"
        "    print(input)\n"
        "}"
    )

    assert _requirement(source) == (
        "func foo<Input>(_ input: Input) where Input: CustomStringConvertible"
    )


def test_ph2_sig_003_attributes_survive_and_access_control_is_dropped() -> None:
    source = "@MainActor @Sendable public func foo() throws -> Int where Self: Foo { 1 }"

    assert _requirement(source) == "@MainActor @Sendable func foo() throws -> Int where Self: Foo"


def test_ph2_sig_004_parameter_defaults_are_not_part_of_the_requirement() -> None:
    source = 'func greet(name: String = "world", times count: Int = 1) {}'

    assert _requirement(source) == "func greet(name: String, times count: Int)"


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("var x: Int", "var x: Int { get set }"),
        ("var x: Int = 0", "var x: Int { get set }"),
        ("let x: Int", "var x: Int { get }"),
        ("private(set) var x: Int = 0", "var x: Int { get }"),
        ("var x: Int { 1 }", "var x: Int { get }"),
        ("var x: Int { get { 1 } }", "var x: Int { get }"),
        ("var x: Int { get { 1 } set { } }", "var x: Int { get set }"),
        ("var x: Int { get async { 1 } }", "var x: Int { get async }"),
        ("var x: Int { get async throws { 1 } }", "var x: Int { get async throws }"),
        ("var x: Int = 0 { didSet { } }", "var x: Int { get set }"),
        ("static var x: Int = 0", "static var x: Int { get set }"),
    ],
)
def test_ph2_sig_005_property_requirement_accessors(source: str, expected: str) -> None:
    assert _requirement(source) == expected


def test_ph2_sig_006_property_analysis_flags() -> None:
    signature = analyze(parse_declaration("var x: Int { get async throws { 1 } }"))

    assert isinstance(signature, PropertyRequirement)
    assert signature.get_only
    assert signature.is_async
    assert signature.is_throwing
    assert str(signature.getter_type()) == "() async throws -> Int"


def test_ph2_sig_007_property_without_annotation_is_rejected() -> None:
    with pytest.raises(SignatureError) as exc_info:
        analyze(parse_declaration("var x = 1"))

    assert exc_info.value.kind is SignatureErrorKind.MISSING_TYPE_ANNOTATION
    assert exc_info.value.name == "x"


def test_ph2_sig_008_property_with_several_bindings_is_rejected() -> None:
    with pytest.raises(SignatureError) as exc_info:
        analyze(parse_declaration("var a: Int, b: Int"))

    assert exc_info.value.kind is SignatureErrorKind.MISSING_BINDING


def test_ph2_sig_009_non_member_declarations_have_no_signature() -> None:
    assert analyze(parse_declaration("typealias ID = String")) is None
    assert analyze(parse_declaration("init() {}")) is None


def test_ph2_sig_010_function_type_of_signature() -> None:
    signature = analyze(
        parse_declaration("func foo(bar: String, baz: Int) async throws -> String {}")
    )
    no_return = analyze(parse_declaration("func reset() {}"))

    assert isinstance(signature, MemberSignature)
    assert str(signature.function_type()) == "(String, Int) async throws -> String"
    assert isinstance(no_return, MemberSignature)
    assert str(no_return.function_type()) == "() -> Void"


def test_ph2_sig_011_variadic_parameters_become_arrays_in_slot_type() -> None:
    signature = analyze(parse_declaration("func log(_ items: Any...) {}"))

    assert isinstance(signature, MemberSignature)
    assert str(signature.function_type()) == "(Any...) -> Void"
    assert str(signature.slot_type()) == "([Any]) -> Void"
    assert _requirement("func log(_ items: Any...) {}") == "func log(_ items: Any...)"


def test_ph2_sig_012_requirement_modifiers_keep_semantic_modifiers_only() -> None:
    kept = requirement_modifiers(
        (
            Modifier(name="public"),
            Modifier(name="class"),
            Modifier(name="final"),
            Modifier(name="mutating"),
            Modifier(name="private", detail="set"),
        )
    )

    assert kept == (Modifier(name="static"), Modifier(name="mutating"))


def test_ph2_sig_013_property_wrappers_are_not_requirements() -> None:
    assert _requirement("@Published var name: String = \"\"") == "var name: String { get set }"
    assert _requirement("@MainActor var name: String") == "@MainActor var name: String { get set }"


def test_ph2_sig_014_rethrows_becomes_throws_in_requirement() -> None:
    assert (
        _requirement("func map(_ body: () throws -> Int) rethrows -> Int { try body() }")
        == "func map(_ body: () throws -> Int) throws -> Int"
    )


def test_ph2_sig_015_tuple_pattern_property_is_rejected() -> None:
    with pytest.raises(SignatureError) as exc_info:
        analyze(parse_declaration("var (a, b): (Int, Int) = (1, 2)"))

    assert exc_info.value.kind is SignatureErrorKind.MISSING_BINDING


def test_ph2_sig_016_excluded_modifiers_are_left_off() -> None:
    kept = requirement_modifiers(
        (Modifier(name="nonisolated"), Modifier(name="static")),
        excluded=("nonisolated",),
    )

    assert kept == (Modifier(name="static"),)
