# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for compiler-backed requirement validation."""

import shutil
from pathlib import Path

import pytest

from macrogen.parser import parse_declaration
from macrogen.requirement import synthesize
from macrogen.signature import analyze
from macrogen.syntax import FunctionDecl, VariableDecl
from macrogen.validation import CompilerLaunchError, CompilerValidator


def _write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(0o755)
    return path


def _requirement(source: str) -> FunctionDecl | VariableDecl:
    signature = analyze(parse_declaration(source))
    assert signature is not None
    return synthesize(signature)


def test_ph7_val_001_requirement_is_wrapped_in_protocol(tmp_path: Path) -> None:
    record = tmp_path / "compiled.swift"
    compiler = _write_script(tmp_path / "fake-swiftc", f'cat "$1" > "{record}"\n')
    validator = CompilerValidator(compiler=str(compiler))

    result = validator.validate_requirement(_requirement("func foo() async -> Int { 1 }"))

    assert result.ok
    assert record.read_text(encoding="utf-8") == (
        "protocol Foo {\n    func foo() async -> Int\n}\n"
    )
    assert result.source == record.read_text(encoding="utf-8")


def test_ph7_val_002_failure_reports_scrubbed_stderr(tmp_path: Path) -> None:
    compiler = _write_script(
        tmp_path / "fake-swiftc", 'echo "$1:2:5: error: boom" >&2\nexit 1\n'
    )
    validator = CompilerValidator(compiler=str(compiler))

    result = validator.validate_source("protocol Foo {}\n")

    assert not result.ok
    assert result.exit_code == 1
    assert result.stderr == ":2:5: error: boom\n"


def test_ph7_val_003_unlaunchable_compiler_raises(tmp_path: Path) -> None:
    validator = CompilerValidator(launcher=str(tmp_path / "missing-launcher"))

    with pytest.raises(CompilerLaunchError):
        validator.validate_source("protocol Foo {}\n")


def test_ph7_val_004_availability_follows_path(tmp_path: Path) -> None:
    assert not CompilerValidator(compiler=str(tmp_path / "nope")).is_available()
    compiler = _write_script(tmp_path / "fake-swiftc", "exit 0\n")
    assert CompilerValidator(compiler=str(compiler)).is_available()


@pytest.mark.skipif(shutil.which("swiftc") is None, reason="swiftc is not installed")
@pytest.mark.parametrize(
    "source",
    [
        "func foo<Input>(_ input: Input) where Input: CustomStringConvertible {}",
        "@MainActor @Sendable func foo() throws -> Int where Self: Foo { 1 }",
        "func foo(bar: String, baz: Int) async throws -> String { bar }",
        "var value: Int { get async throws { 1 } }",
        "private(set) var count: Int = 0",
    ],
)
def test_ph7_val_005_generated_requirements_compile(source: str) -> None:
    result = CompilerValidator().validate_requirement(_requirement(source))

    assert result.ok, result.stderr
