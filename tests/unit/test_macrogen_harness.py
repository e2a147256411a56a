# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the macrogen CLI harness."""

import io
import json
import re
from pathlib import Path

from cli.macrogen_harness import discover_sources, run

_SERVICE = (
    "@AutoDependency\n"
    "final class Service {\n"
    "    func fetch(id: String) -> Int {\n"
    "        return 1\n"
    "    }\n"
    "}\n"
)

_ROLE = (
    "@EnumCodable\n"
    "enum Role {\n"
    "    case nobody\n"
    "    case user(user: User)\n"
    "}\n"
)


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def _run(argv: list[str]) -> tuple[int, str, str]:
    stdout = io.StringIO()
    stderr = io.StringIO()
    exit_code = run(argv, stdout=stdout, stderr=stderr)
    return exit_code, _strip_ansi(stdout.getvalue()), stderr.getvalue()


def test_ph8_cli_001_requires_subcommand() -> None:
    exit_code, _, _ = _run([])

    assert exit_code == 2


def test_ph8_cli_002_fails_when_path_is_missing(tmp_path: Path) -> None:
    exit_code, _, stderr = _run(["expand", "--path", str(tmp_path / "missing.swift")])

    assert exit_code == 2
    assert "Path does not exist" in stderr


def test_ph8_cli_003_rejects_non_swift_file(tmp_path: Path) -> None:
    _write_file(tmp_path / "notes.txt", "hello")

    exit_code, _, stderr = _run(["requirements", "--path", str(tmp_path / "notes.txt")])

    assert exit_code == 2
    assert "Path must be a .swift file" in stderr


def test_ph8_cli_004_expand_prints_generated_source(tmp_path: Path) -> None:
    _write_file(tmp_path / "Service.swift", _SERVICE)

    exit_code, stdout, stderr = _run(["expand", "--path", str(tmp_path / "Service.swift")])

    assert exit_code == 0
    assert stderr == ""
    assert "Service.swift" in stdout
    assert "protocol ServiceProtocol: AnyObject {" in stdout
    assert "var _fetch: (String) -> Int = unimplemented()" in stdout
    assert "extension Service: ServiceProtocol {" in stdout


def test_ph8_cli_005_expand_supports_json_output(tmp_path: Path) -> None:
    _write_file(tmp_path / "Service.swift", _SERVICE)

    exit_code, stdout, _ = _run(
        ["expand", "--path", str(tmp_path / "Service.swift"), "--format", "json"]
    )

    assert exit_code == 0
    payload = json.loads(stdout)
    assert [item["path"] for item in payload["files"]] == ["Service.swift"]
    assert payload["files"][0]["expanded"] == 1
    assert payload["files"][0]["diagnostics"] == []
    assert "class ServiceMock: ServiceProtocol {" in payload["files"][0]["source"]


def test_ph8_cli_006_expand_reports_diagnostics(tmp_path: Path) -> None:
    _write_file(tmp_path / "Choice.swift", "@AutoDependency\nenum Choice {\n    case a\n}\n")

    exit_code, _, stderr = _run(["expand", "--path", str(tmp_path / "Choice.swift")])

    assert exit_code == 1
    assert stderr == (
        "Choice.swift:1:1: error: AutoDependency cannot be applied to enum declaration "
        "[macrogen.dependency.unsupported-type]\n"
    )


def test_ph8_cli_007_expand_directory_honors_gitignore_and_writes_output(
    tmp_path: Path,
) -> None:
    project_root = tmp_path / "project"
    output_root = tmp_path / "out"
    _write_file(project_root / ".gitignore", "Generated/\n")
    _write_file(project_root / "Generated" / "Skip.swift", "struct Skip {}\n")
    _write_file(project_root / "Sources" / "Service.swift", _SERVICE)

    exit_code, stdout, _ = _run(
        ["expand", "--path", str(project_root), "--output", str(output_root)]
    )

    assert exit_code == 0
    assert stdout == ""
    written = sorted(p.relative_to(output_root).as_posix() for p in output_root.rglob("*.swift"))
    assert written == ["Sources/Service.swift"]
    text = (output_root / "Sources" / "Service.swift").read_text(encoding="utf-8")
    assert text.endswith("extension Service: ServiceProtocol {\n}\n")


def test_ph8_cli_008_discover_sources_skips_ignored_and_non_swift(tmp_path: Path) -> None:
    _write_file(tmp_path / ".gitignore", "*.generated.swift\n")
    _write_file(tmp_path / "A.swift", "struct A {}\n")
    _write_file(tmp_path / "A.generated.swift", "struct B {}\n")
    _write_file(tmp_path / "nested" / "C.swift", "struct C {}\n")
    _write_file(tmp_path / "nested" / "README.md", "docs\n")

    found = [p.relative_to(tmp_path).as_posix() for p in discover_sources(tmp_path)]

    assert found == ["A.swift", "nested/C.swift"]


def test_ph8_cli_009_expand_reports_parse_errors(tmp_path: Path) -> None:
    _write_file(tmp_path / "Broken.swift", "struct Broken {\n")

    exit_code, _, stderr = _run(["expand", "--path", str(tmp_path / "Broken.swift")])

    assert exit_code == 2
    assert "Broken.swift" in stderr
    assert "syntax error" in stderr


def test_ph8_cli_010_requirements_json(tmp_path: Path) -> None:
    _write_file(
        tmp_path / "Store.swift",
        "struct Store {\n"
        "    let id: Int\n"
        "    func load(key: String) async throws -> Data { Data() }\n"
        "}\n",
    )

    exit_code, stdout, _ = _run(
        ["requirements", "--path", str(tmp_path / "Store.swift"), "--format", "json"]
    )

    assert exit_code == 0
    assert json.loads(stdout) == {
        "requirements": [
            {"type": "Store", "member": "id", "requirement": "var id: Int { get }"},
            {
                "type": "Store",
                "member": "load",
                "requirement": "func load(key: String) async throws -> Data",
            },
        ]
    }


def test_ph8_cli_011_requirements_table(tmp_path: Path) -> None:
    _write_file(tmp_path / "Service.swift", _SERVICE)

    exit_code, stdout, _ = _run(["requirements", "--path", str(tmp_path / "Service.swift")])

    assert exit_code == 0
    compact_text = re.sub(r"[^a-zA-Z0-9_:.()-]+", "", stdout)
    assert "requirement" in compact_text
    assert "funcfetch(id:String)-Int" in compact_text


def test_ph8_cli_012_requirements_reports_unannotated_property(tmp_path: Path) -> None:
    _write_file(tmp_path / "Bad.swift", "class Bad {\n    var count = 0\n}\n")

    exit_code, _, stderr = _run(
        ["requirements", "--path", str(tmp_path / "Bad.swift"), "--format", "json"]
    )

    assert exit_code == 1
    assert "missing-type-annotation" in stderr


def test_ph8_cli_013_wire_schema(tmp_path: Path) -> None:
    _write_file(tmp_path / "Role.swift", _ROLE)

    exit_code, stdout, _ = _run(["wire-schema", "--path", str(tmp_path / "Role.swift")])

    assert exit_code == 0
    assert json.loads(stdout) == {
        "Role": {
            "discriminator": "type",
            "cases": {"nobody": [], "user": [{"label": "user", "type": "User"}]},
        }
    }


def test_ph8_cli_014_wire_schema_without_annotated_enums(tmp_path: Path) -> None:
    _write_file(tmp_path / "Plain.swift", "enum Plain {\n    case a\n}\n")

    exit_code, stdout, stderr = _run(["wire-schema", "--path", str(tmp_path / "Plain.swift")])

    assert exit_code == 1
    assert stdout == ""
    assert "No @EnumCodable enums found" in stderr


def test_ph8_cli_015_validate_with_passing_compiler(tmp_path: Path) -> None:
    compiler = tmp_path / "fake-swiftc"
    compiler.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    compiler.chmod(0o755)
    _write_file(tmp_path / "Service.swift", _SERVICE)

    exit_code, stdout, _ = _run(
        [
            "validate",
            "--path",
            str(tmp_path / "Service.swift"),
            "--compiler",
            str(compiler),
        ]
    )

    assert exit_code == 0
    compact_text = re.sub(r"[^a-zA-Z0-9_:.()-]+", "", stdout)
    assert "funcfetch(id:String)-Int" in compact_text
    assert "ok" in compact_text


def test_ph8_cli_016_validate_with_failing_compiler(tmp_path: Path) -> None:
    compiler = tmp_path / "fake-swiftc"
    compiler.write_text(
        '#!/bin/sh\necho "$1:2:10: error: nope" >&2\nexit 1\n', encoding="utf-8"
    )
    compiler.chmod(0o755)
    _write_file(tmp_path / "Service.swift", _SERVICE)

    exit_code, _, stderr = _run(
        [
            "validate",
            "--path",
            str(tmp_path / "Service.swift"),
            "--compiler",
            str(compiler),
        ]
    )

    assert exit_code == 1
    assert "Service.fetch:" in stderr
    assert ":2:10: error: nope" in stderr
    assert "main.swift" not in stderr
