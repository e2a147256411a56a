# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Command line harness for expanding, inspecting and validating Swift sources."""

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import pathspec
from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table

from macrogen import (
    CompilerValidator,
    Diagnostic,
    ParseError,
    SignatureError,
    TaggedUnionCodec,
    analyze,
    expand_source,
    parse_source,
    render,
    synthesize,
)
from macrogen.syntax import Decl, DeclKind, TypeDecl
from macrogen.validation import DEFAULT_COMPILER, CompilerLaunchError

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".swift"
EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2


class ValidationError(RuntimeError):
    """Represent user input validation failure."""


class ExpansionError(RuntimeError):
    """Represent a source file that could not be read, parsed or written."""


@dataclass(frozen=True)
class FileExpansion:
    """Represent the expansion outcome of one source file."""

    path: Path
    relative_path: str
    source: str
    diagnostics: list[Diagnostic]
    expanded_count: int


class IgnoreMatcher:
    """Match input paths against .gitignore patterns."""

    def __init__(self, spec: pathspec.GitIgnoreSpec) -> None:
        """Initialize matcher.

        Args:
            spec: Compiled gitignore matcher.
        """
        self._spec = spec

    @classmethod
    def from_root(cls, input_root: Path) -> "IgnoreMatcher":
        """Build matcher from root and nested .gitignore files.

        Args:
            input_root: Directory being walked.

        Returns:
            Configured ignore matcher.

        Raises:
            OSError: If .gitignore files cannot be read.
            UnicodeDecodeError: If .gitignore files contain invalid UTF-8.
        """
        patterns: list[str] = []
        for ignore_path in sorted(input_root.rglob(".gitignore")):
            base = ignore_path.parent.relative_to(input_root).as_posix()
            if base == ".":
                base = ""
            for line in ignore_path.read_text(encoding="utf-8").splitlines():
                patterns.append(_translate_gitignore_line(line=line, base=base))
        return cls(spec=pathspec.GitIgnoreSpec.from_lines(patterns))

    def matches(self, relative_path: str, is_dir: bool) -> bool:
        """Check whether a path should be skipped.

        Args:
            relative_path: Root-relative POSIX path.
            is_dir: Whether the path is a directory.

        Returns:
            True when path should be ignored.
        """
        normalized = relative_path.replace(os.sep, "/").strip("/")
        if not normalized:
            return False
        if self._spec.match_file(normalized):
            return True
        return is_dir and self._spec.match_file(f"{normalized}/")


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="macrogen")
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    expand_parser = subparsers.add_parser("expand")
    expand_parser.add_argument(
        "--path", required=True, help="Swift file or directory to expand."
    )
    expand_parser.add_argument(
        "--output",
        required=False,
        help="Optional directory receiving expanded files.",
    )
    expand_parser.add_argument(
        "--format", choices=("text", "json"), default="text", help="Output format."
    )

    requirements_parser = subparsers.add_parser("requirements")
    requirements_parser.add_argument(
        "--path", required=True, help="Swift file to inspect."
    )
    requirements_parser.add_argument(
        "--format", choices=("table", "json"), default="table", help="Output format."
    )

    schema_parser = subparsers.add_parser("wire-schema")
    schema_parser.add_argument("--path", required=True, help="Swift file to inspect.")

    validate_parser = subparsers.add_parser("validate")
    validate_parser.add_argument(
        "--path", required=True, help="Swift file whose requirements are compiled."
    )
    validate_parser.add_argument(
        "--compiler", default=DEFAULT_COMPILER, help="Compiler executable."
    )
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run CLI command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning("Argument parsing failed (argv=%s)", argv)
        return EXIT_USAGE
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        if args.command == "expand":
            return _run_expand(args=args, stdout=stdout, stderr=stderr)
        if args.command == "requirements":
            return _run_requirements(args=args, stdout=stdout, stderr=stderr)
        if args.command == "wire-schema":
            return _run_wire_schema(args=args, stdout=stdout, stderr=stderr)
        if args.command == "validate":
            return _run_validate(args=args, stdout=stdout, stderr=stderr)
    except ValidationError as exc:
        logger.warning("Validation failed (error=%s)", exc)
        stderr.write(f"{exc}\n")
        return EXIT_USAGE
    except ExpansionError as exc:
        logger.warning("Expansion failed (error=%s)", exc)
        stderr.write(f"{exc}\n")
        return EXIT_USAGE

    logger.warning("Unsupported command (command=%s)", args.command)
    stderr.write(f"Unsupported command: {args.command}\n")
    return EXIT_USAGE


def _run_expand(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    """Run expand command.

    Args:
        args: Parsed CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.

    Raises:
        ValidationError: If the input path is missing or not a Swift source.
        ExpansionError: If a file cannot be read, parsed or written.
    """
    root_path = Path(args.path)
    files = discover_sources(root_path)
    base = root_path if root_path.is_dir() else root_path.parent
    expansions = [expand_file(path=path, root=base) for path in files]
    logger.info(
        "Expansion completed (files=%s expanded=%s diagnostics=%s)",
        len(expansions),
        sum(item.expanded_count for item in expansions),
        sum(len(item.diagnostics) for item in expansions),
    )

    for item in expansions:
        _write_diagnostics(item.relative_path, item.diagnostics, stderr)

    if args.output:
        _write_expansions(expansions, Path(args.output))
    elif args.format == "json":
        _print_json(
            {
                "files": [
                    {
                        "path": item.relative_path,
                        "source": item.source,
                        "expanded": item.expanded_count,
                        "diagnostics": [d.to_dict() for d in item.diagnostics],
                    }
                    for item in expansions
                ]
            },
            stdout,
        )
    else:
        console = _console(stdout)
        for item in expansions:
            console.rule(item.relative_path, style=Style(color="cyan"), characters="-")
            console.print(
                item.source, markup=False, highlight=False, emoji=False, soft_wrap=True
            )

    if any(item.diagnostics for item in expansions):
        return EXIT_FAILURES
    return EXIT_OK


def _run_requirements(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    path = _require_file(Path(args.path))
    rows: list[dict[str, str]] = []
    failures = 0
    for type_name, member in _members(_parse_file(path)):
        try:
            signature = analyze(member)
        except SignatureError as exc:
            failures += 1
            logger.warning("Member analysis failed (type=%s error=%s)", type_name, exc)
            stderr.write(f"{path}: {type_name}: {exc}\n")
            continue
        if signature is None:
            continue
        rows.append(
            {
                "type": type_name,
                "member": signature.name,
                "requirement": render(synthesize(signature)),
            }
        )

    if args.format == "json":
        _print_json({"requirements": rows}, stdout)
    else:
        table = Table(show_header=True, show_lines=True, expand=True)
        table.add_column("type", ratio=1, overflow="fold")
        table.add_column("member", ratio=1, overflow="fold")
        table.add_column("requirement", ratio=4, overflow="fold")
        for row in rows:
            table.add_row(row["type"], row["member"], row["requirement"])
        _console(stdout).print(table)
    return EXIT_FAILURES if failures else EXIT_OK


def _run_wire_schema(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    path = _require_file(Path(args.path))
    schemas: dict[str, object] = {}
    for qualified_name, declaration in _type_declarations(_parse_file(path)):
        if declaration.kind is not DeclKind.ENUM:
            continue
        if not any(attr.name == "EnumCodable" for attr in declaration.attributes):
            continue
        schemas[qualified_name] = TaggedUnionCodec.from_enum(declaration).describe()
    if not schemas:
        logger.warning("No @EnumCodable enums found (path=%s)", path)
        stderr.write(f"No @EnumCodable enums found in {path}\n")
        return EXIT_FAILURES
    _print_json(schemas, stdout)
    return EXIT_OK


def _run_validate(args: argparse.Namespace, stdout: TextIO, stderr: TextIO) -> int:
    path = _require_file(Path(args.path))
    validator = CompilerValidator(compiler=args.compiler)
    table = Table(show_header=True, show_lines=True, expand=True)
    table.add_column("type", ratio=1, overflow="fold")
    table.add_column("requirement", ratio=4, overflow="fold")
    table.add_column("status", ratio=1, overflow="fold")
    failures = 0
    for type_name, member in _members(_parse_file(path)):
        try:
            signature = analyze(member)
        except SignatureError as exc:
            failures += 1
            stderr.write(f"{path}: {type_name}: {exc}\n")
            continue
        if signature is None:
            continue
        requirement = synthesize(signature)
        try:
            result = validator.validate_requirement(requirement)
        except CompilerLaunchError as exc:
            raise ValidationError(f"Cannot run compiler '{args.compiler}': {exc}") from exc
        if not result.ok:
            failures += 1
            stderr.write(f"{type_name}.{signature.name}:\n{result.stderr}\n")
        table.add_row(
            type_name, render(requirement), "ok" if result.ok else f"exit {result.exit_code}"
        )
    _console(stdout).print(table)
    logger.info("Validation completed (path=%s failures=%s)", path, failures)
    return EXIT_FAILURES if failures else EXIT_OK


def discover_sources(root_path: Path) -> list[Path]:
    """List Swift sources under a path, honoring .gitignore files.

    Args:
        root_path: Swift file or directory.

    Returns:
        Sorted source file paths.

    Raises:
        ValidationError: If the path does not exist or is not a Swift file.
        ExpansionError: If .gitignore files cannot be read.
    """
    if not root_path.exists():
        raise ValidationError(f"Path does not exist: {root_path}")
    if root_path.is_file():
        return [_require_file(root_path)]
    try:
        matcher = IgnoreMatcher.from_root(root_path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ExpansionError(f"Failed to read .gitignore files: {exc}") from exc

    sources: list[Path] = []
    queue: list[Path] = [root_path]
    while queue:
        current = queue.pop(0)
        for child in sorted(current.iterdir(), key=lambda item: item.name):
            if child.name == ".git" and child.is_dir():
                continue
            relative = child.relative_to(root_path).as_posix()
            if matcher.matches(relative_path=relative, is_dir=child.is_dir()):
                continue
            if child.is_dir():
                queue.append(child)
            elif child.suffix == SOURCE_SUFFIX:
                sources.append(child)
    return sorted(sources)


def expand_file(path: Path, root: Path) -> FileExpansion:
    """Expand one source file.

    Args:
        path: Swift source path.
        root: Directory that relative output paths are computed from.

    Returns:
        Expanded source and diagnostics.

    Raises:
        ExpansionError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed reading file (path=%s error=%s)", path, exc)
        raise ExpansionError(f"Failed reading {path}: {exc}") from exc
    try:
        result = expand_source(text)
    except ParseError as exc:
        logger.warning("Failed parsing file (path=%s error=%s)", path, exc)
        raise ExpansionError(f"{path}:{exc}") from exc
    return FileExpansion(
        path=path,
        relative_path=path.relative_to(root).as_posix(),
        source=result.source,
        diagnostics=result.diagnostics,
        expanded_count=result.expanded_count,
    )


def _require_file(path: Path) -> Path:
    if not path.exists():
        raise ValidationError(f"Path does not exist: {path}")
    if not path.is_file() or path.suffix != SOURCE_SUFFIX:
        raise ValidationError(f"Path must be a {SOURCE_SUFFIX} file: {path}")
    return path


def _parse_file(path: Path) -> list[Decl]:
    try:
        text = path.read_text(encoding="utf-8")
        return list(parse_source(text).declarations)
    except (OSError, UnicodeDecodeError) as exc:
        raise ExpansionError(f"Failed reading {path}: {exc}") from exc
    except ParseError as exc:
        logger.warning("Failed parsing file (path=%s error=%s)", path, exc)
        raise ExpansionError(f"{path}:{exc}") from exc


def _type_declarations(
    declarations: list[Decl], scope: str = ""
) -> list[tuple[str, TypeDecl]]:
    found: list[tuple[str, TypeDecl]] = []
    for declaration in declarations:
        if not isinstance(declaration, TypeDecl):
            continue
        name = f"{scope}.{declaration.name}" if scope else declaration.name
        found.append((name, declaration))
        found.extend(_type_declarations(list(declaration.members), name))
    return found


def _members(declarations: list[Decl]) -> list[tuple[str, Decl]]:
    """Pair every member of struct, class and actor declarations with its type name."""
    kinds = (DeclKind.STRUCT, DeclKind.CLASS, DeclKind.ACTOR)
    return [
        (name, member)
        for name, declaration in _type_declarations(declarations)
        if declaration.kind in kinds
        for member in declaration.members
    ]


def _write_diagnostics(
    relative_path: str, diagnostics: list[Diagnostic], stderr: TextIO
) -> None:
    for diagnostic in diagnostics:
        stderr.write(f"{relative_path}:{diagnostic.render()}\n")


def _write_expansions(expansions: list[FileExpansion], output_root: Path) -> None:
    """Write expanded sources below an output directory.

    Raises:
        ExpansionError: If a file cannot be written.
    """
    for item in expansions:
        destination = output_root / item.relative_path
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(item.source + "\n", encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed writing file (path=%s error=%s)", destination, exc)
            raise ExpansionError(f"Failed writing {destination}: {exc}") from exc


def _console(stdout: TextIO) -> Console:
    return Console(file=stdout, force_terminal=False, color_system="truecolor")


def _print_json(payload: object, stdout: TextIO) -> None:
    _console(stdout).print(
        json.dumps(payload, indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        emoji=False,
        soft_wrap=True,
    )


def _translate_gitignore_line(line: str, base: str) -> str:
    """Translate one .gitignore line to a root-relative pattern.

    Args:
        line: Original .gitignore line.
        base: Parent directory relative to the walked root.

    Returns:
        Root-relative pattern line.
    """
    if not base or not line or line.lstrip().startswith("#"):
        return line
    if line.startswith(r"\!") or line.startswith(r"\#"):
        return line
    is_negation = line.startswith("!")
    pattern = line[1:] if is_negation else line
    anchored = pattern.startswith("/")
    normalized_pattern = pattern[1:] if anchored else pattern
    prefixed = f"{base}/{normalized_pattern}" if normalized_pattern else base
    if anchored:
        prefixed = f"/{prefixed}"
    return f"!{prefixed}" if is_negation else prefixed


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
