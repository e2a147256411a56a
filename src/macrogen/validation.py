# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Check generated declarations by compiling them with an external Swift compiler."""

import logging
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

from macrogen.printer import render
from macrogen.syntax import Decl, DeclKind, TypeDecl

logger = logging.getLogger(__name__)

DEFAULT_COMPILER = "swiftc"
LAUNCHER = "/usr/bin/env"
SOURCE_NAME = "main.swift"
WRAPPER_PROTOCOL = "Foo"


class CompilerLaunchError(RuntimeError):
    """Represent a compiler process that could not be started."""


@dataclass(frozen=True)
class ValidationResult:
    """Store the outcome of one compiler run.

    Args:
        exit_code: Compiler exit status.
        stderr: Captured standard error with the temporary path removed.
        source: Compiled source text.
    """

    exit_code: int
    stderr: str
    source: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CompilerValidator:
    """Compile snippets in a scratch directory, one blocking process per call."""

    def __init__(self, compiler: str = DEFAULT_COMPILER, launcher: str = LAUNCHER) -> None:
        """Initialize validator.

        Args:
            compiler: Compiler executable name or path, resolved by ``launcher``.
            launcher: Program used to locate and start the compiler.
        """
        self.compiler = compiler
        self.launcher = launcher

    def is_available(self) -> bool:
        """Check whether the compiler can be found on ``PATH``."""
        return shutil.which(self.compiler) is not None

    def validate_source(self, source: str) -> ValidationResult:
        """Compile a source file.

        Args:
            source: Complete Swift source text.

        Returns:
            Exit code and scrubbed standard error.

        Raises:
            CompilerLaunchError: If the launcher cannot be executed.
        """
        with tempfile.TemporaryDirectory(prefix="macrogen-") as scratch:
            source_path = Path(scratch) / SOURCE_NAME
            source_path.write_text(source, encoding="utf-8")
            try:
                completed = subprocess.run(
                    [self.launcher, self.compiler, str(source_path)],
                    cwd=scratch,
                    capture_output=True,
                    text=True,
                    check=False,
                )
            except OSError as exc:
                logger.warning(
                    "Compiler launch failed (launcher=%s compiler=%s error=%s)",
                    self.launcher,
                    self.compiler,
                    exc,
                )
                raise CompilerLaunchError(str(exc)) from exc
            stderr = completed.stderr.replace(str(source_path), "")
        if completed.returncode != 0:
            logger.warning(
                "Compilation failed",
                extra={"compiler": self.compiler, "exit_code": completed.returncode},
            )
        return ValidationResult(
            exit_code=completed.returncode, stderr=stderr, source=source
        )

    def validate_requirement(self, requirement: Decl) -> ValidationResult:
        """Compile a requirement inside ``protocol Foo { ... }``."""
        wrapper = TypeDecl(
            kind=DeclKind.PROTOCOL, name=WRAPPER_PROTOCOL, members=(requirement,)
        )
        return self.validate_source(render(wrapper) + "\n")
