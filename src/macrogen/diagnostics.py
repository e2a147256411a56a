# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Structured diagnostics reported by the generators."""

import logging
from dataclasses import dataclass
from enum import Enum

from macrogen.syntax import SourcePosition

logger = logging.getLogger(__name__)

DEPENDENCY_DOMAIN = "macrogen.dependency"
ENUM_CODABLE_DOMAIN = "macrogen.enum-codable"


class Severity(Enum):
    """Diagnostic severity."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


@dataclass(frozen=True)
class MessageID:
    """Stable, domain-scoped diagnostic identifier."""

    domain: str
    key: str

    def __str__(self) -> str:
        return f"{self.domain}.{self.key}"


@dataclass(frozen=True)
class DiagnosticMessage:
    """Describe one kind of user-facing problem.

    Attributes:
        message: Human-readable text.
        message_id: Stable identifier of this message kind.
        severity: Severity reported to the host.
    """

    message: str
    message_id: MessageID
    severity: Severity = Severity.ERROR

    def at(self, node: object) -> "Diagnostic":
        """Anchor this message to a syntax node.

        Args:
            node: Syntax node the diagnostic points at.

        Returns:
            Anchored diagnostic.
        """
        return Diagnostic(message=self, node=node)


@dataclass(frozen=True)
class Diagnostic:
    """Represent a diagnostic anchored to a syntax node."""

    message: DiagnosticMessage
    node: object

    @property
    def text(self) -> str:
        return self.message.message

    @property
    def message_id(self) -> MessageID:
        return self.message.message_id

    @property
    def severity(self) -> Severity:
        return self.message.severity

    @property
    def position(self) -> SourcePosition | None:
        return getattr(self.node, "position", None)

    def render(self) -> str:
        """Render as ``line:column: severity: message [domain.key]``."""
        location = str(self.position) if self.position is not None else "?:?"
        return (
            f"{location}: {self.severity.value}: {self.text} [{self.message_id}]"
        )

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly mapping."""
        position = self.position
        return {
            "message": self.text,
            "domain": self.message_id.domain,
            "id": self.message_id.key,
            "severity": self.severity.value,
            "line": position.line if position is not None else None,
            "column": position.column if position is not None else None,
        }


class DiagnosticsError(RuntimeError):
    """Abort a whole expansion with the attached diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        super().__init__("; ".join(diagnostic.text for diagnostic in diagnostics))
        self.diagnostics = diagnostics


class ExpansionContext:
    """Collect diagnostics reported while expanding one source file."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def diagnose(self, diagnostic: Diagnostic) -> None:
        """Record a diagnostic.

        Args:
            diagnostic: Diagnostic to record.
        """
        logger.warning(
            "Diagnostic reported (id=%s at=%s message=%s)",
            diagnostic.message_id,
            diagnostic.position,
            diagnostic.text,
        )
        self.diagnostics.append(diagnostic)


def unsupported_type(kind_description: str) -> DiagnosticMessage:
    return DiagnosticMessage(
        message=f"AutoDependency cannot be applied to {kind_description}",
        message_id=MessageID(DEPENDENCY_DOMAIN, "unsupported-type"),
    )


def missing_binding(member_description: str) -> DiagnosticMessage:
    return DiagnosticMessage(
        message=f"Property {member_description} must declare exactly one binding",
        message_id=MessageID(DEPENDENCY_DOMAIN, "missing-binding"),
    )


def missing_type_annotation(member_description: str) -> DiagnosticMessage:
    return DiagnosticMessage(
        message=f"Property {member_description} needs an explicit type annotation",
        message_id=MessageID(DEPENDENCY_DOMAIN, "missing-type-annotation"),
    )


def opaque_result_type(member_description: str) -> DiagnosticMessage:
    return DiagnosticMessage(
        message=(
            f"Member {member_description} returns an opaque 'some' type, "
            "which a protocol requirement cannot declare"
        ),
        message_id=MessageID(DEPENDENCY_DOMAIN, "opaque-result-type"),
    )


NOT_ENUM = DiagnosticMessage(
    message="EnumCodable can only be applied to enums",
    message_id=MessageID(ENUM_CODABLE_DOMAIN, "enum-codable"),
)

UNSUPPORTED_CASE_VALUE_TYPE = DiagnosticMessage(
    message="Associated value type is not supported",
    message_id=MessageID(ENUM_CODABLE_DOMAIN, "enum-case-value-type"),
)

MISSING_ENUM_CASE_LABEL = DiagnosticMessage(
    message="Associated value in enum case is missing a label",
    message_id=MessageID(ENUM_CODABLE_DOMAIN, "enum-case-value-missing-label"),
)

RESERVED_CASE_LABEL = DiagnosticMessage(
    message="Associated value label 'type' is reserved for the discriminator",
    message_id=MessageID(ENUM_CODABLE_DOMAIN, "enum-case-value-reserved-label"),
)
