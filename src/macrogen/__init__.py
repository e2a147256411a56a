# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Public import surface for macrogen components."""

from macrogen.dependency import AutoDependency, DependencyKind
from macrogen.diagnostics import Diagnostic, DiagnosticsError, ExpansionContext
from macrogen.enum_codable import EnumCodable
from macrogen.expansion import MACROS, ExpansionResult, Macro, expand_source
from macrogen.parser import ParseError, parse_declaration, parse_source, parse_type
from macrogen.printer import normalize_whitespace, render
from macrogen.requirement import synthesize
from macrogen.signature import (
    MemberSignature,
    PropertyRequirement,
    SignatureError,
    analyze,
)
from macrogen.validation import CompilerValidator, ValidationResult
from macrogen.visibility import included
from macrogen.wire import (
    EnumValue,
    KeyNotFoundError,
    TaggedUnionCodec,
    UnknownDiscriminatorError,
    WireFormatError,
)

__all__ = [
    "AutoDependency",
    "CompilerValidator",
    "DependencyKind",
    "Diagnostic",
    "DiagnosticsError",
    "EnumCodable",
    "EnumValue",
    "ExpansionContext",
    "ExpansionResult",
    "KeyNotFoundError",
    "MACROS",
    "Macro",
    "MemberSignature",
    "ParseError",
    "PropertyRequirement",
    "SignatureError",
    "TaggedUnionCodec",
    "UnknownDiscriminatorError",
    "ValidationResult",
    "WireFormatError",
    "analyze",
    "expand_source",
    "included",
    "normalize_whitespace",
    "parse_declaration",
    "parse_source",
    "parse_type",
    "render",
    "synthesize",
]
