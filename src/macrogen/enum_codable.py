# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Generate tagged-union ``Codable`` members for enums with labelled payloads.

An enum value is encoded as a keyed container holding the case name under
``type`` and every associated value under its own label::

    {"type": "user", "user": {...}}
"""

import logging
from dataclasses import dataclass

from macrogen import builder
from macrogen.diagnostics import (
    MISSING_ENUM_CASE_LABEL,
    NOT_ENUM,
    RESERVED_CASE_LABEL,
    UNSUPPORTED_CASE_VALUE_TYPE,
    DiagnosticMessage,
    ExpansionContext,
)
from macrogen.syntax import (
    Decl,
    DeclKind,
    EffectSpecifiers,
    EnumCaseDecl,
    EnumCaseParameter,
    FunctionDecl,
    InitializerDecl,
    MemberType,
    NamedType,
    Parameter,
    TypeDecl,
    TypeRef,
    has_modifier,
)

logger = logging.getLogger(__name__)

DISCRIMINATOR_KEY = "type"
DISCRIMINATOR_ENUM = "SubType"
KEYS_ENUM = "CodingKeys"
_CODABLE_NAMES = frozenset({"Codable"})
_CODABLE_PARTS = frozenset({"Encodable", "Decodable"})
_THROWS = EffectSpecifiers(throws_keyword="throws")


@dataclass(frozen=True)
class PayloadField:
    """Labelled associated value of an enum case."""

    label: str
    type: TypeRef


@dataclass(frozen=True)
class EnumCaseSpec:
    """Validated enum case; ``payload`` is ``None`` for cases without values."""

    name: str
    payload: tuple[PayloadField, ...] | None = None


def is_simple_type(type_ref: TypeRef) -> bool:
    """Check for a non-generic identifier type such as ``User`` or ``User.Profile``."""
    if isinstance(type_ref, NamedType):
        return not type_ref.arguments
    if isinstance(type_ref, MemberType):
        return not type_ref.arguments and is_simple_type(type_ref.base)
    return False


def _validate_field(parameter: EnumCaseParameter) -> DiagnosticMessage | None:
    if not is_simple_type(parameter.type):
        return UNSUPPORTED_CASE_VALUE_TYPE
    if parameter.first_name is None or parameter.first_name == "_":
        return MISSING_ENUM_CASE_LABEL
    if parameter.first_name.strip("`") == DISCRIMINATOR_KEY:
        return RESERVED_CASE_LABEL
    return None


def collect_cases(declaration: TypeDecl, context: ExpansionContext) -> list[EnumCaseSpec]:
    """Validate every case element of an enum.

    The first invalid associated value of a case is diagnosed at that value and
    the case is left out; the remaining cases are still collected.

    Args:
        declaration: Enum declaration.
        context: Context receiving per-case diagnostics.

    Returns:
        Valid cases in declaration order.
    """
    cases: list[EnumCaseSpec] = []
    for member in declaration.members:
        if not isinstance(member, EnumCaseDecl):
            continue
        for element in member.elements:
            if element.parameters is None:
                cases.append(EnumCaseSpec(name=element.name))
                continue
            fields: list[PayloadField] = []
            for parameter in element.parameters:
                problem = _validate_field(parameter)
                if problem is not None:
                    context.diagnose(problem.at(parameter))
                    break
                fields.append(PayloadField(label=parameter.first_name, type=parameter.type))
            else:
                cases.append(EnumCaseSpec(name=element.name, payload=tuple(fields)))
    return cases


class EnumCodable:
    """Derive ``SubType``, ``CodingKeys``, ``encode(to:)`` and ``init(from:)``."""

    def __init__(self, declaration: Decl, context: ExpansionContext) -> None:
        self.declaration = declaration
        self.context = context
        self.is_enum = (
            isinstance(declaration, TypeDecl) and declaration.kind is DeclKind.ENUM
        )
        self.cases: list[EnumCaseSpec] = []

    def generate(self) -> list[Decl]:
        """Build the four members in emission order.

        Returns:
            ``[SubType, CodingKeys, encode, init]``, or an empty list after
            reporting a diagnostic when the declaration is not an enum.
        """
        if not self.is_enum:
            self.context.diagnose(NOT_ENUM.at(self.declaration))
            return []
        self.cases = collect_cases(self.declaration, self.context)
        logger.debug(
            "Generating enum codec",
            extra={"enum": self.declaration.name, "cases": len(self.cases)},
        )
        return [
            self.generate_discriminator(),
            self.generate_coding_keys(),
            self.generate_encode(),
            self.generate_decode(),
        ]

    def conformances(self) -> list[tuple[TypeRef, None]]:
        """Return a ``Codable`` conformance unless the enum already declares one."""
        if not self.is_enum:
            return []
        names = {
            inherited.name
            for inherited in self.declaration.inheritance
            if isinstance(inherited, NamedType)
        }
        if names & _CODABLE_NAMES or _CODABLE_PARTS <= names:
            return []
        return [(NamedType("Codable"), None)]

    def discriminators(self) -> list[str]:
        """Return valid case names in reverse lexicographic order.

        Cases are collected by :meth:`generate`.
        """
        return sorted((case.name for case in self.cases), reverse=True)

    def coding_keys(self) -> list[str]:
        """Return ``type`` and every payload label in reverse lexicographic order."""
        keys = {DISCRIMINATOR_KEY}
        for case in self.cases:
            for payload_field in case.payload or ():
                keys.add(payload_field.label)
        return sorted(keys, reverse=True)

    def generate_discriminator(self) -> TypeDecl:
        visibility = ("public",) if has_modifier(self.declaration, "public", "open") else ()
        return builder.type_declaration(
            DeclKind.ENUM,
            DISCRIMINATOR_ENUM,
            members=(builder.enum_case_list(self.discriminators()),),
            inheritance=(NamedType("String"), NamedType("Codable")),
            modifier_names=visibility,
        )

    def generate_coding_keys(self) -> TypeDecl:
        return builder.type_declaration(
            DeclKind.ENUM,
            KEYS_ENUM,
            members=(builder.enum_case_list(self.coding_keys()),),
            inheritance=(NamedType("String"), NamedType("CodingKey")),
            modifier_names=("private",),
        )

    def generate_encode(self) -> FunctionDecl:
        cases = []
        for case in self.cases:
            label = f".{case.name}"
            statements = [
                f"try container.encode({DISCRIMINATOR_ENUM}.{case.name}, "
                f"forKey: .{DISCRIMINATOR_KEY})"
            ]
            if case.payload is not None:
                label += "(" + ", ".join(f"let {f.label}" for f in case.payload) + ")"
                statements.extend(
                    f"try container.encode({f.label}, forKey: .{f.label})"
                    for f in case.payload
                )
            cases.append(builder.switch_case(label, *statements))
        body = builder.code_block(
            f"var container = encoder.container(keyedBy: {KEYS_ENUM}.self)",
            builder.switch("self", cases),
        )
        return FunctionDecl(
            name="encode",
            parameters=(
                Parameter(first_name="to", second_name="encoder", type=NamedType("Encoder")),
            ),
            effects=_THROWS,
            body=body,
            modifiers=builder.modifiers("public"),
        )

    def generate_decode(self) -> InitializerDecl:
        cases = []
        for case in self.cases:
            if case.payload is None:
                statements = [f"self = .{case.name}"]
            else:
                statements = [
                    f"let {f.label} = try container.decode({f.type}.self, "
                    f"forKey: .{f.label})"
                    for f in case.payload
                ]
                arguments = ", ".join(f"{f.label}: {f.label}" for f in case.payload)
                statements.append(f"self = .{case.name}({arguments})")
            cases.append(builder.switch_case(f".{case.name}", *statements))
        body = builder.code_block(
            f"let container = try decoder.container(keyedBy: {KEYS_ENUM}.self)",
            f"let subtype = try container.decode({DISCRIMINATOR_ENUM}.self, "
            f"forKey: .{DISCRIMINATOR_KEY})",
            builder.switch("subtype", cases),
        )
        return InitializerDecl(
            parameters=(
                Parameter(
                    first_name="from", second_name="decoder", type=NamedType("Decoder")
                ),
            ),
            effects=_THROWS,
            body=body,
            modifiers=builder.modifiers("public"),
        )
