# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Generate a dependency protocol, a closure-backed mock and a conformance.

Given::

    final class Client {
        func fetch(id: String) async throws -> Data { ... }
    }

the generator produces ``ClientProtocol`` with the requirement
``func fetch(id: String) async throws -> Data``, a ``ClientMock`` holding
``var _fetch: (String) async throws -> Data = unimplemented()`` whose
``fetch`` forwards to the slot, and ``extension Client: ClientProtocol {}``.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum

from macrogen import builder
from macrogen.diagnostics import (
    DiagnosticsError,
    missing_binding,
    missing_type_annotation,
    opaque_result_type,
    unsupported_type,
)
from macrogen.requirement import requirement_modifiers, synthesize
from macrogen.signature import (
    MemberSignature,
    PropertyRequirement,
    Signature,
    SignatureError,
    SignatureErrorKind,
    analyze,
)
from macrogen.syntax import (
    AttributedType,
    CompositionType,
    Decl,
    DeclKind,
    EffectSpecifiers,
    FunctionDecl,
    FunctionType,
    InitializerDecl,
    Modifier,
    NamedType,
    NO_EFFECTS,
    Parameter,
    TupleTypeElement,
    TypeDecl,
    TypeRef,
    VariableDecl,
    describe_kind,
)
from macrogen.visibility import included, is_public

logger = logging.getLogger(__name__)

PROTOCOL_SUFFIX = "Protocol"
MOCK_SUFFIX = "Mock"
PLACEHOLDER = "unimplemented()"
SHAREABLE_MARKER = "Sendable"


class DependencyKind(Enum):
    """Declaration kinds that can become a dependency."""

    STRUCT = "struct"
    CLASS = "class"
    ACTOR = "actor"


_KINDS = {
    DeclKind.STRUCT: DependencyKind.STRUCT,
    DeclKind.CLASS: DependencyKind.CLASS,
    DeclKind.ACTOR: DependencyKind.ACTOR,
}

# Requirement modifiers a kind cannot carry. An actor mock reads its closure
# slots from isolated state, so its members stay isolated.
_EXCLUDED_MODIFIERS = {
    DependencyKind.STRUCT: (),
    DependencyKind.CLASS: ("mutating", "nonmutating"),
    DependencyKind.ACTOR: ("mutating", "nonmutating", "nonisolated"),
}


@dataclass(frozen=True)
class _MockSlot:
    """Pair an exposed member with the name of its closure slot.

    Attributes:
        name: Slot name without the leading underscore; also the init label.
        signature: Analyzed member signature.
    """

    name: str
    signature: Signature

    @property
    def variable(self) -> str:
        return f"_{self.name.strip('`')}"


class AutoDependency:
    """Derive the protocol, mock and conformance for one annotated type."""

    def __init__(self, attachment: object, declaration: Decl) -> None:
        """Classify the declaration and analyze its exposed members.

        Args:
            attachment: Attribute node the generator was triggered from.
            declaration: Annotated declaration.

        Raises:
            DiagnosticsError: If the declaration kind is unsupported or an
                exposed property lacks a binding or type annotation.
        """
        if not isinstance(declaration, TypeDecl) or declaration.kind not in _KINDS:
            raise DiagnosticsError(
                [unsupported_type(describe_kind(declaration)).at(attachment)]
            )
        self.declaration = declaration
        self.name = declaration.name
        self.kind = _KINDS[declaration.kind]
        self.is_public = is_public(declaration)
        self.is_shareable = any(
            _is_shareable_marker(inherited) for inherited in declaration.inheritance
        )
        self.slots = _assign_slots(self._analyze_members())
        logger.debug(
            "Classified dependency",
            extra={
                "type": self.name,
                "kind": self.kind.value,
                "public": self.is_public,
                "shareable": self.is_shareable,
                "members": len(self.slots),
            },
        )

    @property
    def protocol_name(self) -> str:
        return f"{self.name}{PROTOCOL_SUFFIX}"

    @property
    def mock_name(self) -> str:
        return f"{self.name}{MOCK_SUFFIX}"

    def _analyze_members(self) -> list[Signature]:
        signatures: list[Signature] = []
        for member in self.declaration.members:
            if not included(member, self.is_public):
                continue
            try:
                signature = analyze(member)
            except SignatureError as exc:
                description = f"'{exc.name}'" if exc.name else describe_kind(member)
                if exc.kind is SignatureErrorKind.MISSING_BINDING:
                    message = missing_binding(description)
                else:
                    message = missing_type_annotation(description)
                raise DiagnosticsError([message.at(member)]) from exc
            if signature is None:
                continue
            if _is_opaque(_result_type(signature)):
                raise DiagnosticsError(
                    [opaque_result_type(f"'{signature.name}'").at(member)]
                )
            signatures.append(signature)
        return signatures

    def generate_protocol(self) -> TypeDecl:
        """Build ``<Name>Protocol`` with one requirement per exposed member."""
        inheritance: list[TypeRef] = []
        if self.kind is DependencyKind.CLASS:
            inheritance.append(NamedType("AnyObject"))
        elif self.kind is DependencyKind.ACTOR:
            inheritance.append(NamedType("Actor"))
        if self.is_shareable:
            inheritance.append(NamedType(SHAREABLE_MARKER))
        members = builder.DeclListBuilder()
        for slot in self.slots:
            members.add(synthesize(slot.signature, _EXCLUDED_MODIFIERS[self.kind]))
        return builder.type_declaration(
            DeclKind.PROTOCOL,
            self.protocol_name,
            members=members.build(),
            inheritance=tuple(inheritance),
            modifier_names=("public",) if self.is_public else (),
        )

    def generate_mock(self) -> TypeDecl:
        """Build ``<Name>Mock`` forwarding every requirement to a closure slot."""
        inheritance: list[TypeRef] = [NamedType(self.protocol_name)]
        if self.is_shareable and self.kind is not DependencyKind.ACTOR:
            inheritance.append(
                AttributedType(("@unchecked",), NamedType(SHAREABLE_MARKER))
            )
        if not self.is_public:
            mock_modifiers: tuple[str, ...] = ()
        elif self.kind is DependencyKind.CLASS:
            mock_modifiers = ("open",)
        else:
            mock_modifiers = ("public",)

        members = builder.DeclListBuilder()
        for slot in self.slots:
            members.add(
                builder.stored_variable(
                    slot.variable, _slot_type(slot.signature), initializer=PLACEHOLDER
                )
            )
            if isinstance(slot.signature, PropertyRequirement):
                members.add(self._forwarding_property(slot, slot.signature))
            else:
                members.add(self._forwarding_function(slot, slot.signature))
        members.add(self._initializer())
        return builder.type_declaration(
            DeclKind(self.kind.value),
            self.mock_name,
            members=members.build(),
            inheritance=tuple(inheritance),
            modifier_names=mock_modifiers,
        )

    def conformances(self) -> list[tuple[TypeRef, None]]:
        """Return the conformance of the annotated type to its protocol."""
        return [(NamedType(self.protocol_name), None)]

    def generate(self) -> list[Decl]:
        """Return the peer declarations in emission order."""
        return [self.generate_protocol(), self.generate_mock()]

    def _member_modifiers(self, signature: Signature) -> tuple[Modifier, ...]:
        kept = list(
            requirement_modifiers(signature.modifiers, _EXCLUDED_MODIFIERS[self.kind])
        )
        if self.is_public:
            kept.insert(0, Modifier(name="public"))
        return tuple(kept)

    def _forwarding_function(
        self, slot: _MockSlot, signature: MemberSignature
    ) -> FunctionDecl:
        parameters: list[Parameter] = []
        arguments: list[str] = []
        for index, parameter in enumerate(signature.parameters):
            internal_name = parameter.internal_name or f"arg{index}"
            second_name = None
            if parameter.label is None or parameter.label != internal_name:
                second_name = internal_name
            parameters.append(
                Parameter(
                    first_name=parameter.label or "_",
                    second_name=second_name,
                    type=parameter.type,
                    variadic=parameter.variadic,
                )
            )
            arguments.append(f"&{internal_name}" if parameter.is_inout else internal_name)
        call = _effect_prefix(signature.is_async, signature.is_throwing)
        call += f"{slot.variable}({', '.join(arguments)})"
        if signature.return_type is not None and signature.return_type.mentions(
            signature.generic_names
        ):
            call += f" as! {signature.return_type}"
        return FunctionDecl(
            name=signature.name,
            parameters=tuple(parameters),
            effects=EffectSpecifiers(
                is_async=signature.is_async,
                throws_keyword="throws" if signature.is_throwing else None,
                thrown_type=signature.thrown_type,
            ),
            return_type=signature.return_type,
            generic_parameters=signature.generic_parameters,
            where_clause=signature.where_clause,
            body=builder.code_block(f"return {call}"),
            attributes=signature.attributes,
            modifiers=self._member_modifiers(signature),
        )

    def _forwarding_property(
        self, slot: _MockSlot, requirement: PropertyRequirement
    ) -> VariableDecl:
        call = _effect_prefix(requirement.is_async, requirement.is_throwing)
        getter = builder.code_block(f"return {call}{slot.variable}()")
        effects = NO_EFFECTS
        if requirement.is_async or requirement.is_throwing:
            effects = EffectSpecifiers(
                is_async=requirement.is_async,
                throws_keyword="throws" if requirement.is_throwing else None,
            )
        accessors = [builder.accessor("get", body=getter, effects=effects)]
        if not requirement.get_only:
            accessors.append(
                builder.accessor(
                    "set", body=builder.code_block(f"{slot.variable} = {{ newValue }}")
                )
            )
        return builder.computed_variable(
            name=requirement.name,
            type_annotation=requirement.type,
            accessors=accessors,
            modifier_list=self._member_modifiers(requirement),
        )

    def _initializer(self) -> InitializerDecl:
        parameters = tuple(
            Parameter(
                first_name=slot.name,
                type=AttributedType(("@escaping",), _slot_type(slot.signature)),
                default=PLACEHOLDER,
            )
            for slot in self.slots
        )
        assignments = [f"self.{slot.variable} = {slot.name}" for slot in self.slots]
        return InitializerDecl(
            parameters=parameters,
            body=builder.code_block(*assignments),
            modifiers=builder.modifiers("public" if self.is_public else ""),
        )


def _result_type(signature: Signature) -> TypeRef | None:
    if isinstance(signature, PropertyRequirement):
        return signature.type
    return signature.return_type


def _is_opaque(type_ref: TypeRef | None) -> bool:
    return isinstance(type_ref, AttributedType) and type_ref.has("some")


def _is_shareable_marker(type_ref: TypeRef) -> bool:
    if isinstance(type_ref, AttributedType):
        type_ref = type_ref.base
    return isinstance(type_ref, NamedType) and type_ref.name == SHAREABLE_MARKER


def _effect_prefix(is_async: bool, is_throwing: bool) -> str:
    if is_async and is_throwing:
        return "try await "
    if is_async:
        return "await "
    if is_throwing:
        return "try "
    return ""


def _assign_slots(signatures: list[Signature]) -> list[_MockSlot]:
    """Give every member a unique slot name.

    Overloaded functions are told apart by their capitalized argument labels
    (``_fooBar``); remaining clashes get numeric suffixes.
    """
    counts = Counter(signature.name for signature in signatures)
    used: set[str] = set()
    slots: list[_MockSlot] = []
    for signature in signatures:
        base = signature.name
        if counts[signature.name] > 1 and isinstance(signature, MemberSignature):
            base += "".join(
                label[:1].upper() + label[1:]
                for label in (p.label for p in signature.parameters)
                if label
            )
        candidate = base
        suffix = 2
        while candidate.strip("`") in used:
            candidate = f"{base}{suffix}"
            suffix += 1
        used.add(candidate.strip("`"))
        slots.append(_MockSlot(name=candidate, signature=signature))
    return slots


def generic_erasures(signature: MemberSignature) -> dict[str, TypeRef]:
    """Map each generic parameter to the existential type a slot can store.

    Args:
        signature: Function signature with generic parameters.

    Returns:
        ``any <constraints>`` for constrained parameters, the concrete type
        for same-type requirements and ``Any`` otherwise.
    """
    constraints: dict[str, list[TypeRef]] = {
        parameter.name: [] for parameter in signature.generic_parameters
    }
    same_type: dict[str, TypeRef] = {}
    for parameter in signature.generic_parameters:
        if parameter.constraint is not None:
            constraints[parameter.name].append(parameter.constraint)
    if signature.where_clause is not None:
        for requirement in signature.where_clause.requirements:
            left = requirement.left
            if not isinstance(left, NamedType) or left.name not in constraints:
                continue
            if requirement.relation == ":":
                constraints[left.name].append(requirement.right)
            else:
                same_type[left.name] = requirement.right
    erasures: dict[str, TypeRef] = {}
    for name, bounds in constraints.items():
        if name in same_type:
            erasures[name] = same_type[name]
        elif not bounds:
            erasures[name] = NamedType("Any")
        elif len(bounds) == 1:
            erasures[name] = AttributedType(("any",), bounds[0])
        else:
            erasures[name] = AttributedType(("any",), CompositionType(tuple(bounds)))
    return erasures


def _opened(type_ref: TypeRef) -> TypeRef:
    if isinstance(type_ref, AttributedType) and type_ref.has("some"):
        specifiers = tuple("any" if s == "some" else s for s in type_ref.specifiers)
        return AttributedType(specifiers, type_ref.base)
    return type_ref


def _slot_type(signature: Signature) -> FunctionType:
    if isinstance(signature, PropertyRequirement):
        return signature.getter_type()
    slot = signature.slot_type(generic_erasures(signature))
    return FunctionType(
        parameters=tuple(
            TupleTypeElement(type=_opened(element.type)) for element in slot.parameters
        ),
        return_type=slot.return_type,
        is_async=slot.is_async,
        is_throwing=slot.is_throwing,
        thrown_type=slot.thrown_type,
    )
