# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Normalize function and property members into abstract signatures."""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from macrogen.syntax import (
    ArrayType,
    Attribute,
    AttributedType,
    Decl,
    FunctionDecl,
    FunctionType,
    GenericParameter,
    GenericWhereClause,
    Modifier,
    TupleTypeElement,
    TypeRef,
    VOID,
    VariableDecl,
)

logger = logging.getLogger(__name__)

RESTRICTED_SETTER_MODIFIERS: frozenset[str] = frozenset(
    {"private", "fileprivate", "internal", "package"}
)
_SETTER_ACCESSORS = frozenset({"set", "_modify", "unsafeMutableAddress"})
_OBSERVER_ACCESSORS = frozenset({"willSet", "didSet"})
_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$][\w$]*|`[^`]+`")


class SignatureErrorKind(Enum):
    """Reasons a member cannot be turned into a signature."""

    MISSING_BINDING = "missing-binding"
    MISSING_TYPE_ANNOTATION = "missing-type-annotation"


class SignatureError(RuntimeError):
    """Represent a member that lacks syntax required for analysis."""

    def __init__(self, kind: SignatureErrorKind, member: Decl, name: str | None) -> None:
        subject = f"'{name}'" if name else "declaration"
        super().__init__(f"{kind.value}: {subject}")
        self.kind = kind
        self.member = member
        self.name = name


@dataclass(frozen=True)
class SignatureParameter:
    """One parameter of a normalized function signature.

    Attributes:
        label: External argument label, ``None`` for unlabeled arguments.
        internal_name: Name used inside the body, ``None`` when declared as ``_``.
        type: Declared parameter type, without the variadic marker.
        variadic: Whether the parameter is variadic.
    """

    label: str | None
    internal_name: str | None
    type: TypeRef
    variadic: bool = False

    @property
    def is_inout(self) -> bool:
        return isinstance(self.type, AttributedType) and self.type.has("inout")


@dataclass(frozen=True)
class MemberSignature:
    """Normalized signature of a function member."""

    name: str
    parameters: tuple[SignatureParameter, ...] = ()
    is_async: bool = False
    is_throwing: bool = False
    return_type: TypeRef | None = None
    generic_parameters: tuple[GenericParameter, ...] = ()
    where_clause: GenericWhereClause | None = None
    throws_keyword: str | None = None
    thrown_type: TypeRef | None = None
    attributes: tuple[Attribute, ...] = ()
    modifiers: tuple[Modifier, ...] = ()

    @property
    def generic_names(self) -> frozenset[str]:
        return frozenset(parameter.name for parameter in self.generic_parameters)

    def function_type(self) -> FunctionType:
        """Build the equivalent standalone function type.

        A missing return type becomes ``Void``. Variadic parameters keep their
        marker and ``rethrows`` is expressed as ``throws``.
        """
        return FunctionType(
            parameters=tuple(
                TupleTypeElement(type=parameter.type, variadic=parameter.variadic)
                for parameter in self.parameters
            ),
            return_type=self.return_type if self.return_type is not None else VOID,
            is_async=self.is_async,
            is_throwing=self.is_throwing,
            thrown_type=self.thrown_type,
        )

    def slot_type(self, erasures: dict[str, TypeRef] | None = None) -> FunctionType:
        """Build the closure type stored by a mock for this member.

        Args:
            erasures: Replacement types for generic parameter names.

        Returns:
            Function type with variadic parameters expressed as arrays and the
            generic parameters replaced.
        """
        mapping = erasures or {}
        elements: list[TupleTypeElement] = []
        for parameter in self.parameters:
            element_type = parameter.type.substitute(mapping)
            if parameter.variadic:
                element_type = ArrayType(element=element_type)
            elements.append(TupleTypeElement(type=element_type))
        return_type = self.return_type if self.return_type is not None else VOID
        return FunctionType(
            parameters=tuple(elements),
            return_type=return_type.substitute(mapping),
            is_async=self.is_async,
            is_throwing=self.is_throwing,
            thrown_type=self.thrown_type,
        )


@dataclass(frozen=True)
class PropertyRequirement:
    """Normalized shape of a property member."""

    name: str
    type: TypeRef
    get_only: bool
    is_async: bool = False
    is_throwing: bool = False
    attributes: tuple[Attribute, ...] = ()
    modifiers: tuple[Modifier, ...] = ()

    def getter_type(self) -> FunctionType:
        """Build the closure type of a getter slot, ``() [async] [throws] -> T``."""
        return FunctionType(
            parameters=(),
            return_type=self.type,
            is_async=self.is_async,
            is_throwing=self.is_throwing,
        )


Signature = MemberSignature | PropertyRequirement


def analyze(member: Decl) -> Signature | None:
    """Convert a member declaration into a normalized signature.

    Args:
        member: Member declaration of a type.

    Returns:
        Function signature, property requirement, or ``None`` for members that
        are neither functions nor properties.

    Raises:
        SignatureError: If a property lacks a single binding or a type annotation.
    """
    if isinstance(member, FunctionDecl):
        return _analyze_function(member)
    if isinstance(member, VariableDecl):
        return _analyze_property(member)
    return None


def _analyze_function(member: FunctionDecl) -> MemberSignature:
    parameters = tuple(
        SignatureParameter(
            label=parameter.label,
            internal_name=parameter.internal_name,
            type=parameter.type,
            variadic=parameter.variadic,
        )
        for parameter in member.parameters
    )
    return MemberSignature(
        name=member.name,
        parameters=parameters,
        is_async=member.effects.is_async,
        is_throwing=member.effects.is_throwing,
        return_type=member.return_type,
        generic_parameters=member.generic_parameters,
        where_clause=member.where_clause,
        throws_keyword=member.effects.throws_keyword,
        thrown_type=member.effects.thrown_type,
        attributes=member.attributes,
        modifiers=member.modifiers,
    )


def _analyze_property(member: VariableDecl) -> PropertyRequirement:
    if len(member.bindings) != 1:
        raise SignatureError(SignatureErrorKind.MISSING_BINDING, member, None)
    binding = member.bindings[0]
    if not _IDENTIFIER_PATTERN.fullmatch(binding.pattern):
        raise SignatureError(SignatureErrorKind.MISSING_BINDING, member, None)
    if binding.type_annotation is None:
        raise SignatureError(
            SignatureErrorKind.MISSING_TYPE_ANNOTATION, member, binding.pattern
        )

    is_async = False
    is_throwing = False
    block = binding.accessor_block
    if member.binding_keyword == "let":
        get_only = True
    elif any(
        modifier.name in RESTRICTED_SETTER_MODIFIERS and modifier.detail == "set"
        for modifier in member.modifiers
    ):
        get_only = True
    elif block is None:
        get_only = False
    elif block.implicit_getter is not None:
        get_only = True
    else:
        kinds = block.kinds()
        if kinds and kinds <= _OBSERVER_ACCESSORS:
            get_only = False
        else:
            get_only = not (kinds & _SETTER_ACCESSORS)

    if block is not None:
        getter = block.accessor("get", "_read", "unsafeAddress")
        if getter is not None:
            is_async = getter.effects.is_async
            is_throwing = getter.effects.is_throwing

    logger.debug(
        "Analyzed property",
        extra={"property": binding.pattern, "get_only": get_only},
    )
    return PropertyRequirement(
        name=binding.pattern,
        type=binding.type_annotation,
        get_only=get_only,
        is_async=is_async,
        is_throwing=is_throwing,
        attributes=member.attributes,
        modifiers=member.modifiers,
    )
