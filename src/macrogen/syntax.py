# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Immutable declaration syntax tree for the Swift subset read and emitted by macrogen.

Every node is a frozen dataclass. Node kinds form a closed set that the
analyzers dispatch on with ``isinstance`` checks; source positions are carried
for diagnostics but never take part in equality.
"""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class SourcePosition:
    """Represent a 1-based line and column in the parsed source."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


# ---------------------------------------------------------------------------
# Type references
# ---------------------------------------------------------------------------


class TypeRef:
    """Base class for type expressions.

    ``str(type_ref)`` renders canonical source text; parsing that text again
    yields an equal node.
    """

    def render(self) -> str:
        raise NotImplementedError

    def substitute(self, mapping: dict[str, "TypeRef"]) -> "TypeRef":
        """Replace generic parameter references by name.

        Args:
            mapping: Generic parameter name to replacement type.

        Returns:
            Type with every bare reference to a mapped name replaced.
        """
        return self

    def mentions(self, names: frozenset[str]) -> bool:
        """Check whether any bare type name in ``names`` occurs in this type."""
        return False

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class NamedType(TypeRef):
    """Identifier type with optional generic arguments, e.g. ``Result<Int, Error>``."""

    name: str
    arguments: tuple[TypeRef, ...] = ()

    def render(self) -> str:
        if not self.arguments:
            return self.name
        return f"{self.name}<{', '.join(str(arg) for arg in self.arguments)}>"

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        if not self.arguments and self.name in mapping:
            return mapping[self.name]
        return NamedType(
            name=self.name,
            arguments=tuple(arg.substitute(mapping) for arg in self.arguments),
        )

    def mentions(self, names: frozenset[str]) -> bool:
        if self.name in names:
            return True
        return any(arg.mentions(names) for arg in self.arguments)


@dataclass(frozen=True)
class MemberType(TypeRef):
    """Nested type access, e.g. ``User.Profile``."""

    base: TypeRef
    name: str
    arguments: tuple[TypeRef, ...] = ()

    def render(self) -> str:
        text = f"{self.base}.{self.name}"
        if self.arguments:
            text += f"<{', '.join(str(arg) for arg in self.arguments)}>"
        return text

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return MemberType(
            base=self.base,
            name=self.name,
            arguments=tuple(arg.substitute(mapping) for arg in self.arguments),
        )

    def mentions(self, names: frozenset[str]) -> bool:
        return self.base.mentions(names) or any(
            arg.mentions(names) for arg in self.arguments
        )


@dataclass(frozen=True)
class OptionalType(TypeRef):
    """Optional (``T?``) or implicitly unwrapped optional (``T!``) type."""

    wrapped: TypeRef
    implicitly_unwrapped: bool = False

    def render(self) -> str:
        mark = "!" if self.implicitly_unwrapped else "?"
        return f"{_parenthesized(self.wrapped)}{mark}"

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return OptionalType(
            wrapped=self.wrapped.substitute(mapping),
            implicitly_unwrapped=self.implicitly_unwrapped,
        )

    def mentions(self, names: frozenset[str]) -> bool:
        return self.wrapped.mentions(names)


@dataclass(frozen=True)
class ArrayType(TypeRef):
    """Array sugar type ``[Element]``."""

    element: TypeRef

    def render(self) -> str:
        return f"[{self.element}]"

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return ArrayType(element=self.element.substitute(mapping))

    def mentions(self, names: frozenset[str]) -> bool:
        return self.element.mentions(names)


@dataclass(frozen=True)
class DictionaryType(TypeRef):
    """Dictionary sugar type ``[Key: Value]``."""

    key: TypeRef
    value: TypeRef

    def render(self) -> str:
        return f"[{self.key}: {self.value}]"

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return DictionaryType(
            key=self.key.substitute(mapping), value=self.value.substitute(mapping)
        )

    def mentions(self, names: frozenset[str]) -> bool:
        return self.key.mentions(names) or self.value.mentions(names)


@dataclass(frozen=True)
class TupleTypeElement:
    """One element of a tuple type or function type argument list."""

    type: TypeRef
    label: str | None = None
    second_name: str | None = None
    variadic: bool = False

    def render(self) -> str:
        text = str(self.type)
        if self.variadic:
            text += "..."
        if self.label is None:
            return text
        names = self.label
        if self.second_name is not None:
            names += f" {self.second_name}"
        return f"{names}: {text}"

    def substitute(self, mapping: dict[str, TypeRef]) -> "TupleTypeElement":
        return TupleTypeElement(
            type=self.type.substitute(mapping),
            label=self.label,
            second_name=self.second_name,
            variadic=self.variadic,
        )


@dataclass(frozen=True)
class TupleType(TypeRef):
    """Tuple type; the empty tuple renders as ``()``."""

    elements: tuple[TupleTypeElement, ...] = ()

    def render(self) -> str:
        return f"({', '.join(element.render() for element in self.elements)})"

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return TupleType(
            elements=tuple(element.substitute(mapping) for element in self.elements)
        )

    def mentions(self, names: frozenset[str]) -> bool:
        return any(element.type.mentions(names) for element in self.elements)


@dataclass(frozen=True)
class FunctionType(TypeRef):
    """Function type ``(A, B) async throws -> R``."""

    parameters: tuple[TupleTypeElement, ...]
    return_type: TypeRef
    is_async: bool = False
    is_throwing: bool = False
    thrown_type: TypeRef | None = None

    def render(self) -> str:
        parts = [f"({', '.join(p.render() for p in self.parameters)})"]
        if self.is_async:
            parts.append("async")
        if self.is_throwing:
            parts.append(
                "throws" if self.thrown_type is None else f"throws({self.thrown_type})"
            )
        parts.append(f"-> {self.return_type}")
        return " ".join(parts)

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return FunctionType(
            parameters=tuple(p.substitute(mapping) for p in self.parameters),
            return_type=self.return_type.substitute(mapping),
            is_async=self.is_async,
            is_throwing=self.is_throwing,
            thrown_type=self.thrown_type,
        )

    def mentions(self, names: frozenset[str]) -> bool:
        if self.return_type.mentions(names):
            return True
        return any(p.type.mentions(names) for p in self.parameters)


@dataclass(frozen=True)
class AttributedType(TypeRef):
    """Type carrying leading attributes or specifiers (``@escaping``, ``inout``, ``some``)."""

    specifiers: tuple[str, ...]
    base: TypeRef

    def render(self) -> str:
        return f"{' '.join(self.specifiers)} {self.base}"

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return AttributedType(
            specifiers=self.specifiers, base=self.base.substitute(mapping)
        )

    def mentions(self, names: frozenset[str]) -> bool:
        return self.base.mentions(names)

    def has(self, specifier: str) -> bool:
        return specifier in self.specifiers


@dataclass(frozen=True)
class CompositionType(TypeRef):
    """Protocol composition ``P & Q``."""

    types: tuple[TypeRef, ...]

    def render(self) -> str:
        return " & ".join(str(item) for item in self.types)

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return CompositionType(types=tuple(t.substitute(mapping) for t in self.types))

    def mentions(self, names: frozenset[str]) -> bool:
        return any(t.mentions(names) for t in self.types)


@dataclass(frozen=True)
class MetatypeType(TypeRef):
    """Metatype ``T.Type`` or ``P.Protocol``."""

    base: TypeRef
    kind: str = "Type"

    def render(self) -> str:
        return f"{_parenthesized(self.base)}.{self.kind}"

    def substitute(self, mapping: dict[str, TypeRef]) -> TypeRef:
        return MetatypeType(base=self.base.substitute(mapping), kind=self.kind)

    def mentions(self, names: frozenset[str]) -> bool:
        return self.base.mentions(names)


def _parenthesized(type_ref: TypeRef) -> str:
    if isinstance(type_ref, (FunctionType, CompositionType, AttributedType)):
        return f"({type_ref})"
    return str(type_ref)


VOID = NamedType("Void")


# ---------------------------------------------------------------------------
# Declaration parts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Attribute:
    """Declaration attribute such as ``@MainActor`` or ``@available(iOS 13, *)``."""

    name: str
    arguments: str | None = None
    position: SourcePosition | None = field(default=None, compare=False)

    def render(self) -> str:
        if self.arguments is None:
            return f"@{self.name}"
        return f"@{self.name}({self.arguments})"


@dataclass(frozen=True)
class Modifier:
    """Declaration modifier, optionally with a detail (``private(set)``)."""

    name: str
    detail: str | None = None

    def render(self) -> str:
        if self.detail is None:
            return self.name
        return f"{self.name}({self.detail})"


@dataclass(frozen=True)
class GenericParameter:
    """Generic parameter with an optional inline constraint."""

    name: str
    constraint: TypeRef | None = None

    def render(self) -> str:
        if self.constraint is None:
            return self.name
        return f"{self.name}: {self.constraint}"


@dataclass(frozen=True)
class WhereRequirement:
    """One ``where`` clause requirement: conformance (``:``) or same-type (``==``)."""

    left: TypeRef
    relation: str
    right: TypeRef

    def render(self) -> str:
        if self.relation == ":":
            return f"{self.left}: {self.right}"
        return f"{self.left} {self.relation} {self.right}"


@dataclass(frozen=True)
class GenericWhereClause:
    """Generic ``where`` clause."""

    requirements: tuple[WhereRequirement, ...]

    def render(self) -> str:
        return "where " + ", ".join(req.render() for req in self.requirements)


@dataclass(frozen=True)
class Parameter:
    """Function or initializer parameter.

    Attributes:
        first_name: Argument label, ``_`` when the call site is unlabeled.
        second_name: Internal parameter name when it differs from the label.
        type: Parameter type.
        variadic: Whether the parameter is declared with ``...``.
        default: Raw default value expression text.
        attributes: Parameter attributes such as ``@ViewBuilder``.
    """

    first_name: str
    type: TypeRef
    second_name: str | None = None
    variadic: bool = False
    default: str | None = None
    attributes: tuple[Attribute, ...] = ()

    @property
    def label(self) -> str | None:
        return None if self.first_name == "_" else self.first_name

    @property
    def internal_name(self) -> str | None:
        name = self.second_name if self.second_name is not None else self.first_name
        return None if name == "_" else name


@dataclass(frozen=True)
class EffectSpecifiers:
    """Effect specifiers of a function, initializer, accessor or function type."""

    is_async: bool = False
    throws_keyword: str | None = None
    thrown_type: TypeRef | None = None

    @property
    def is_throwing(self) -> bool:
        return self.throws_keyword is not None

    def render(self) -> str:
        parts: list[str] = []
        if self.is_async:
            parts.append("async")
        if self.throws_keyword is not None:
            if self.thrown_type is not None:
                parts.append(f"{self.throws_keyword}({self.thrown_type})")
            else:
                parts.append(self.throws_keyword)
        return " ".join(parts)


NO_EFFECTS = EffectSpecifiers()


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawStatement:
    """Statement kept as source text; may span several lines."""

    text: str


@dataclass(frozen=True)
class SwitchCase:
    """One ``case`` of a switch statement; ``label`` is the text after ``case``."""

    label: str
    statements: tuple["Statement", ...]


@dataclass(frozen=True)
class SwitchStatement:
    """Switch over ``subject`` with ordered cases."""

    subject: str
    cases: tuple[SwitchCase, ...]


Statement = RawStatement | SwitchStatement


@dataclass(frozen=True)
class CodeBlock:
    """Brace-delimited statement list."""

    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class Accessor:
    """Property accessor (``get``, ``set``, ``willSet``, ``didSet``, ...)."""

    kind: str
    effects: EffectSpecifiers = NO_EFFECTS
    body: CodeBlock | None = None
    parameter: str | None = None
    modifiers: tuple[Modifier, ...] = ()


@dataclass(frozen=True)
class AccessorBlock:
    """Accessor list, or an implicit getter body for read-only computed properties."""

    accessors: tuple[Accessor, ...] = ()
    implicit_getter: CodeBlock | None = None

    def kinds(self) -> set[str]:
        return {accessor.kind for accessor in self.accessors}

    def accessor(self, *kinds: str) -> Accessor | None:
        for accessor in self.accessors:
            if accessor.kind in kinds:
                return accessor
        return None


@dataclass(frozen=True)
class PatternBinding:
    """One binding of a ``var``/``let`` declaration."""

    pattern: str
    type_annotation: TypeRef | None = None
    initializer: str | None = None
    accessor_block: AccessorBlock | None = None


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FunctionDecl:
    """Function declaration; ``body`` is ``None`` for requirements."""

    name: str
    parameters: tuple[Parameter, ...] = ()
    effects: EffectSpecifiers = NO_EFFECTS
    return_type: TypeRef | None = None
    generic_parameters: tuple[GenericParameter, ...] = ()
    where_clause: GenericWhereClause | None = None
    body: CodeBlock | None = None
    attributes: tuple[Attribute, ...] = ()
    modifiers: tuple[Modifier, ...] = ()
    position: SourcePosition | None = field(default=None, compare=False)


@dataclass(frozen=True)
class InitializerDecl:
    """Initializer declaration (``init``, ``init?``, ``init!``)."""

    parameters: tuple[Parameter, ...] = ()
    effects: EffectSpecifiers = NO_EFFECTS
    body: CodeBlock | None = None
    optional_mark: str | None = None
    generic_parameters: tuple[GenericParameter, ...] = ()
    where_clause: GenericWhereClause | None = None
    attributes: tuple[Attribute, ...] = ()
    modifiers: tuple[Modifier, ...] = ()
    position: SourcePosition | None = field(default=None, compare=False)


@dataclass(frozen=True)
class VariableDecl:
    """``var`` or ``let`` declaration with one or more bindings."""

    binding_keyword: str
    bindings: tuple[PatternBinding, ...]
    attributes: tuple[Attribute, ...] = ()
    modifiers: tuple[Modifier, ...] = ()
    position: SourcePosition | None = field(default=None, compare=False)


@dataclass(frozen=True)
class EnumCaseParameter:
    """Associated value of an enum case element."""

    type: TypeRef
    first_name: str | None = None
    second_name: str | None = None
    default: str | None = None
    position: SourcePosition | None = field(default=None, compare=False)


@dataclass(frozen=True)
class EnumCaseElement:
    """One element of a ``case`` declaration."""

    name: str
    parameters: tuple[EnumCaseParameter, ...] | None = None
    raw_value: str | None = None
    position: SourcePosition | None = field(default=None, compare=False)


@dataclass(frozen=True)
class EnumCaseDecl:
    """``case`` declaration holding one or more elements."""

    elements: tuple[EnumCaseElement, ...]
    attributes: tuple[Attribute, ...] = ()
    modifiers: tuple[Modifier, ...] = ()
    position: SourcePosition | None = field(default=None, compare=False)


class DeclKind(Enum):
    """Nominal and extension declaration kinds."""

    STRUCT = "struct"
    CLASS = "class"
    ACTOR = "actor"
    ENUM = "enum"
    PROTOCOL = "protocol"
    EXTENSION = "extension"


@dataclass(frozen=True)
class TypeDecl:
    """Struct, class, actor, enum, protocol or extension declaration."""

    kind: DeclKind
    name: str
    members: tuple["Decl", ...] = ()
    generic_parameters: tuple[GenericParameter, ...] = ()
    inheritance: tuple[TypeRef, ...] = ()
    where_clause: GenericWhereClause | None = None
    attributes: tuple[Attribute, ...] = ()
    modifiers: tuple[Modifier, ...] = ()
    position: SourcePosition | None = field(default=None, compare=False)


@dataclass(frozen=True)
class RawDecl:
    """Declaration or statement the generators do not inspect, kept verbatim."""

    text: str
    position: SourcePosition | None = field(default=None, compare=False)


Decl = FunctionDecl | InitializerDecl | VariableDecl | EnumCaseDecl | TypeDecl | RawDecl


@dataclass(frozen=True)
class SourceFile:
    """Top-level declarations of one source file."""

    declarations: tuple[Decl, ...] = ()


def modifier_names(decl: Decl) -> set[str]:
    """Collect plain modifier names, ignoring modifiers with a detail.

    Args:
        decl: Declaration node.

    Returns:
        Names such as ``public`` or ``static``; ``private(set)`` is excluded.
    """
    modifiers: tuple[Modifier, ...] = getattr(decl, "modifiers", ())
    return {modifier.name for modifier in modifiers if modifier.detail is None}


def has_modifier(decl: Decl, *names: str) -> bool:
    """Check whether ``decl`` carries any of the plain modifiers in ``names``."""
    return bool(modifier_names(decl) & set(names))


def describe_kind(decl: Decl) -> str:
    """Describe a declaration kind for user-facing messages."""
    if isinstance(decl, TypeDecl):
        return f"{decl.kind.value} declaration"
    if isinstance(decl, FunctionDecl):
        return "function declaration"
    if isinstance(decl, InitializerDecl):
        return "initializer declaration"
    if isinstance(decl, VariableDecl):
        return "variable declaration"
    if isinstance(decl, EnumCaseDecl):
        return "enum case declaration"
    return "declaration"
