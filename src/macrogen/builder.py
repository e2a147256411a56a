# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Construct syntax nodes for generated declarations.

Builders return immutable nodes. ``DeclListBuilder`` keeps members in the
order they are added, which is the order in which they are printed.
"""

from macrogen.syntax import (
    Accessor,
    AccessorBlock,
    Attribute,
    CodeBlock,
    Decl,
    DeclKind,
    EffectSpecifiers,
    EnumCaseDecl,
    EnumCaseElement,
    GenericWhereClause,
    Modifier,
    NO_EFFECTS,
    PatternBinding,
    RawStatement,
    Statement,
    SwitchCase,
    SwitchStatement,
    TypeDecl,
    TypeRef,
    VariableDecl,
)


class DeclListBuilder:
    """Collect declarations in emission order."""

    def __init__(self) -> None:
        self._members: list[Decl] = []

    def add(self, member: Decl) -> "DeclListBuilder":
        self._members.append(member)
        return self

    def build(self) -> tuple[Decl, ...]:
        return tuple(self._members)


def modifiers(*names: str) -> tuple[Modifier, ...]:
    """Build plain modifiers, skipping empty names."""
    return tuple(Modifier(name=name) for name in names if name)


def statement(text: str) -> RawStatement:
    return RawStatement(text=text)


def code_block(*statements: Statement | str) -> CodeBlock:
    """Build a code block; plain strings become raw statements."""
    return CodeBlock(
        statements=tuple(
            statement(item) if isinstance(item, str) else item for item in statements
        )
    )


def switch_case(label: str, *statements: Statement | str) -> SwitchCase:
    return SwitchCase(label=label, statements=code_block(*statements).statements)


def switch(subject: str, cases: list[SwitchCase]) -> SwitchStatement:
    return SwitchStatement(subject=subject, cases=tuple(cases))


def stored_variable(
    name: str,
    type_annotation: TypeRef,
    initializer: str | None = None,
    modifier_names: tuple[str, ...] = (),
) -> VariableDecl:
    """Build ``var <name>: <type> [= <initializer>]``."""
    return VariableDecl(
        binding_keyword="var",
        bindings=(
            PatternBinding(
                pattern=name, type_annotation=type_annotation, initializer=initializer
            ),
        ),
        modifiers=modifiers(*modifier_names),
    )


def accessor(
    kind: str,
    body: CodeBlock | None = None,
    effects: EffectSpecifiers = NO_EFFECTS,
) -> Accessor:
    return Accessor(kind=kind, effects=effects, body=body)


def computed_variable(
    name: str,
    type_annotation: TypeRef,
    accessors: list[Accessor],
    attributes: tuple[Attribute, ...] = (),
    modifier_list: tuple[Modifier, ...] = (),
) -> VariableDecl:
    """Build ``var <name>: <type> { <accessors> }``.

    Accessors without bodies render inline, which is the requirement form.
    """
    return VariableDecl(
        binding_keyword="var",
        bindings=(
            PatternBinding(
                pattern=name,
                type_annotation=type_annotation,
                accessor_block=AccessorBlock(accessors=tuple(accessors)),
            ),
        ),
        attributes=attributes,
        modifiers=modifier_list,
    )


def enum_case_list(names: list[str]) -> EnumCaseDecl:
    """Build a single ``case a, b, c`` declaration."""
    return EnumCaseDecl(elements=tuple(EnumCaseElement(name=name) for name in names))


def type_declaration(
    kind: DeclKind,
    name: str,
    members: tuple[Decl, ...] = (),
    inheritance: tuple[TypeRef, ...] = (),
    modifier_names: tuple[str, ...] = (),
    attributes: tuple[Attribute, ...] = (),
) -> TypeDecl:
    return TypeDecl(
        kind=kind,
        name=name,
        members=members,
        inheritance=inheritance,
        attributes=attributes,
        modifiers=modifiers(*modifier_names),
    )


def conformance_extension(
    type_name: str,
    conformance: TypeRef,
    where_clause: GenericWhereClause | None = None,
) -> TypeDecl:
    """Build ``extension <type_name>: <conformance> {}``."""
    return TypeDecl(
        kind=DeclKind.EXTENSION,
        name=type_name,
        inheritance=(conformance,),
        where_clause=where_clause,
    )
