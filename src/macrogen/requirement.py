# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Turn normalized signatures back into protocol requirements."""

from macrogen.builder import accessor, computed_variable
from macrogen.signature import MemberSignature, PropertyRequirement, Signature
from macrogen.syntax import (
    EffectSpecifiers,
    FunctionDecl,
    Modifier,
    NO_EFFECTS,
    Parameter,
    VariableDecl,
)

# Modifiers that change a requirement's meaning; everything else is access
# control or implementation detail.
_KEPT_MODIFIERS = ("static", "mutating", "nonmutating", "nonisolated")
_PROPERTY_ATTRIBUTES = frozenset({"available", "objc", "MainActor"})


def requirement_modifiers(
    modifiers: tuple[Modifier, ...], excluded: tuple[str, ...] = ()
) -> tuple[Modifier, ...]:
    """Filter member modifiers down to those valid on a protocol requirement.

    Args:
        modifiers: Modifiers of the implementing member.
        excluded: Requirement modifiers the conforming kind cannot honour.

    Returns:
        Kept modifiers in source order, with ``class`` rewritten to ``static``.
    """
    kept: list[Modifier] = []
    for modifier in modifiers:
        if modifier.detail is not None:
            continue
        name = "static" if modifier.name == "class" else modifier.name
        if name in excluded:
            continue
        if name in _KEPT_MODIFIERS and Modifier(name=name) not in kept:
            kept.append(Modifier(name=name))
    return tuple(kept)


def synthesize(
    signature: Signature, excluded: tuple[str, ...] = ()
) -> FunctionDecl | VariableDecl:
    """Build the body-less requirement for a signature.

    Args:
        signature: Function signature or property requirement.
        excluded: Modifiers to leave off the requirement.

    Returns:
        Function prototype or ``var`` requirement with its minimal accessors.
    """
    if isinstance(signature, PropertyRequirement):
        return _property_requirement(signature, excluded)
    return _function_requirement(signature, excluded)


def _function_requirement(
    signature: MemberSignature, excluded: tuple[str, ...]
) -> FunctionDecl:
    parameters = tuple(
        Parameter(
            first_name=parameter.label or "_",
            second_name=_second_name(parameter.label, parameter.internal_name),
            type=parameter.type,
            variadic=parameter.variadic,
        )
        for parameter in signature.parameters
    )
    return FunctionDecl(
        name=signature.name,
        parameters=parameters,
        effects=EffectSpecifiers(
            is_async=signature.is_async,
            throws_keyword="throws" if signature.is_throwing else None,
            thrown_type=signature.thrown_type,
        ),
        return_type=signature.return_type,
        generic_parameters=signature.generic_parameters,
        where_clause=signature.where_clause,
        attributes=signature.attributes,
        modifiers=requirement_modifiers(signature.modifiers, excluded),
    )


def _second_name(label: str | None, internal_name: str | None) -> str | None:
    if label is None:
        return internal_name
    if internal_name is None or internal_name == label:
        return None
    return internal_name


def _property_requirement(
    requirement: PropertyRequirement, excluded: tuple[str, ...]
) -> VariableDecl:
    """Property wrappers are dropped; only availability and actor isolation survive."""
    getter_effects = NO_EFFECTS
    if requirement.is_async or requirement.is_throwing:
        getter_effects = EffectSpecifiers(
            is_async=requirement.is_async,
            throws_keyword="throws" if requirement.is_throwing else None,
        )
    accessors = [accessor("get", effects=getter_effects)]
    if not requirement.get_only:
        accessors.append(accessor("set"))
    return computed_variable(
        name=requirement.name,
        type_annotation=requirement.type,
        accessors=accessors,
        attributes=tuple(
            attribute
            for attribute in requirement.attributes
            if attribute.name in _PROPERTY_ATTRIBUTES or attribute.name.endswith("Actor")
        ),
        modifier_list=requirement_modifiers(requirement.modifiers, excluded),
    )
