# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Decide which members of a type are exposed through its generated protocol."""

from macrogen.syntax import Decl, FunctionDecl, VariableDecl, has_modifier

PUBLIC_MODIFIERS: tuple[str, ...] = ("public", "open")
_TYPE_LEVEL_MODIFIERS: tuple[str, ...] = ("static", "class")


def is_public(decl: Decl) -> bool:
    """Check whether a declaration carries a ``public`` or ``open`` modifier."""
    return has_modifier(decl, *PUBLIC_MODIFIERS)


def included(member: Decl, enclosing_is_public: bool) -> bool:
    """Decide whether a member becomes a protocol requirement.

    Members of a public type are included only when they are public
    themselves; every function and property of a non-public type is included.
    Type-level members are left out because an instance mock cannot back them
    with closure slots.

    Args:
        member: Member declaration of the annotated type.
        enclosing_is_public: Whether the annotated type is public.

    Returns:
        True when the member is exposed.
    """
    if not isinstance(member, (FunctionDecl, VariableDecl)):
        return False
    if has_modifier(member, *_TYPE_LEVEL_MODIFIERS):
        return False
    if enclosing_is_public:
        return is_public(member)
    return True
