# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Attach generators to declarations and splice their output into source files.

A generator is triggered by an attribute named after it (``@AutoDependency``,
``@EnumCodable``). It receives the attribute node, the annotated declaration
with that attribute removed and an :class:`ExpansionContext`, and returns new
members, new peer declarations and conformances. The annotated declaration is
otherwise kept as written.
"""

import logging
from dataclasses import dataclass, replace

from macrogen import builder
from macrogen.dependency import AutoDependency
from macrogen.diagnostics import (
    Diagnostic,
    DiagnosticsError,
    ExpansionContext,
    Severity,
)
from macrogen.enum_codable import EnumCodable
from macrogen.parser import parse_source
from macrogen.printer import render
from macrogen.syntax import (
    Attribute,
    Decl,
    GenericWhereClause,
    SourceFile,
    TypeDecl,
    TypeRef,
)

logger = logging.getLogger(__name__)

Conformance = tuple[TypeRef, GenericWhereClause | None]


class Macro:
    """Base class for attribute-triggered generators."""

    def expand_members(
        self, node: Attribute, declaration: Decl, context: ExpansionContext
    ) -> list[Decl]:
        return []

    def expand_peers(
        self, node: Attribute, declaration: Decl, context: ExpansionContext
    ) -> list[Decl]:
        return []

    def expand_conformances(
        self, node: Attribute, declaration: Decl, context: ExpansionContext
    ) -> list[Conformance]:
        return []


class AutoDependencyMacro(Macro):
    """Emit ``<Name>Protocol`` and ``<Name>Mock`` peers plus the conformance."""

    def expand_peers(
        self, node: Attribute, declaration: Decl, context: ExpansionContext
    ) -> list[Decl]:
        return AutoDependency(node, declaration).generate()

    def expand_conformances(
        self, node: Attribute, declaration: Decl, context: ExpansionContext
    ) -> list[Conformance]:
        return list(AutoDependency(node, declaration).conformances())


class EnumCodableMacro(Macro):
    """Emit the tagged-union codec members of an enum."""

    def expand_members(
        self, node: Attribute, declaration: Decl, context: ExpansionContext
    ) -> list[Decl]:
        return EnumCodable(declaration, context).generate()

    def expand_conformances(
        self, node: Attribute, declaration: Decl, context: ExpansionContext
    ) -> list[Conformance]:
        return list(EnumCodable(declaration, context).conformances())


MACROS: dict[str, type[Macro]] = {
    "AutoDependency": AutoDependencyMacro,
    "EnumCodable": EnumCodableMacro,
}


@dataclass(frozen=True)
class ExpansionResult:
    """Store an expanded source file and what happened while expanding it.

    Args:
        source: Rendered source with every expansion applied.
        source_file: Expanded syntax tree.
        diagnostics: Diagnostics reported by the generators.
        expanded_count: Number of attributes that produced declarations.
    """

    source: str
    source_file: SourceFile
    diagnostics: list[Diagnostic]
    expanded_count: int

    @property
    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self.diagnostics)


class _Expander:
    """Walk declarations and apply the registered macros."""

    def __init__(self, macros: dict[str, type[Macro]], context: ExpansionContext) -> None:
        self._macros = macros
        self._context = context
        self._pending_extensions: list[Decl] = []
        self.expanded_count = 0

    def expand_file(self, source_file: SourceFile) -> SourceFile:
        declarations: list[Decl] = []
        for declaration in source_file.declarations:
            declarations.extend(self._expand(declaration, scope=()))
            declarations.extend(self._pending_extensions)
            self._pending_extensions = []
        return SourceFile(declarations=tuple(declarations))

    def _expand(self, declaration: Decl, scope: tuple[str, ...]) -> list[Decl]:
        members: tuple[Decl, ...] = ()
        if isinstance(declaration, TypeDecl):
            inner_scope = scope + (declaration.name,)
            expanded_members: list[Decl] = []
            for member in declaration.members:
                expanded_members.extend(self._expand(member, inner_scope))
            members = tuple(expanded_members)

        attributes: tuple[Attribute, ...] = getattr(declaration, "attributes", ())
        attached = [attribute for attribute in attributes if attribute.name in self._macros]
        stripped = declaration
        if attached:
            stripped = replace(
                declaration,
                attributes=tuple(a for a in attributes if a.name not in self._macros),
            )

        added_members: list[Decl] = []
        peers: list[Decl] = []
        for attribute in attached:
            macro = self._macros[attribute.name]()
            try:
                new_members = macro.expand_members(attribute, stripped, self._context)
                new_peers = macro.expand_peers(attribute, stripped, self._context)
                conformances = macro.expand_conformances(
                    attribute, stripped, self._context
                )
            except DiagnosticsError as exc:
                logger.warning(
                    "Expansion aborted (macro=%s at=%s)", attribute.name, attribute.position
                )
                for diagnostic in exc.diagnostics:
                    self._context.diagnose(diagnostic)
                continue
            if new_members or new_peers or conformances:
                self.expanded_count += 1
            added_members.extend(new_members)
            peers.extend(new_peers)
            qualified_name = ".".join(scope + (getattr(stripped, "name", ""),))
            for conformance, where_clause in conformances:
                self._pending_extensions.append(
                    builder.conformance_extension(qualified_name, conformance, where_clause)
                )

        if isinstance(stripped, TypeDecl):
            stripped = replace(stripped, members=members + tuple(added_members))
        return [stripped, *peers]


def expand_source(
    text: str, macros: dict[str, type[Macro]] | None = None
) -> ExpansionResult:
    """Expand every generator attribute in a source file.

    Args:
        text: Swift source text.
        macros: Attribute name to macro class; defaults to :data:`MACROS`.

    Returns:
        Expanded source and collected diagnostics.

    Raises:
        ParseError: If the source cannot be parsed.
    """
    context = ExpansionContext()
    expander = _Expander(macros if macros is not None else MACROS, context)
    source_file = expander.expand_file(parse_source(text))
    logger.debug(
        "Expanded source",
        extra={
            "expanded": expander.expanded_count,
            "diagnostics": len(context.diagnostics),
        },
    )
    return ExpansionResult(
        source=render(source_file),
        source_file=source_file,
        diagnostics=list(context.diagnostics),
        expanded_count=expander.expanded_count,
    )
