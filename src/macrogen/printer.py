# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Render syntax nodes as Swift source text."""

import logging

from macrogen.syntax import (
    Accessor,
    AccessorBlock,
    Attribute,
    CodeBlock,
    EnumCaseDecl,
    EnumCaseElement,
    EnumCaseParameter,
    FunctionDecl,
    GenericParameter,
    GenericWhereClause,
    InitializerDecl,
    Modifier,
    Parameter,
    PatternBinding,
    RawDecl,
    RawStatement,
    SourceFile,
    SwitchStatement,
    TypeDecl,
    TypeRef,
    VariableDecl,
)

logger = logging.getLogger(__name__)

INDENT = "    "


class PrintError(RuntimeError):
    """Represent an attempt to render an unsupported node."""


class _Printer:
    """Dispatch rendering by node class name, in the manner of ``ast.NodeVisitor``."""

    def visit(self, node: object, depth: int) -> list[str]:
        method = getattr(self, f"visit_{type(node).__name__}", None)
        if method is None:
            raise PrintError(f"Cannot render node of type {type(node).__name__}")
        return method(node, depth)

    def visit_SourceFile(self, node: SourceFile, depth: int) -> list[str]:
        lines: list[str] = []
        for index, declaration in enumerate(node.declarations):
            if index:
                lines.append("")
            lines.extend(self.visit(declaration, depth))
        return lines

    def visit_TypeDecl(self, node: TypeDecl, depth: int) -> list[str]:
        header = _prefix(node.attributes, node.modifiers)
        header += f"{node.kind.value} {node.name}"
        header += _generic_clause(node.generic_parameters)
        if node.inheritance:
            header += ": " + ", ".join(str(item) for item in node.inheritance)
        header += _where_suffix(node.where_clause)
        lines = [_indent(depth) + header + " {"]
        for member in node.members:
            lines.extend(self.visit(member, depth + 1))
        lines.append(_indent(depth) + "}")
        return lines

    def visit_FunctionDecl(self, node: FunctionDecl, depth: int) -> list[str]:
        header = _prefix(node.attributes, node.modifiers)
        header += f"func {node.name}"
        header += _generic_clause(node.generic_parameters)
        header += _parameter_clause(node.parameters)
        effects = node.effects.render()
        if effects:
            header += f" {effects}"
        if node.return_type is not None:
            header += f" -> {node.return_type}"
        header += _where_suffix(node.where_clause)
        return self._with_body(header, node.body, depth)

    def visit_InitializerDecl(self, node: InitializerDecl, depth: int) -> list[str]:
        header = _prefix(node.attributes, node.modifiers)
        header += "init" + (node.optional_mark or "")
        header += _generic_clause(node.generic_parameters)
        header += _parameter_clause(node.parameters)
        effects = node.effects.render()
        if effects:
            header += f" {effects}"
        header += _where_suffix(node.where_clause)
        return self._with_body(header, node.body, depth)

    def visit_VariableDecl(self, node: VariableDecl, depth: int) -> list[str]:
        header = _prefix(node.attributes, node.modifiers) + node.binding_keyword + " "
        if len(node.bindings) == 1:
            return self._binding(header, node.bindings[0], depth)
        rendered = [_binding_head(binding) for binding in node.bindings]
        return [_indent(depth) + header + ", ".join(rendered)]

    def visit_EnumCaseDecl(self, node: EnumCaseDecl, depth: int) -> list[str]:
        header = _prefix(node.attributes, node.modifiers) + "case "
        header += ", ".join(_enum_case_element(element) for element in node.elements)
        return [_indent(depth) + header]

    def visit_RawDecl(self, node: RawDecl, depth: int) -> list[str]:
        return _indent_text(node.text, depth)

    def visit_CodeBlock(self, node: CodeBlock, depth: int) -> list[str]:
        lines: list[str] = []
        for statement in node.statements:
            lines.extend(self.visit(statement, depth))
        return lines

    def visit_RawStatement(self, node: RawStatement, depth: int) -> list[str]:
        return _indent_text(node.text, depth)

    def visit_SwitchStatement(self, node: SwitchStatement, depth: int) -> list[str]:
        lines = [f"{_indent(depth)}switch {node.subject} {{"]
        for case in node.cases:
            lines.append(f"{_indent(depth)}case {case.label}:")
            for statement in case.statements:
                lines.extend(self.visit(statement, depth + 1))
        lines.append(_indent(depth) + "}")
        return lines

    def _with_body(self, header: str, body: CodeBlock | None, depth: int) -> list[str]:
        if body is None:
            return [_indent(depth) + header]
        lines = [_indent(depth) + header + " {"]
        lines.extend(self.visit(body, depth + 1))
        lines.append(_indent(depth) + "}")
        return lines

    def _binding(self, header: str, binding: PatternBinding, depth: int) -> list[str]:
        head = _indent(depth) + header + _binding_head(binding)
        block = binding.accessor_block
        if block is None:
            return [head]
        if block.implicit_getter is not None:
            return self._with_body(head.lstrip(" "), block.implicit_getter, depth)
        if all(accessor.body is None for accessor in block.accessors):
            return [f"{head} {{ {_accessor_list(block)} }}"]
        lines = [head + " {"]
        for accessor in block.accessors:
            lines.extend(
                self._with_body(_accessor_header(accessor), accessor.body, depth + 1)
            )
        lines.append(_indent(depth) + "}")
        return lines


def _indent(depth: int) -> str:
    return INDENT * depth


def _indent_text(text: str, depth: int) -> list[str]:
    return [_indent(depth) + line if line.strip() else "" for line in text.split("\n")]


def _prefix(attributes: tuple[Attribute, ...], modifiers: tuple[Modifier, ...]) -> str:
    parts = [attribute.render() for attribute in attributes]
    parts.extend(modifier.render() for modifier in modifiers)
    return "".join(f"{part} " for part in parts)


def _generic_clause(parameters: tuple[GenericParameter, ...]) -> str:
    if not parameters:
        return ""
    return "<" + ", ".join(parameter.render() for parameter in parameters) + ">"


def _where_suffix(clause: GenericWhereClause | None) -> str:
    return "" if clause is None else f" {clause.render()}"


def _parameter(parameter: Parameter) -> str:
    text = "".join(f"{attribute.render()} " for attribute in parameter.attributes)
    text += parameter.first_name
    if parameter.second_name is not None:
        text += f" {parameter.second_name}"
    text += f": {parameter.type}"
    if parameter.variadic:
        text += "..."
    if parameter.default is not None:
        text += f" = {parameter.default}"
    return text


def _parameter_clause(parameters: tuple[Parameter, ...]) -> str:
    return "(" + ", ".join(_parameter(parameter) for parameter in parameters) + ")"


def _binding_head(binding: PatternBinding) -> str:
    text = binding.pattern
    if binding.type_annotation is not None:
        text += f": {binding.type_annotation}"
    if binding.initializer is not None:
        text += f" = {binding.initializer}"
    return text


def _accessor_header(accessor: Accessor) -> str:
    parts = [modifier.render() for modifier in accessor.modifiers]
    kind = accessor.kind
    if accessor.parameter is not None:
        kind += f"({accessor.parameter})"
    parts.append(kind)
    effects = accessor.effects.render()
    if effects:
        parts.append(effects)
    return " ".join(parts)


def _accessor_list(block: AccessorBlock) -> str:
    return " ".join(_accessor_header(accessor) for accessor in block.accessors)


def _enum_case_parameter(parameter: EnumCaseParameter) -> str:
    text = str(parameter.type)
    if parameter.first_name is not None:
        names = parameter.first_name
        if parameter.second_name is not None:
            names += f" {parameter.second_name}"
        text = f"{names}: {text}"
    if parameter.default is not None:
        text += f" = {parameter.default}"
    return text


def _enum_case_element(element: EnumCaseElement) -> str:
    text = element.name
    if element.parameters is not None:
        text += "(" + ", ".join(_enum_case_parameter(p) for p in element.parameters) + ")"
    if element.raw_value is not None:
        text += f" = {element.raw_value}"
    return text


def render(node: object) -> str:
    """Render a syntax node as Swift source text.

    Args:
        node: Declaration, statement, code block, source file or type reference.

    Returns:
        Source text with four-space indentation and no trailing newline.

    Raises:
        PrintError: If the node kind cannot be rendered.
    """
    if isinstance(node, TypeRef):
        return str(node)
    return "\n".join(_Printer().visit(node, 0))


def normalize_whitespace(text: str) -> str:
    """Collapse every run of whitespace into a single space."""
    return " ".join(text.split())
