# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Read the Swift declaration subset consumed by the generators.

Source text is parsed with the tree-sitter Swift grammar and the concrete
syntax tree is turned into :mod:`macrogen.syntax` nodes. Function,
initializer and accessor bodies, initializer expressions and any member the
generators never inspect (typealiases, subscripts, statements) are kept as
source text sliced from the node byte ranges.
"""

import logging
import re
import textwrap
from dataclasses import replace

import tree_sitter_swift
from tree_sitter import Language, Node, Parser

from macrogen.syntax import (
    Accessor,
    AccessorBlock,
    ArrayType,
    Attribute,
    AttributedType,
    CodeBlock,
    CompositionType,
    Decl,
    DeclKind,
    DictionaryType,
    EffectSpecifiers,
    EnumCaseDecl,
    EnumCaseElement,
    EnumCaseParameter,
    FunctionDecl,
    FunctionType,
    GenericParameter,
    GenericWhereClause,
    InitializerDecl,
    MemberType,
    MetatypeType,
    Modifier,
    NO_EFFECTS,
    NamedType,
    OptionalType,
    Parameter,
    PatternBinding,
    RawDecl,
    RawStatement,
    SourceFile,
    SourcePosition,
    TupleType,
    TupleTypeElement,
    TypeDecl,
    TypeRef,
    VariableDecl,
    WhereRequirement,
)

logger = logging.getLogger(__name__)

SWIFT_LANGUAGE = Language(tree_sitter_swift.language())

_COMMENT_NODES = frozenset({"comment", "multiline_comment"})
_TYPE_NODES = frozenset(
    {
        "type_identifier",
        "user_type",
        "tuple_type",
        "tuple_type_item",
        "function_type",
        "array_type",
        "dictionary_type",
        "optional_type",
        "metatype",
        "opaque_type",
        "existential_type",
        "protocol_composition_type",
        "type_parameter_pack",
        "type_pack_expansion",
        "suppressed_constraint",
    }
)
_SPECIFIER_NODES = frozenset(
    {"type_modifiers", "parameter_modifiers", "parameter_modifier"}
)
_TYPE_KEYWORDS = {
    "opaque_type": "some",
    "existential_type": "any",
    "type_parameter_pack": "each",
    "type_pack_expansion": "repeat",
}
_DECL_KEYWORDS = frozenset(kind.value for kind in DeclKind)
_BODY_NODES = frozenset({"class_body", "enum_class_body", "protocol_body"})
_ACCESSOR_NODES = {
    "computed_getter": "get",
    "computed_setter": "set",
    "computed_modify": "_modify",
    "willset_clause": "willSet",
    "didset_clause": "didSet",
    "getter_specifier": "get",
    "setter_specifier": "set",
    "modify_specifier": "_modify",
}
_ACCESSOR_LISTS = frozenset(
    {"computed_property", "protocol_property_requirements", "willset_didset_block"}
)
_BINDING_PARTS = frozenset(
    {"modifiers", "value_binding_pattern", "type_constraints", "type_annotation", "pattern"}
)
_NAME_NODES = frozenset({"simple_identifier", "wildcard_pattern"})
_DETAIL_RE = re.compile(r"(\w+)\((\w+)\)")
_BINDING_KEYWORD_RE = re.compile(r"(var|let)\s+")
_TYPE_HOLDER = "func holder(_ value: "
_MEMBER_HOLDERS = ("struct Holder {", "protocol Holder {", "enum Holder {")


class ParseError(RuntimeError):
    """Represent a syntax error in the declaration source."""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"{line}:{column}: {message}")
        self.message = message
        self.line = line
        self.column = column


def _strip_indent(text: str, width: int) -> str:
    """Remove up to ``width`` leading spaces from every line after the first."""
    lines = text.split("\n")
    stripped = [lines[0]]
    for line in lines[1:]:
        leading = len(line) - len(line.lstrip(" \t"))
        stripped.append(line[min(leading, width) :])
    return "\n".join(stripped)


def _normalize_body(raw: str) -> str:
    """Turn the text between a block's braces into dedented statement text."""
    lines = raw.split("\n")
    first = lines[0].strip()
    rest = lines[1:]
    while rest and not rest[-1].strip():
        rest.pop()
    body = textwrap.dedent("\n".join(rest)).strip("\n") if rest else ""
    if first and body:
        return f"{first}\n{body}"
    return first or body


def _named(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type not in _COMMENT_NODES]


def _compact(text: str) -> str:
    return " ".join(text.split())


def _modifier(text: str) -> Modifier:
    compact = "".join(text.split())
    match = _DETAIL_RE.fullmatch(compact)
    if match:
        return Modifier(name=match.group(1), detail=match.group(2))
    return Modifier(name=compact)


def _attributed(specifiers: tuple[str, ...], type_ref: TypeRef) -> TypeRef:
    if not specifiers:
        return type_ref
    if isinstance(type_ref, AttributedType):
        return AttributedType(specifiers + type_ref.specifiers, type_ref.base)
    return AttributedType(specifiers, type_ref)


def _with_arguments(type_ref: TypeRef, arguments: tuple[TypeRef, ...]) -> TypeRef:
    if isinstance(type_ref, NamedType):
        return NamedType(name=type_ref.name, arguments=arguments)
    if isinstance(type_ref, MemberType):
        return MemberType(base=type_ref.base, name=type_ref.name, arguments=arguments)
    return type_ref


def _first_error(node: Node) -> Node:
    """Return the earliest error or missing node below ``node``."""
    if node.is_error or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            return _first_error(child)
    return node


class _DeclarationReader:
    """Turn tree-sitter nodes into syntax nodes, dispatching on ``visit_<node type>``."""

    def __init__(self, source: bytes, line_offset: int = 0) -> None:
        self._source = source
        self._lines = source.split(b"\n")
        self._line_offset = line_offset

    # -- source helpers ------------------------------------------------------

    def text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def raw(self, node: Node) -> str:
        """Slice a node's text, removing the indentation of its first line."""
        line = self._lines[node.start_point[0]]
        indent = len(line) - len(line.lstrip(b" \t"))
        return _strip_indent(self.text(node), indent)

    def position(self, node: Node) -> SourcePosition:
        row, column = node.start_point
        prefix = self._lines[row][:column].decode("utf-8", errors="replace")
        return SourcePosition(line=row + 1 - self._line_offset, column=len(prefix) + 1)

    def error(self, node: Node) -> ParseError:
        position = self.position(node)
        if node.is_missing:
            message = f"syntax error: missing '{node.type}'"
        else:
            snippet = self.text(node).strip().split("\n")[0][:30]
            if snippet:
                message = f"syntax error near '{snippet}'"
            else:
                message = "syntax error: unexpected end of input"
        return ParseError(message, position.line, position.column)

    def _block(self, opening: int, end: int) -> CodeBlock:
        """Build a code block from the ``{`` offset and the offset past ``}``."""
        body = _normalize_body(self._source[opening + 1 : end - 1].decode("utf-8"))
        if not body:
            return CodeBlock()
        return CodeBlock(statements=(RawStatement(text=body),))

    # -- declarations --------------------------------------------------------

    def handles(self, node: Node) -> bool:
        return hasattr(self, f"visit_{node.type}")

    def visit(self, node: Node) -> Decl:
        method = getattr(self, f"visit_{node.type}", None)
        if method is None:
            return RawDecl(text=self.raw(node), position=self.position(node))
        return method(node)

    def visit_class_declaration(self, node: Node) -> TypeDecl:
        attributes, modifiers = self._decorations(node, keywords=("indirect",))
        kind: DeclKind | None = None
        name: str | None = None
        generic_parameters: tuple[GenericParameter, ...] = ()
        inheritance: list[TypeRef] = []
        inherited_attributes: list[str] = []
        where_clause = None
        members: tuple[Decl, ...] = ()
        for child in node.children:
            if not child.is_named:
                if kind is None and child.type in _DECL_KEYWORDS:
                    kind = DeclKind(child.type)
                continue
            if child.type in _COMMENT_NODES or child.type == "modifiers":
                continue
            is_name = child.type in _TYPE_NODES or child.type == "simple_identifier"
            if name is None and is_name:
                if kind is DeclKind.EXTENSION:
                    name = str(self._type(child))
                else:
                    name = self.text(child)
            elif child.type == "type_parameters":
                generic_parameters = self._generic_parameters(child)
            elif child.type == "attribute":
                inherited_attributes.append(_compact(self.text(child)))
            elif child.type == "inheritance_specifier":
                inherited = self._type(_named(child)[0])
                inheritance.append(_attributed(tuple(inherited_attributes), inherited))
                inherited_attributes = []
            elif child.type == "type_constraints":
                where_clause = self._where_clause(child)
            elif child.type in _BODY_NODES:
                members = tuple(self.visit(member) for member in _named(child))
        if kind is None or name is None:
            raise self.error(node)
        return TypeDecl(
            kind=kind,
            name=name,
            members=members,
            generic_parameters=generic_parameters,
            inheritance=tuple(inheritance),
            where_clause=where_clause,
            attributes=attributes,
            modifiers=modifiers,
            position=self.position(node),
        )

    visit_protocol_declaration = visit_class_declaration

    def visit_function_declaration(self, node: Node) -> FunctionDecl:
        attributes, modifiers = self._decorations(node, keywords=("class",))
        return_types = self._types_in(node.children)
        return FunctionDecl(
            name=self._function_name(node),
            parameters=self._parameters(node),
            effects=self._effects(node),
            return_type=return_types[-1] if return_types else None,
            generic_parameters=self._generic_parameters_of(node),
            where_clause=self._where_clause_of(node),
            body=self._body_of(node),
            attributes=attributes,
            modifiers=modifiers,
            position=self.position(node),
        )

    visit_protocol_function_declaration = visit_function_declaration

    def visit_init_declaration(self, node: Node) -> InitializerDecl:
        attributes, modifiers = self._decorations(node, keywords=("class",))
        optional_mark = None
        children = node.children
        for index, child in enumerate(children):
            if child.type == "init" and index + 1 < len(children):
                following = children[index + 1]
                if following.type in ("?", "!"):
                    optional_mark = following.type
                break
        return InitializerDecl(
            parameters=self._parameters(node),
            effects=self._effects(node),
            body=self._body_of(node),
            optional_mark=optional_mark,
            generic_parameters=self._generic_parameters_of(node),
            where_clause=self._where_clause_of(node),
            attributes=attributes,
            modifiers=modifiers,
            position=self.position(node),
        )

    def visit_property_declaration(self, node: Node) -> VariableDecl:
        attributes, modifiers = self._decorations(node)
        keyword = "var"
        bindings: list[PatternBinding] = []
        for child in node.children:
            if child.type == "value_binding_pattern":
                keyword = self.text(child).split()[-1]
            elif child.type == "pattern":
                pattern = _compact(self.text(child))
                match = _BINDING_KEYWORD_RE.match(pattern)
                if match:
                    keyword = match.group(1)
                    pattern = pattern[match.end() :]
                bindings.append(PatternBinding(pattern=pattern))
            elif not bindings or not child.is_named or child.type in _COMMENT_NODES:
                continue
            elif child.type == "type_annotation":
                bindings[-1] = replace(
                    bindings[-1], type_annotation=self._types_in(child.children)[0]
                )
            elif child.type in _ACCESSOR_LISTS:
                bindings[-1] = replace(
                    bindings[-1], accessor_block=self._accessor_block(child)
                )
            elif child.type not in _BINDING_PARTS:
                bindings[-1] = replace(bindings[-1], initializer=self.raw(child))
        if not bindings:
            raise self.error(node)
        return VariableDecl(
            binding_keyword=keyword,
            bindings=tuple(bindings),
            attributes=attributes,
            modifiers=modifiers,
            position=self.position(node),
        )

    visit_protocol_property_declaration = visit_property_declaration

    def visit_enum_entry(self, node: Node) -> EnumCaseDecl:
        attributes, modifiers = self._decorations(node, keywords=("indirect",))
        elements: list[EnumCaseElement] = []
        for child in node.children:
            if child.type == "simple_identifier":
                elements.append(
                    EnumCaseElement(name=self.text(child), position=self.position(child))
                )
            elif not elements or not child.is_named or child.type in _COMMENT_NODES:
                continue
            elif child.type == "enum_type_parameters":
                elements[-1] = replace(
                    elements[-1], parameters=self._case_parameters(child)
                )
            elif child.type != "modifiers":
                elements[-1] = replace(elements[-1], raw_value=self.raw(child))
        return EnumCaseDecl(
            elements=tuple(elements),
            attributes=attributes,
            modifiers=modifiers,
            position=self.position(node),
        )

    # -- declaration parts ---------------------------------------------------

    def _decorations(
        self, node: Node, keywords: tuple[str, ...] = ()
    ) -> tuple[tuple[Attribute, ...], tuple[Modifier, ...]]:
        """Collect attributes and modifiers, plus keyword modifiers such as ``class func``."""
        attributes: list[Attribute] = []
        modifiers: list[Modifier] = []
        for child in node.children:
            if child.type == "modifiers":
                for item in _named(child):
                    if item.type == "attribute":
                        attributes.append(self._attribute(item))
                    else:
                        modifiers.append(_modifier(self.text(item)))
            elif not child.is_named and child.type in keywords:
                modifiers.append(Modifier(name=child.type))
        return tuple(attributes), tuple(modifiers)

    def _attribute(self, node: Node) -> Attribute:
        named = _named(node)
        if not named:
            return Attribute(name=self.text(node).lstrip("@"), position=self.position(node))
        name_node = named[0]
        rest = self._source[name_node.end_byte : node.end_byte].decode("utf-8").strip()
        arguments = None
        if rest.startswith("(") and rest.endswith(")"):
            arguments = rest[1:-1].strip()
        return Attribute(
            name="".join(self.text(name_node).split()),
            arguments=arguments,
            position=self.position(node),
        )

    def _function_name(self, node: Node) -> str:
        children = node.children
        for index, child in enumerate(children):
            if child.type == "func" and index + 1 < len(children):
                return self.text(children[index + 1]).strip()
        raise self.error(node)

    def _parameters(self, node: Node) -> tuple[Parameter, ...]:
        """Read the first parameter clause; defaults follow their parameter."""
        parameters: list[Parameter] = []
        attributes: list[Attribute] = []
        depth = 0
        for child in node.children:
            if not child.is_named:
                if child.type == "(":
                    depth += 1
                elif child.type == ")":
                    depth -= 1
                    if depth == 0:
                        break
                continue
            if depth == 0 or child.type in _COMMENT_NODES:
                continue
            if child.type == "attribute":
                attributes.append(self._attribute(child))
            elif child.type == "parameter":
                parameters.append(self._parameter(child, tuple(attributes)))
                attributes = []
            elif parameters:
                parameters[-1] = replace(parameters[-1], default=self.raw(child))
        return tuple(parameters)

    def _parameter(self, node: Node, attributes: tuple[Attribute, ...]) -> Parameter:
        names = [self.text(child) for child in node.children if child.type in _NAME_NODES]
        types = self._types_in(node.children)
        if not names or not types:
            raise self.error(node)
        return Parameter(
            first_name=names[0],
            type=types[0],
            second_name=names[1] if len(names) > 1 else None,
            variadic=any(child.type == "..." for child in node.children),
            attributes=attributes,
        )

    def _effects(self, node: Node | None) -> EffectSpecifiers:
        if node is None:
            return NO_EFFECTS
        is_async = False
        throws_keyword = None
        thrown_type = None
        for child in node.children:
            if child.type == "async":
                is_async = True
            elif child.type in ("throws", "rethrows"):
                throws_keyword = (
                    "rethrows" if self.text(child).startswith("rethrows") else "throws"
                )
                thrown = self._types_in(child.children)
                thrown_type = thrown[0] if thrown else None
        return EffectSpecifiers(
            is_async=is_async, throws_keyword=throws_keyword, thrown_type=thrown_type
        )

    def _body_of(self, node: Node) -> CodeBlock | None:
        for child in node.children:
            if child.type == "function_body":
                return self._block(child.start_byte, child.end_byte)
        return None

    def _generic_parameters_of(self, node: Node) -> tuple[GenericParameter, ...]:
        for child in node.children:
            if child.type == "type_parameters":
                return self._generic_parameters(child)
        return ()

    def _generic_parameters(self, node: Node) -> tuple[GenericParameter, ...]:
        parameters: list[GenericParameter] = []
        for item in _named(node):
            if item.type != "type_parameter":
                continue
            name = None
            rest: list[Node] = []
            for child in item.children:
                if name is None and child.type in (
                    "type_identifier",
                    "simple_identifier",
                    "type_parameter_pack",
                ):
                    name = self.text(child)
                elif name is not None:
                    rest.append(child)
            if name is None:
                raise self.error(item)
            constraints = self._types_in(rest)
            parameters.append(
                GenericParameter(
                    name=name, constraint=constraints[0] if constraints else None
                )
            )
        return tuple(parameters)

    def _where_clause_of(self, node: Node) -> GenericWhereClause | None:
        for child in node.children:
            if child.type == "type_constraints":
                return self._where_clause(child)
        return None

    def _where_clause(self, node: Node) -> GenericWhereClause:
        requirements = [
            self._where_requirement(constraint)
            for constraint in self._constraints(node)
        ]
        return GenericWhereClause(requirements=tuple(requirements))

    def _constraints(self, node: Node) -> list[Node]:
        found: list[Node] = []
        for child in _named(node):
            if child.type in ("inheritance_constraint", "equality_constraint"):
                found.append(child)
            elif child.type == "type_constraint":
                found.extend(self._constraints(child))
        return found

    def _where_requirement(self, node: Node) -> WhereRequirement:
        """The constrained type comes first and the last named child is the bound."""
        parts = [child for child in _named(node) if child.type != "attribute"]
        if len(parts) < 2:
            raise self.error(node)
        relation = "==" if node.type == "equality_constraint" else ":"
        return WhereRequirement(
            left=self._constrained_type(parts[:-1]),
            relation=relation,
            right=self._type(parts[-1]),
        )

    def _constrained_type(self, nodes: list[Node]) -> TypeRef:
        result: TypeRef | None = None
        for child in nodes:
            if child.type == "identifier":
                path = [part.strip() for part in self.text(child).split(".")]
                result = NamedType(path[0])
                for part in path[1:]:
                    result = MemberType(base=result, name=part)
            elif child.type in _TYPE_NODES:
                result = self._type(child)
            elif child.type == "simple_identifier" and result is not None:
                result = MemberType(base=result, name=self.text(child))
        if result is None:
            raise self.error(nodes[0])
        return result

    def _accessor_block(self, node: Node) -> AccessorBlock:
        accessors = [
            self._accessor(child) for child in _named(node) if child.type in _ACCESSOR_NODES
        ]
        if accessors or node.type != "computed_property":
            return AccessorBlock(accessors=tuple(accessors))
        return AccessorBlock(implicit_getter=self._block(node.start_byte, node.end_byte))

    def _accessor(self, node: Node) -> Accessor:
        if node.type.endswith("_specifier"):
            specifier: Node | None = node
        else:
            specifier = next(
                (child for child in _named(node) if child.type.endswith("_specifier")),
                None,
            )
        modifiers: tuple[Modifier, ...] = ()
        if specifier is not None:
            modifiers = tuple(
                Modifier(name=self.text(child))
                for child in _named(specifier)
                if child.type == "mutation_modifier"
            )
        parameter = next(
            (self.text(child) for child in _named(node) if child.type == "simple_identifier"),
            None,
        )
        body = None
        for child in node.children:
            if child.type == "{":
                body = self._block(child.start_byte, node.end_byte)
                break
        return Accessor(
            kind=_ACCESSOR_NODES[node.type],
            effects=self._effects(specifier),
            body=body,
            parameter=parameter,
            modifiers=modifiers,
        )

    def _case_parameters(self, node: Node) -> tuple[EnumCaseParameter, ...]:
        groups: list[list[Node]] = [[]]
        for child in node.children:
            if child.type in ("(", ")") or child.type in _COMMENT_NODES:
                continue
            if child.type == ",":
                groups.append([])
                continue
            groups[-1].append(child)
        return tuple(self._case_parameter(group) for group in groups if group)

    def _case_parameter(self, group: list[Node]) -> EnumCaseParameter:
        names: list[str] = []
        type_nodes: list[Node] = []
        default = None
        for child in group:
            if not type_nodes and child.type in _NAME_NODES:
                names.append(self.text(child))
            elif child.type in _TYPE_NODES or child.type in _SPECIFIER_NODES:
                type_nodes.append(child)
            elif child.type == "!" and type_nodes:
                type_nodes.append(child)
            elif type_nodes and child.is_named:
                default = self.raw(child)
        types = self._types_in(type_nodes)
        if not types:
            raise self.error(group[0])
        return EnumCaseParameter(
            type=types[0],
            first_name=names[0] if names else None,
            second_name=names[1] if len(names) > 1 else None,
            default=default,
            position=self.position(group[0]),
        )

    # -- types ---------------------------------------------------------------

    def _types_in(self, nodes: list[Node]) -> list[TypeRef]:
        """Convert the type nodes among ``nodes``, folding in preceding specifiers."""
        types: list[TypeRef] = []
        specifiers: list[str] = []
        for child in nodes:
            if child.type in _SPECIFIER_NODES:
                specifiers.extend(self._specifiers(child))
            elif child.type in _TYPE_NODES:
                types.append(_attributed(tuple(specifiers), self._type(child)))
                specifiers = []
            elif child.type == "!" and not child.is_named and types:
                types[-1] = OptionalType(wrapped=types[-1], implicitly_unwrapped=True)
            elif child.is_named and child.type not in _COMMENT_NODES:
                specifiers = []
        return types

    def _specifiers(self, node: Node) -> list[str]:
        items = _named(node) if node.type != "parameter_modifier" else []
        return [_compact(self.text(item)) for item in items or [node]]

    def _type(self, node: Node) -> TypeRef:
        keyword = _TYPE_KEYWORDS.get(node.type)
        if keyword is not None:
            inner = self._types_in(node.children)
            if not inner:
                raise self.error(node)
            return _attributed((keyword,), inner[0])
        method = getattr(self, f"_type_{node.type}", None)
        if method is None:
            return NamedType(_compact(self.text(node)))
        return method(node)

    def _type_type_identifier(self, node: Node) -> TypeRef:
        return NamedType(self.text(node))

    def _type_suppressed_constraint(self, node: Node) -> TypeRef:
        return NamedType("".join(self.text(node).split()))

    def _type_user_type(self, node: Node) -> TypeRef:
        result: TypeRef | None = None
        for child in _named(node):
            if child.type == "type_identifier":
                name = self.text(child)
                if result is None:
                    result = NamedType(name)
                elif name in ("Type", "Protocol"):
                    result = MetatypeType(base=result, kind=name)
                else:
                    result = MemberType(base=result, name=name)
            elif child.type == "type_arguments" and result is not None:
                result = _with_arguments(result, tuple(self._types_in(child.children)))
        if result is None:
            raise self.error(node)
        return result

    def _type_tuple_type(self, node: Node) -> TypeRef:
        elements = self._tuple_elements(node)
        if len(elements) == 1 and elements[0].label is None and not elements[0].variadic:
            return elements[0].type
        return TupleType(elements=tuple(elements))

    def _type_tuple_type_item(self, node: Node) -> TypeRef:
        element = self._tuple_element(node)
        if element.label is None and not element.variadic:
            return element.type
        return TupleType(elements=(element,))

    def _tuple_elements(self, node: Node) -> list[TupleTypeElement]:
        if node.type == "tuple_type_item":
            return [self._tuple_element(node)]
        items = [child for child in _named(node) if child.type == "tuple_type_item"]
        if not items:
            return [TupleTypeElement(type=t) for t in self._types_in(node.children)]
        return [self._tuple_element(item) for item in items]

    def _tuple_element(self, node: Node) -> TupleTypeElement:
        names = [self.text(child) for child in node.children if child.type in _NAME_NODES]
        types = self._types_in(node.children)
        if not types:
            raise self.error(node)
        return TupleTypeElement(
            type=types[0],
            label=names[0] if names else None,
            second_name=names[1] if len(names) > 1 else None,
            variadic=any(child.type == "..." for child in node.children),
        )

    def _type_function_type(self, node: Node) -> TypeRef:
        named = _named(node)
        if not named:
            raise self.error(node)
        arguments = named[0]
        if arguments.type in ("tuple_type", "tuple_type_item"):
            parameters = self._tuple_elements(arguments)
        else:
            parameters = [TupleTypeElement(type=self._type(arguments))]
        returned = self._types_in(
            [child for child in node.children if child.start_byte >= arguments.end_byte]
        )
        if not returned:
            raise self.error(node)
        effects = self._effects(node)
        return FunctionType(
            parameters=tuple(parameters),
            return_type=returned[-1],
            is_async=effects.is_async,
            is_throwing=effects.is_throwing,
            thrown_type=effects.thrown_type,
        )

    def _type_array_type(self, node: Node) -> TypeRef:
        return ArrayType(element=self._types_in(node.children)[0])

    def _type_dictionary_type(self, node: Node) -> TypeRef:
        key, value = self._types_in(node.children)[:2]
        return DictionaryType(key=key, value=value)

    def _type_optional_type(self, node: Node) -> TypeRef:
        result = self._types_in(node.children)[0]
        for child in node.children:
            if child.type == "?":
                result = OptionalType(wrapped=result)
        return result

    def _type_metatype(self, node: Node) -> TypeRef:
        kind = "Protocol" if node.children[-1].type == "Protocol" else "Type"
        return MetatypeType(base=self._types_in(node.children)[0], kind=kind)

    def _type_protocol_composition_type(self, node: Node) -> TypeRef:
        types: list[TypeRef] = []
        for type_ref in self._types_in(node.children):
            if isinstance(type_ref, CompositionType):
                types.extend(type_ref.types)
            else:
                types.append(type_ref)
        first = types[0]
        if isinstance(first, AttributedType) and first.specifiers in (("any",), ("some",)):
            composed = CompositionType(types=(first.base, *types[1:]))
            return AttributedType(first.specifiers, composed)
        return CompositionType(types=tuple(types))


def _parse(text: str, line_offset: int = 0) -> tuple[_DeclarationReader, Node]:
    source = text.encode("utf-8")
    tree = Parser(SWIFT_LANGUAGE).parse(source)
    reader = _DeclarationReader(source, line_offset)
    if tree.root_node.has_error:
        raise reader.error(_first_error(tree.root_node))
    return reader, tree.root_node


def _parse_member(text: str) -> Decl | None:
    """Read a member-only declaration such as ``init`` inside a holder type body."""
    for opening in _MEMBER_HOLDERS:
        try:
            reader, root = _parse(f"{opening}\n{text}\n}}", line_offset=1)
        except ParseError:
            continue
        holders = _named(root)
        if len(holders) != 1:
            continue
        bodies = [child for child in _named(holders[0]) if child.type in _BODY_NODES]
        members = _named(bodies[0]) if bodies else []
        if len(members) == 1:
            return reader.visit(members[0])
    return None


def parse_source(text: str) -> SourceFile:
    """Parse a whole source file.

    Args:
        text: Swift source text.

    Returns:
        Parsed top-level declarations.

    Raises:
        ParseError: If the grammar reports a syntax error.
    """
    reader, root = _parse(text)
    source_file = SourceFile(
        declarations=tuple(reader.visit(node) for node in _named(root))
    )
    logger.debug(
        "Parsed source", extra={"declarations": len(source_file.declarations)}
    )
    return source_file


def parse_declaration(text: str) -> Decl:
    """Parse exactly one declaration.

    Members that only occur inside a type body, such as initializers and
    protocol requirements, are accepted on their own as well.

    Args:
        text: Source text of a single declaration.

    Returns:
        The parsed declaration.

    Raises:
        ParseError: If the text is empty, malformed or holds more than one declaration.
    """
    try:
        reader, root = _parse(text)
    except ParseError:
        member = _parse_member(text)
        if member is None:
            raise
        return member
    nodes = _named(root)
    if not nodes:
        raise ParseError("expected declaration", 1, 1)
    if len(nodes) > 1:
        position = reader.position(nodes[1])
        raise ParseError("expected a single declaration", position.line, position.column)
    if not reader.handles(nodes[0]):
        member = _parse_member(text)
        if member is not None and not isinstance(member, RawDecl):
            return member
    return reader.visit(nodes[0])


def parse_type(text: str) -> TypeRef:
    """Parse a type expression such as ``(String, Int) async throws -> String``.

    The text is read as the type of a placeholder function parameter, so
    parameter specifiers like ``inout`` are accepted.

    Raises:
        ParseError: If the text is not exactly one type.
    """
    try:
        reader, root = _parse(f"{_TYPE_HOLDER}{text}) {{}}")
    except ParseError as exc:
        column = max(1, exc.column - len(_TYPE_HOLDER))
        raise ParseError(exc.message, exc.line, column) from exc
    nodes = _named(root)
    if len(nodes) == 1 and nodes[0].type == "function_declaration":
        parameters = reader.visit_function_declaration(nodes[0]).parameters
        if len(parameters) == 1 and not parameters[0].variadic:
            return parameters[0].type
    raise ParseError("expected a single type", 1, 1)
