"""Lightweight JavaScript syntax tree helpers.

The rewriter operates on the top-level statement list of one compiled module.
This module provides a compact set of dataclasses that model the JavaScript
constructs that list is made of.  They are intentionally minimalistic: the goal
is not to be a full ECMAScript AST but to capture the shapes the CommonJS
emitter produces (require calls, exports assignments, property definitions,
comma sequences, ...) in a structured manner so that the idiom matchers in
:mod:`googmod.module_rewriter` can destructure them.

Anything the model does not know about travels through as :class:`RawExpr` or
:class:`RawStatement` text.  Statements carry a :class:`NodeOrigin` describing
where they came from; it is excluded from equality so tests can compare
rewritten statements structurally.

Statements expose an :meth:`emit` method which receives a
:class:`~googmod.js_formatter.JsWriter`.  Expressions simply render to strings.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .js_formatter import JsWriter
from .jsdoc import AnnotationTag, render_tags


# ---------------------------------------------------------------------------
# origin metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NodeOrigin:
    """Source position and comments of a statement.

    ``original`` links a synthesized statement back to the statement it was
    derived from, the same way the compiler front-end tracks original nodes.
    """

    start: int = -1
    end: int = -1
    leading_comments: Tuple[str, ...] = ()
    original: Optional["JsStatement"] = None

    def derive(self, original: "JsStatement") -> "NodeOrigin":
        return NodeOrigin(self.start, self.end, self.leading_comments, original)


# ---------------------------------------------------------------------------
# expression nodes
# ---------------------------------------------------------------------------


class JsExpression:
    """Base class for all JavaScript expression nodes."""

    def render(self) -> str:
        raise NotImplementedError


@dataclass
class Identifier(JsExpression):
    name: str

    def render(self) -> str:
        return self.name


@dataclass
class StringLiteral(JsExpression):
    value: str
    quote: str = "'"

    def render(self) -> str:
        escaped = self.value.replace("\\", "\\\\").replace(self.quote, "\\" + self.quote)
        escaped = escaped.replace("\n", "\\n")
        return f"{self.quote}{escaped}{self.quote}"


@dataclass
class NumericLiteral(JsExpression):
    text: str

    def render(self) -> str:
        return self.text


@dataclass
class BooleanLiteral(JsExpression):
    value: bool

    def render(self) -> str:
        return "true" if self.value else "false"


@dataclass
class NullLiteral(JsExpression):
    def render(self) -> str:
        return "null"


@dataclass
class VoidExpr(JsExpression):
    operand: JsExpression

    def render(self) -> str:
        return f"void {self.operand.render()}"


@dataclass
class PropertyAccess(JsExpression):
    target: JsExpression
    name: str

    def render(self) -> str:
        return f"{_wrap_operand(self.target)}.{self.name}"


@dataclass
class ElementAccess(JsExpression):
    target: JsExpression
    index: JsExpression

    def render(self) -> str:
        return f"{_wrap_operand(self.target)}[{self.index.render()}]"


@dataclass
class CallExpr(JsExpression):
    callee: JsExpression
    arguments: Sequence[JsExpression] = field(default_factory=list)

    def render(self) -> str:
        args = ", ".join(_render_argument(arg) for arg in self.arguments)
        return f"{_wrap_operand(self.callee)}({args})"


@dataclass
class BinaryExpr(JsExpression):
    left: JsExpression
    operator: str
    right: JsExpression

    def render(self) -> str:
        if self.operator == ",":
            return f"{self.left.render()}, {self.right.render()}"
        lhs = _render_argument(self.left)
        rhs = _render_argument(self.right)
        return f"{lhs} {self.operator} {rhs}"


@dataclass
class CommaListExpr(JsExpression):
    elements: Sequence[JsExpression] = field(default_factory=list)

    def render(self) -> str:
        return ", ".join(element.render() for element in self.elements)


@dataclass
class PropertyAssignment:
    name: str
    value: JsExpression

    def render(self) -> str:
        return f"{_property_key(self.name)}: {self.value.render()}"


@dataclass
class MethodProperty:
    """Shorthand method such as ``get() { return x; }``."""

    name: str
    parameters: Sequence["Parameter"] = field(default_factory=list)
    body: List["JsStatement"] = field(default_factory=list)

    def render(self) -> str:
        params = ", ".join(param.render() for param in self.parameters)
        return f"{_property_key(self.name)}({params}) {render_inline_block(self.body)}"


@dataclass
class ObjectLiteral(JsExpression):
    properties: Sequence[object] = field(default_factory=list)

    def render(self) -> str:
        if not self.properties:
            return "{}"
        rendered = ", ".join(prop.render() for prop in self.properties)
        return f"{{ {rendered} }}"


@dataclass
class Parameter:
    name: str
    is_rest: bool = False
    initializer: Optional[JsExpression] = None

    def render(self) -> str:
        text = f"...{self.name}" if self.is_rest else self.name
        if self.initializer is not None:
            text += f" = {self.initializer.render()}"
        return text


@dataclass
class FunctionExpr(JsExpression):
    parameters: Sequence[Parameter] = field(default_factory=list)
    body: List["JsStatement"] = field(default_factory=list)
    name: Optional[str] = None

    def render(self) -> str:
        params = ", ".join(param.render() for param in self.parameters)
        head = f"function {self.name}" if self.name else "function "
        return f"{head}({params}) {render_inline_block(self.body)}"


@dataclass
class RawExpr(JsExpression):
    text: str

    def render(self) -> str:
        return self.text


def _wrap_operand(expr: JsExpression) -> str:
    text = expr.render()
    if isinstance(expr, (BinaryExpr, CommaListExpr, FunctionExpr, ObjectLiteral, VoidExpr)):
        return f"({text})"
    return text


def _render_argument(expr: JsExpression) -> str:
    text = expr.render()
    if isinstance(expr, CommaListExpr) or (isinstance(expr, BinaryExpr) and expr.operator == ","):
        return f"({text})"
    return text


def _property_key(name: str) -> str:
    if name.isidentifier():
        return name
    return StringLiteral(name).render()


# ---------------------------------------------------------------------------
# statement nodes
# ---------------------------------------------------------------------------


class JsStatement:
    """Base class for all top-level and nested statements."""

    origin: Optional[NodeOrigin] = None

    def emit(self, writer: JsWriter) -> None:
        raise NotImplementedError

    @property
    def leading_comments(self) -> Tuple[str, ...]:
        if self.origin is None:
            return ()
        return self.origin.leading_comments


@dataclass
class ExpressionStatement(JsStatement):
    expression: JsExpression
    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    def emit(self, writer: JsWriter) -> None:
        text = self.expression.render()
        if isinstance(self.expression, (ObjectLiteral, FunctionExpr)):
            text = f"({text})"
        writer.write_line(f"{text};")


@dataclass
class VariableDeclaration:
    name: JsExpression
    initializer: Optional[JsExpression] = None

    def render(self) -> str:
        if self.initializer is None:
            return self.name.render()
        return f"{self.name.render()} = {_render_argument(self.initializer)}"


@dataclass
class VariableStatement(JsStatement):
    declarations: Sequence[VariableDeclaration]
    kind: str = "var"
    jsdoc: Tuple[AnnotationTag, ...] = ()
    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    def emit(self, writer: JsWriter) -> None:
        rendered = ", ".join(decl.render() for decl in self.declarations)
        writer.write_line(f"{self.kind} {rendered};")


@dataclass
class ReturnStatement(JsStatement):
    expression: Optional[JsExpression] = None
    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    def emit(self, writer: JsWriter) -> None:
        if self.expression is None:
            writer.write_line("return;")
        else:
            writer.write_line(f"return {self.expression.render()};")


@dataclass
class FunctionDeclaration(JsStatement):
    """A function declaration; ``body`` is ``None`` for overload signatures."""

    name: str
    parameters: Sequence[Parameter] = field(default_factory=list)
    body: Optional[List[JsStatement]] = None
    jsdoc: Tuple[AnnotationTag, ...] = ()
    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    @property
    def is_overload_signature(self) -> bool:
        return self.body is None

    def emit(self, writer: JsWriter) -> None:
        params = ", ".join(param.render() for param in self.parameters)
        if not self.body:
            writer.write_line(f"function {self.name}({params}) {{ }}")
            return
        writer.write_line(f"function {self.name}({params}) {{")
        with writer.indented():
            for statement in self.body:
                emit_statement(statement, writer)
        writer.write_line("}")


@dataclass
class NotEmittedStatement(JsStatement):
    """Placeholder for an erased statement; only its comments survive."""

    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    def emit(self, writer: JsWriter) -> None:
        return None


@dataclass
class ImportDeclaration(JsStatement):
    specifier: str
    clause: Optional[str] = None
    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    def emit(self, writer: JsWriter) -> None:
        source = StringLiteral(self.specifier).render()
        if self.clause:
            writer.write_line(f"import {self.clause} from {source};")
        else:
            writer.write_line(f"import {source};")


@dataclass
class ExportDeclaration(JsStatement):
    clause: str
    specifier: Optional[str] = None
    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    def emit(self, writer: JsWriter) -> None:
        if self.specifier is None:
            writer.write_line(f"export {self.clause};")
        else:
            source = StringLiteral(self.specifier).render()
            writer.write_line(f"export {self.clause} from {source};")


@dataclass
class RawStatement(JsStatement):
    text: str
    origin: Optional[NodeOrigin] = field(default=None, compare=False, repr=False)

    def emit(self, writer: JsWriter) -> None:
        for line in self.text.splitlines():
            writer.write_line(line.rstrip(), align=not line[:1].isspace())


# ---------------------------------------------------------------------------
# emission helpers
# ---------------------------------------------------------------------------


def emit_statement(statement: JsStatement, writer: JsWriter, *, inline_single_tag: bool = True) -> None:
    """Emit ``statement`` preceded by its comments and annotation block."""

    for comment in statement.leading_comments:
        writer.write_comment(comment)
    tags = getattr(statement, "jsdoc", ())
    if tags:
        writer.write_jsdoc(render_tags(tags), inline=inline_single_tag)
    statement.emit(writer)


def render_inline_block(statements: Sequence[JsStatement]) -> str:
    if not statements:
        return "{ }"
    writer = JsWriter(indent="")
    for statement in statements:
        statement.emit(writer)
    body = " ".join(line.strip() for line in writer.render().splitlines() if line.strip())
    return f"{{ {body} }}"


def render_statements(statements: Iterable[JsStatement]) -> str:
    writer = JsWriter()
    for statement in statements:
        emit_statement(statement, writer)
    return writer.render()


# ---------------------------------------------------------------------------
# construction helpers
# ---------------------------------------------------------------------------


def ident(name: str) -> Identifier:
    return Identifier(name)


def dotted(path: str) -> JsExpression:
    """Build ``a.b.c`` property accesses from a dotted path."""

    head, *rest = path.split(".")
    expr: JsExpression = Identifier(head)
    for part in rest:
        expr = PropertyAccess(expr, part)
    return expr


def call(callee: JsExpression, *arguments: JsExpression) -> CallExpr:
    return CallExpr(callee, list(arguments))


def assign(target: JsExpression, value: JsExpression) -> BinaryExpr:
    return BinaryExpr(target, "=", value)


def with_origin(statement: JsStatement, original: JsStatement, *, keep_comments: bool = True) -> JsStatement:
    """Give ``statement`` the source range and comments of ``original``."""

    base = original.origin or NodeOrigin()
    if not keep_comments:
        base = NodeOrigin(base.start, base.end)
    statement.origin = base.derive(original)
    return statement


def derive_all(statements: Sequence[JsStatement], original: JsStatement) -> List[JsStatement]:
    """Attach ``original`` as origin; only the first statement keeps its comments."""

    for index, statement in enumerate(statements):
        with_origin(statement, original, keep_comments=index == 0)
    return list(statements)


def not_emitted(original: JsStatement) -> NotEmittedStatement:
    placeholder = NotEmittedStatement()
    with_origin(placeholder, original)
    return placeholder


# ---------------------------------------------------------------------------
# generic traversal
# ---------------------------------------------------------------------------


ExpressionMapper = Callable[[JsExpression], JsExpression]


def map_expression(expr: JsExpression, mapper: ExpressionMapper) -> JsExpression:
    """Rebuild ``expr`` bottom-up, passing every sub-expression to ``mapper``.

    The traversal walks dataclass fields generically, which keeps it in sync
    with new node types automatically.  Nested function bodies are visited as
    well.
    """

    if not dataclasses.is_dataclass(expr):
        return mapper(expr)
    changes = {}
    for item in dataclasses.fields(expr):
        value = getattr(expr, item.name)
        mapped = _map_value(value, mapper)
        if mapped is not value:
            changes[item.name] = mapped
    rebuilt = dataclasses.replace(expr, **changes) if changes else expr
    return mapper(rebuilt)


def map_statement(statement: JsStatement, mapper: ExpressionMapper) -> JsStatement:
    """Return ``statement`` with every contained expression mapped."""

    changes = {}
    for item in dataclasses.fields(statement):
        if item.name in ("origin", "jsdoc"):
            continue
        value = getattr(statement, item.name)
        mapped = _map_value(value, mapper)
        if mapped is not value:
            changes[item.name] = mapped
    if not changes:
        return statement
    rebuilt = dataclasses.replace(statement, **changes)
    rebuilt.origin = statement.origin
    return rebuilt


def _map_value(value, mapper: ExpressionMapper):
    if isinstance(value, JsExpression):
        return map_expression(value, mapper)
    if isinstance(value, JsStatement):
        return map_statement(value, mapper)
    if isinstance(value, (PropertyAssignment, MethodProperty, Parameter, VariableDeclaration)):
        changes = {}
        for item in dataclasses.fields(value):
            inner = getattr(value, item.name)
            mapped = _map_value(inner, mapper)
            if mapped is not inner:
                changes[item.name] = mapped
        return dataclasses.replace(value, **changes) if changes else value
    if isinstance(value, (list, tuple)):
        mapped_items = [_map_value(item, mapper) for item in value]
        if all(new is old for new, old in zip(mapped_items, value)):
            return value
        return type(value)(mapped_items)
    return value


def iter_identifiers(statements: Iterable[JsStatement]) -> List[str]:
    """Return every identifier name referenced by ``statements`` in order."""

    names: List[str] = []

    def collect(expr: JsExpression) -> JsExpression:
        if isinstance(expr, Identifier):
            names.append(expr.name)
        return expr

    for statement in statements:
        map_statement(statement, collect)
    return names


def rename_identifiers(statements: Sequence[JsStatement], mapping: dict) -> List[JsStatement]:
    """Rename identifier references according to ``mapping``.

    Nested functions whose parameters shadow a renamed name keep that name
    untouched inside their body.  Property names are never renamed.
    """

    return [_rename(statement, mapping) for statement in statements]


def _rename(node, mapping: dict):
    if not mapping:
        return node
    if isinstance(node, Identifier):
        renamed = mapping.get(node.name)
        return Identifier(renamed) if renamed else node
    if isinstance(node, (FunctionExpr, FunctionDeclaration, MethodProperty)):
        shadowed = {param.name for param in node.parameters}
        inner = {old: new for old, new in mapping.items() if old not in shadowed}
        if not inner or node.body is None:
            return node
        rebuilt = dataclasses.replace(node, body=[_rename(item, inner) for item in node.body])
        if isinstance(node, JsStatement):
            rebuilt.origin = node.origin
        return rebuilt
    if isinstance(node, (list, tuple)):
        return type(node)(_rename(item, mapping) for item in node)
    if not dataclasses.is_dataclass(node) or isinstance(node, NodeOrigin):
        return node
    changes = {}
    for item in dataclasses.fields(node):
        if item.name in ("origin", "jsdoc"):
            continue
        value = getattr(node, item.name)
        renamed = _rename(value, mapping)
        if renamed is not value:
            changes[item.name] = renamed
    if not changes:
        return node
    rebuilt = dataclasses.replace(node, **changes)
    if isinstance(node, JsStatement):
        rebuilt.origin = node.origin
    return rebuilt


__all__ = [
    "BinaryExpr",
    "BooleanLiteral",
    "CallExpr",
    "CommaListExpr",
    "ElementAccess",
    "ExportDeclaration",
    "ExpressionStatement",
    "FunctionDeclaration",
    "FunctionExpr",
    "Identifier",
    "ImportDeclaration",
    "JsExpression",
    "JsStatement",
    "MethodProperty",
    "NodeOrigin",
    "NotEmittedStatement",
    "NullLiteral",
    "NumericLiteral",
    "ObjectLiteral",
    "Parameter",
    "PropertyAccess",
    "PropertyAssignment",
    "RawExpr",
    "RawStatement",
    "ReturnStatement",
    "StringLiteral",
    "VariableDeclaration",
    "VariableStatement",
    "VoidExpr",
    "assign",
    "call",
    "derive_all",
    "dotted",
    "emit_statement",
    "ident",
    "iter_identifiers",
    "map_expression",
    "map_statement",
    "not_emitted",
    "render_inline_block",
    "rename_identifiers",
    "render_statements",
    "with_origin",
]
