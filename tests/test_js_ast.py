from googmod.js_ast import (
    BinaryExpr,
    ExpressionStatement,
    FunctionDeclaration,
    FunctionExpr,
    NodeOrigin,
    NotEmittedStatement,
    NumericLiteral,
    ObjectLiteral,
    Parameter,
    PropertyAccess,
    PropertyAssignment,
    ReturnStatement,
    StringLiteral,
    VariableDeclaration,
    VariableStatement,
    call,
    derive_all,
    dotted,
    ident,
    iter_identifiers,
    map_statement,
    not_emitted,
    rename_identifiers,
    render_statements,
)
from googmod.jsdoc import AnnotationTag


def test_expressions_render_javascript() -> None:
    assert dotted("goog.ModuleType.GOOG").render() == "goog.ModuleType.GOOG"
    assert call(dotted("goog.require"), StringLiteral("a.b")).render() == "goog.require('a.b')"
    assert StringLiteral("it's").render() == "'it\\'s'"
    assert ObjectLiteral([PropertyAssignment("a-b", NumericLiteral("1"))]).render() == "{ 'a-b': 1 }"
    assert ObjectLiteral([]).render() == "{}"


def test_comma_arguments_are_parenthesised() -> None:
    expr = call(ident("f"), BinaryExpr(ident("a"), ",", ident("b")))

    assert expr.render() == "f((a, b))"


def test_function_expression_renders_inline_body() -> None:
    expr = FunctionExpr([Parameter("x")], [ReturnStatement(ident("x"))])

    assert expr.render() == "function (x) { return x; }"


def test_statement_equality_ignores_origin() -> None:
    first = ExpressionStatement(ident("a"), origin=NodeOrigin(0, 4))
    second = ExpressionStatement(ident("a"), origin=NodeOrigin(10, 14, ("// note",)))

    assert first == second


def test_function_declaration_renders_block() -> None:
    function = FunctionDeclaration("f", [Parameter("a")], [ReturnStatement(ident("a"))])
    stub = FunctionDeclaration("g", [Parameter("a")])

    assert stub.is_overload_signature
    assert render_statements([function]) == "function f(a) {\n    return a;\n}\n"


def test_comments_and_annotations_precede_statement() -> None:
    statement = VariableStatement(
        [VariableDeclaration(ident("x"), NumericLiteral("1"))],
        jsdoc=(AnnotationTag("type", type="number"),),
        origin=NodeOrigin(leading_comments=("hello",)),
    )

    assert render_statements([statement]) == "// hello\n/** @type {number} */\nvar x = 1;\n"


def test_not_emitted_keeps_only_comments() -> None:
    original = ExpressionStatement(StringLiteral("use strict"), origin=NodeOrigin(leading_comments=("/* keep */",)))
    placeholder = not_emitted(original)

    assert isinstance(placeholder, NotEmittedStatement)
    assert placeholder.origin.original is original
    assert render_statements([placeholder]) == "/* keep */\n"


def test_derive_all_keeps_comments_on_first_statement_only() -> None:
    original = ExpressionStatement(ident("a"), origin=NodeOrigin(3, 9, ("// once",)))
    parts = derive_all([ExpressionStatement(ident("a")), ExpressionStatement(ident("b"))], original)

    assert render_statements(parts) == "// once\na;\nb;\n"
    assert all(part.origin.start == 3 for part in parts)


def test_map_statement_preserves_origin() -> None:
    origin = NodeOrigin(1, 2)
    statement = ExpressionStatement(PropertyAccess(ident("x"), "default"), origin=origin)

    def collapse(expr):
        if isinstance(expr, PropertyAccess) and expr.name == "default":
            return expr.target
        return expr

    rewritten = map_statement(statement, collapse)

    assert rewritten == ExpressionStatement(ident("x"))
    assert rewritten.origin is origin
    assert iter_identifiers([statement]) == ["x"]


def test_rename_skips_shadowing_functions() -> None:
    body = [
        ExpressionStatement(call(ident("use"), ident("a"), PropertyAccess(ident("o"), "a"))),
        ExpressionStatement(FunctionExpr([Parameter("a")], [ReturnStatement(ident("a"))])),
    ]

    renamed = rename_identifiers(body, {"a": "x"})

    assert render_statements(renamed) == "use(x, o.a);\n(function (a) { return a; });\n"
