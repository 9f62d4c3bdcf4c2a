from typing import Optional

from googmod.annotator import DeclarationAnnotator
from googmod.diagnostics import DiagnosticBag
from googmod.js_ast import (
    CallExpr,
    FunctionDeclaration,
    Identifier,
    NotEmittedStatement,
    NumericLiteral,
    Parameter,
    ReturnStatement,
    StringLiteral,
    VariableDeclaration,
    VariableStatement,
    render_statements,
)
from googmod.jsdoc import AnnotationTag, render_tags
from googmod.naming import AliasTable
from googmod.oracle import StaticOracle
from googmod.type_descriptors import NUMBER, STRING, FunctionType, ParameterInfo, Signature, union
from googmod.type_translator import TypeTranslator

FILE = "/src/a/b.ts"


def _annotator(types: Optional[dict] = None) -> DeclarationAnnotator:
    oracle = StaticOracle(FILE, root_dir="/src", types=types or {})
    diagnostics = DiagnosticBag(FILE)
    translator = TypeTranslator(FILE, oracle, AliasTable(), diagnostics)
    return DeclarationAnnotator(oracle, translator, diagnostics)


def test_overload_stubs_collapse_into_implementation() -> None:
    overloads = union(
        FunctionType(Signature((ParameterInfo("a", STRING),), return_type=STRING)),
        FunctionType(Signature((ParameterInfo("a", STRING), ParameterInfo("b", NUMBER)), return_type=STRING)),
    )
    annotator = _annotator({"f": overloads})
    statements = [
        FunctionDeclaration("f", [Parameter("a")]),
        FunctionDeclaration("f", [Parameter("a"), Parameter("b")]),
        FunctionDeclaration("f", [Parameter("x"), Parameter("y")], [ReturnStatement(Identifier("x"))]),
    ]

    output = []
    for statement in statements:
        output.extend(annotator.annotate(statement))

    assert [type(item).__name__ for item in output] == [
        "NotEmittedStatement",
        "NotEmittedStatement",
        "FunctionDeclaration",
    ]
    assert render_statements(output) == (
        "/**\n"
        " * @param {string} a\n"
        " * @param {number=} b\n"
        " * @return {string}\n"
        " */\n"
        "function f(a, b) {\n"
        "    return a;\n"
        "}\n"
    )
    assert render_tags(annotator.annotations["f"]) == [
        "@param {string} a",
        "@param {number=} b",
        "@return {string}",
    ]


def test_single_signature_keeps_implementation_names_in_tags() -> None:
    signature = Signature((ParameterInfo("value", NUMBER),), return_type=NUMBER)
    annotator = _annotator({"twice": FunctionType(signature)})
    function = FunctionDeclaration("twice", [Parameter("n")], [ReturnStatement(Identifier("n"))])

    [annotated] = annotator.annotate(function)

    assert [param.name for param in annotated.parameters] == ["n"]
    assert render_tags(annotated.jsdoc) == ["@param {number} n", "@return {number}"]


def test_unresolved_function_types_annotate_as_unknown() -> None:
    annotator = _annotator()
    function = FunctionDeclaration("g", [Parameter("a"), Parameter("rest", is_rest=True)], [])

    [annotated] = annotator.annotate(function)

    assert render_tags(annotated.jsdoc) == ["@param {?} a", "@param {...?} rest", "@return {?}"]
    assert len(annotator.diagnostics) == 3


def test_variables_receive_type_annotations() -> None:
    annotator = _annotator({"count": NUMBER})
    statement = VariableStatement(
        [VariableDeclaration(Identifier("count"), NumericLiteral("1"))],
        kind="let",
        jsdoc=(AnnotationTag("deprecated", text="use total"),),
    )

    [annotated] = annotator.annotate(statement)

    assert render_statements([annotated]) == (
        "/**\n * @deprecated use total\n * @type {number}\n */\nlet count = 1;\n"
    )
    assert "count" in annotator.annotations


def test_loading_calls_and_other_statements_are_left_alone() -> None:
    annotator = _annotator()
    require = VariableStatement(
        [VariableDeclaration(Identifier("c_1"), CallExpr(Identifier("require"), [StringLiteral("./c")]))]
    )
    pair = VariableStatement(
        [VariableDeclaration(Identifier("a")), VariableDeclaration(Identifier("b"))]
    )

    assert annotator.annotate(require) is None
    assert annotator.annotate(pair) is None
    assert annotator.annotate(ReturnStatement()) is None


def test_stubs_without_implementation_are_reported() -> None:
    annotator = _annotator()

    [placeholder] = annotator.annotate(FunctionDeclaration("h", [Parameter("a")]))
    annotator.finish()

    assert isinstance(placeholder, NotEmittedStatement)
    assert [item.subject for item in annotator.diagnostics] == ["h"]
