from typing import List, Optional

import pytest

from googmod import (
    JsRenderOptions,
    ModuleProcessor,
    ModulesManifest,
    ModuleStructureError,
    ProcessorOptions,
    SourceModule,
    StaticOracle,
)
from googmod.js_ast import (
    BooleanLiteral,
    CallExpr,
    CommaListExpr,
    ExpressionStatement,
    FunctionDeclaration,
    Identifier,
    NodeOrigin,
    NumericLiteral,
    ObjectLiteral,
    Parameter,
    PropertyAccess,
    PropertyAssignment,
    ReturnStatement,
    StringLiteral,
    VariableDeclaration,
    VariableStatement,
    VoidExpr,
    assign,
    call,
    dotted,
    ident,
)
from googmod.jsdoc import render_tags
from googmod.type_descriptors import (
    NUMBER,
    STRING,
    Declaration,
    FunctionType,
    ParameterInfo,
    Signature,
    Symbol,
    union,
)

FILE = "/src/a/b.ts"

PROLOGUE = "goog.module('a.b');\nvar module = module || { id: 'a/b.ts' };\n"


def _require(specifier: str) -> CallExpr:
    return call(ident("require"), StringLiteral(specifier))


def _bind(name: str, specifier: str) -> VariableStatement:
    return VariableStatement([VariableDeclaration(ident(name), _require(specifier))])


def _compiled_module() -> List:
    return [
        ExpressionStatement(StringLiteral("use strict")),
        ExpressionStatement(
            call(
                dotted("Object.defineProperty"),
                ident("exports"),
                StringLiteral("__esModule"),
                ObjectLiteral([PropertyAssignment("value", BooleanLiteral(True))]),
            )
        ),
        ExpressionStatement(assign(dotted("exports.x"), VoidExpr(NumericLiteral("0")))),
        _bind("c_1", "./c"),
        ExpressionStatement(assign(dotted("exports.x"), PropertyAccess(ident("c_1"), "y"))),
    ]


def _process(statements, *, oracle=None, manifest=None, is_module=True, **options):
    oracle = oracle or StaticOracle(FILE, root_dir="/src")
    processor = ModuleProcessor(oracle, ProcessorOptions(root_dir="/src", **options), manifest)
    return processor.process(SourceModule(FILE, list(statements), is_module=is_module))


def test_compiled_module_is_converted() -> None:
    manifest = ModulesManifest()

    result = _process(_compiled_module(), manifest=manifest)

    assert result.module_name == "a.b"
    assert result.render() == (
        PROLOGUE
        + "goog.require('tslib');\n"
        "module = module;\n"
        "exports = {};\n"
        "const c_1 = goog.require('a.c');\n"
        "exports.x = c_1.y;\n"
    )
    assert result.referenced_namespaces == ["a.c", "tslib"]
    assert manifest.referenced(FILE) == ["a.c", "tslib"]
    assert manifest.file_name_for("a.b") == FILE


def test_processing_is_repeatable() -> None:
    processor = ModuleProcessor(StaticOracle(FILE, root_dir="/src"), ProcessorOptions(root_dir="/src"))
    source = SourceModule(FILE, _compiled_module())

    first = processor.process(source).render()
    second = processor.process(source).render()

    assert first == second
    assert len(processor.manifest) == 1


def test_other_statements_keep_their_order_and_comments() -> None:
    statements = [
        ExpressionStatement(call(ident("first")), origin=NodeOrigin(0, 8, ("// one",))),
        ExpressionStatement(call(ident("second"))),
        ExpressionStatement(call(ident("third"))),
    ]

    rendered = _process(statements).render()

    assert rendered.endswith("// one\nfirst();\nsecond();\nthird();\n")


def test_module_exports_suppresses_exports_reset() -> None:
    statements = [
        ExpressionStatement(StringLiteral("use strict")),
        ExpressionStatement(assign(dotted("module.exports"), ident("Foo"))),
    ]

    assert _process(statements).render() == (
        PROLOGUE + "goog.require('tslib');\nmodule = module;\nexports = Foo;\n"
    )


def test_comma_exports_assignment_suppresses_exports_reset() -> None:
    statement = ExpressionStatement(CommaListExpr([assign(ident("exports"), ident("X")), call(ident("f"))]))

    rendered = _process([statement]).render()

    assert rendered == PROLOGUE + "goog.require('tslib');\nmodule = module;\nexports = X;\nf();\n"
    assert "exports = {};" not in rendered


def test_later_binding_replaces_bare_require() -> None:
    statements = [
        ExpressionStatement(_require("./c")),
        ExpressionStatement(assign(dotted("exports.ns"), _require("./c"))),
    ]

    result = _process(statements)
    rendered = result.render()

    assert rendered.count("goog.require('a.c')") == 1
    assert rendered.endswith("const moduleVar_1 = goog.require('a.c');\nexports.ns = moduleVar_1;\n")
    assert result.referenced_namespaces == ["a.c", "tslib"]


def test_tslib_is_resolved_through_the_oracle() -> None:
    oracle = StaticOracle(FILE, root_dir="/src", module_paths={"tslib": "/src/lib/tslib.ts"})

    header_only = _process([], oracle=oracle).render()
    required = _process([ExpressionStatement(_require("tslib"))], oracle=oracle).render()

    assert header_only.startswith(PROLOGUE + "goog.require('lib.tslib');\n")
    assert required.count("goog.require('lib.tslib')") == 1
    assert "goog.require('tslib')" not in required


def test_es5_mode_prologue() -> None:
    rendered = _process(_compiled_module(), es5_mode=True).render()

    assert rendered.startswith(PROLOGUE + "goog.require('tslib');\nvar c_1 = goog.require('a.c');\n")
    assert "module = module;" not in rendered


def test_overloads_are_annotated_in_the_module() -> None:
    overloads = union(
        FunctionType(Signature((ParameterInfo("a", STRING),), return_type=STRING)),
        FunctionType(Signature((ParameterInfo("a", STRING), ParameterInfo("b", NUMBER)), return_type=STRING)),
    )
    oracle = StaticOracle(FILE, root_dir="/src", types={"f": overloads})
    statements = [
        FunctionDeclaration("f", [Parameter("a")]),
        FunctionDeclaration("f", [Parameter("a"), Parameter("b")]),
        FunctionDeclaration("f", [Parameter("x"), Parameter("y")], [ReturnStatement(Identifier("x"))]),
    ]

    result = _process(statements, oracle=oracle)

    assert render_tags(result.annotations["f"]) == [
        "@param {string} a",
        "@param {number=} b",
        "@return {string}",
    ]
    assert "function f(a, b) {\n    return a;\n}\n" in result.render()
    assert result.diagnostics == []


def test_goog_imports_drop_default_access() -> None:
    usage = ExpressionStatement(call(PropertyAccess(ident("foo"), "default")))

    rendered = _process([_bind("foo", "goog:foo.Bar"), usage]).render()

    assert rendered.endswith("const foo = goog.require('foo.Bar');\nfoo();\n")


def test_scripts_pass_through_in_js_transpilation() -> None:
    manifest = ModulesManifest()
    statements = [ExpressionStatement(call(ident("run")))]

    result = _process(statements, manifest=manifest, is_module=False, js_transpilation=True)

    assert result.statements == statements
    assert result.render() == "run();\n"
    assert len(manifest) == 0


def test_js_transpilation_module_has_no_tslib_require() -> None:
    result = _process([], js_transpilation=True)

    assert result.render() == PROLOGUE + "module = module;\nexports = {};\n"
    assert result.referenced_namespaces == []


def test_existing_tslib_require_is_not_repeated() -> None:
    result = _process([ExpressionStatement(_require("tslib"))])
    rendered = result.render()

    assert rendered.count("goog.require('tslib')") == 1
    assert result.referenced_namespaces == ["tslib"]


def test_non_source_modules_are_rejected() -> None:
    processor = ModuleProcessor(StaticOracle(FILE, root_dir="/src"))

    with pytest.raises(ModuleStructureError):
        processor.process([ExpressionStatement(call(ident("run")))])


def test_local_exports_are_indexed() -> None:
    exported = Symbol("f", FILE, kind="value", declarations=(Declaration(FILE),))
    oracle = StaticOracle(FILE, root_dir="/src", exports=[exported])

    result = _process([], oracle=oracle)

    assert result.local_exports == [("f", "f")]


def test_unresolved_variable_types_are_reported() -> None:
    statement = VariableStatement([VariableDeclaration(ident("count"), NumericLiteral("1"))], kind="let")

    result = _process([statement])

    assert "/** @type {?} */\nlet count = 1;\n" in result.render()
    assert [item.subject for item in result.diagnostics] == ["count"]


def test_fileoverview_block_is_rendered_first() -> None:
    rendered = _process([]).render(JsRenderOptions(emit_fileoverview=True))

    assert rendered.startswith(
        "/**\n"
        " * @fileoverview added by googmod\n"
        " * @suppress {checkTypes,extraRequire,uselessCode} checked by tsc\n"
        " */\n"
        "goog.module('a.b');\n"
    )


class _RenamingOracle:
    """Minimal oracle that names every module after its file stem."""

    def resolve_symbol(self, node: object) -> Optional[Symbol]:
        return None

    def type_of(self, node_or_symbol: object):
        return None

    def exports_of(self, module_symbol: Symbol):
        return []

    def resolve_module_path(self, from_file: str, specifier: str) -> str:
        return specifier

    def path_to_registered_name(self, context_file: str, path: str) -> str:
        return "lib." + path.rsplit("/", 1)[-1].split(".")[0]


def test_any_oracle_implementation_can_drive_processing() -> None:
    result = _process([_bind("c_1", "./c")], oracle=_RenamingOracle())

    assert result.module_name == "lib.b"
    assert "const c_1 = goog.require('lib.c');\n" in result.render()
    assert result.local_exports == []
