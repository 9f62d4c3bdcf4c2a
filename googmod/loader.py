"""Load a front-end bundle from JSON.

A bundle is what the external parser and type checker hand over: for every
module its top-level statements plus the oracle tables the rewriter consults.
Nodes are plain objects tagged with a ``"type"`` key naming the
:mod:`googmod.js_ast` class.  Statements may carry ``start``/``end`` offsets
and a ``comments`` list; declarations may carry ``jsdoc`` tags.

Malformed input raises :class:`~googmod.diagnostics.ModuleStructureError`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from .diagnostics import ModuleStructureError
from .js_ast import (
    BinaryExpr,
    BooleanLiteral,
    CallExpr,
    CommaListExpr,
    ElementAccess,
    ExportDeclaration,
    ExpressionStatement,
    FunctionDeclaration,
    FunctionExpr,
    Identifier,
    ImportDeclaration,
    JsExpression,
    JsStatement,
    MethodProperty,
    NodeOrigin,
    NotEmittedStatement,
    NullLiteral,
    NumericLiteral,
    ObjectLiteral,
    Parameter,
    PropertyAccess,
    PropertyAssignment,
    RawExpr,
    RawStatement,
    ReturnStatement,
    StringLiteral,
    VariableDeclaration,
    VariableStatement,
    VoidExpr,
)
from .jsdoc import AnnotationTag
from .module_rewriter import ProcessorOptions, SourceModule
from .oracle import StaticOracle


@dataclass
class Bundle:
    """Modules of one bundle with their oracles and the host options."""

    options: ProcessorOptions
    modules: List[SourceModule] = field(default_factory=list)
    oracles: Dict[str, StaticOracle] = field(default_factory=dict)

    def oracle_for(self, module: SourceModule) -> StaticOracle:
        return self.oracles[module.file_name]


# ---------------------------------------------------------------------------
# expressions
# ---------------------------------------------------------------------------


def _require(entry: Mapping[str, Any], key: str) -> Any:
    if key not in entry:
        raise ModuleStructureError(f"{entry.get('type', 'node')} requires {key!r}")
    return entry[key]


def _numeric(entry: Mapping[str, Any]) -> NumericLiteral:
    text = entry.get("text")
    if text is None:
        text = str(_require(entry, "value"))
    return NumericLiteral(str(text))


def _object_member(entry: Any) -> object:
    if not isinstance(entry, Mapping):
        raise ModuleStructureError(f"object literal members must be objects, got {entry!r}")
    kind = entry.get("type", "PropertyAssignment")
    if kind == "PropertyAssignment":
        return PropertyAssignment(str(_require(entry, "name")), expression_from_json(_require(entry, "value")))
    if kind == "MethodProperty":
        return MethodProperty(
            str(_require(entry, "name")),
            [parameter_from_json(item) for item in entry.get("parameters", [])],
            statements_from_json(entry.get("body", [])),
        )
    raise ModuleStructureError(f"unsupported object literal member {kind!r}")


_EXPRESSIONS: Dict[str, Callable[[Mapping[str, Any]], JsExpression]] = {
    "Identifier": lambda e: Identifier(str(_require(e, "name"))),
    "StringLiteral": lambda e: StringLiteral(str(_require(e, "value")), e.get("quote", "'")),
    "NumericLiteral": _numeric,
    "BooleanLiteral": lambda e: BooleanLiteral(bool(_require(e, "value"))),
    "NullLiteral": lambda e: NullLiteral(),
    "VoidExpr": lambda e: VoidExpr(expression_from_json(_require(e, "operand"))),
    "PropertyAccess": lambda e: PropertyAccess(
        expression_from_json(_require(e, "target")), str(_require(e, "name"))
    ),
    "ElementAccess": lambda e: ElementAccess(
        expression_from_json(_require(e, "target")), expression_from_json(_require(e, "index"))
    ),
    "CallExpr": lambda e: CallExpr(
        expression_from_json(_require(e, "callee")),
        [expression_from_json(item) for item in e.get("arguments", [])],
    ),
    "BinaryExpr": lambda e: BinaryExpr(
        expression_from_json(_require(e, "left")),
        str(_require(e, "operator")),
        expression_from_json(_require(e, "right")),
    ),
    "CommaListExpr": lambda e: CommaListExpr([expression_from_json(item) for item in e.get("elements", [])]),
    "ObjectLiteral": lambda e: ObjectLiteral([_object_member(item) for item in e.get("properties", [])]),
    "FunctionExpr": lambda e: FunctionExpr(
        [parameter_from_json(item) for item in e.get("parameters", [])],
        statements_from_json(e.get("body", [])),
        e.get("name"),
    ),
    "RawExpr": lambda e: RawExpr(str(_require(e, "text"))),
}


def expression_from_json(entry: Any) -> JsExpression:
    if not isinstance(entry, Mapping):
        raise ModuleStructureError(f"expression nodes must be objects, got {entry!r}")
    kind = entry.get("type")
    factory = _EXPRESSIONS.get(kind)
    if factory is None:
        raise ModuleStructureError(f"unsupported expression type {kind!r}")
    return factory(entry)


def parameter_from_json(entry: Any) -> Parameter:
    if isinstance(entry, str):
        return Parameter(entry)
    if not isinstance(entry, Mapping):
        raise ModuleStructureError(f"parameters must be names or objects, got {entry!r}")
    initializer = entry.get("initializer")
    return Parameter(
        str(_require(entry, "name")),
        is_rest=bool(entry.get("rest", False)),
        initializer=expression_from_json(initializer) if initializer is not None else None,
    )


# ---------------------------------------------------------------------------
# statements
# ---------------------------------------------------------------------------


def _jsdoc(entry: Mapping[str, Any]):
    return tuple(
        AnnotationTag(
            str(_require(tag, "tag_name")),
            type=tag.get("type"),
            parameter_name=tag.get("parameter_name"),
            text=tag.get("text"),
        )
        for tag in entry.get("jsdoc", [])
    )


def _declaration(entry: Any) -> VariableDeclaration:
    if not isinstance(entry, Mapping):
        raise ModuleStructureError(f"variable declarations must be objects, got {entry!r}")
    name = _require(entry, "name")
    target = Identifier(name) if isinstance(name, str) else expression_from_json(name)
    initializer = entry.get("initializer")
    return VariableDeclaration(target, expression_from_json(initializer) if initializer is not None else None)


def _function_declaration(entry: Mapping[str, Any]) -> FunctionDeclaration:
    body = entry.get("body")
    return FunctionDeclaration(
        str(_require(entry, "name")),
        [parameter_from_json(item) for item in entry.get("parameters", [])],
        statements_from_json(body) if body is not None else None,
        jsdoc=_jsdoc(entry),
    )


def _optional_expression(entry: Mapping[str, Any], key: str) -> Optional[JsExpression]:
    value = entry.get(key)
    return expression_from_json(value) if value is not None else None


_STATEMENTS: Dict[str, Callable[[Mapping[str, Any]], JsStatement]] = {
    "ExpressionStatement": lambda e: ExpressionStatement(expression_from_json(_require(e, "expression"))),
    "VariableStatement": lambda e: VariableStatement(
        [_declaration(item) for item in _require(e, "declarations")],
        kind=str(e.get("kind", "var")),
        jsdoc=_jsdoc(e),
    ),
    "ReturnStatement": lambda e: ReturnStatement(_optional_expression(e, "expression")),
    "FunctionDeclaration": _function_declaration,
    "NotEmittedStatement": lambda e: NotEmittedStatement(),
    "ImportDeclaration": lambda e: ImportDeclaration(str(_require(e, "specifier")), e.get("clause")),
    "ExportDeclaration": lambda e: ExportDeclaration(str(_require(e, "clause")), e.get("specifier")),
    "RawStatement": lambda e: RawStatement(str(_require(e, "text"))),
}


def statement_from_json(entry: Any) -> JsStatement:
    if not isinstance(entry, Mapping):
        raise ModuleStructureError(f"statement nodes must be objects, got {entry!r}")
    kind = entry.get("type")
    factory = _STATEMENTS.get(kind)
    if factory is None:
        raise ModuleStructureError(f"unsupported statement type {kind!r}")
    statement = factory(entry)
    comments = entry.get("comments") or ()
    if comments or "start" in entry or "end" in entry:
        statement.origin = NodeOrigin(
            start=int(entry.get("start", -1)),
            end=int(entry.get("end", -1)),
            leading_comments=tuple(str(comment) for comment in comments),
        )
    return statement


def statements_from_json(entries: Any) -> List[JsStatement]:
    if not isinstance(entries, list):
        raise ModuleStructureError("statement lists must be arrays")
    return [statement_from_json(entry) for entry in entries]


# ---------------------------------------------------------------------------
# bundles
# ---------------------------------------------------------------------------


def options_from_json(payload: Mapping[str, Any], root_dir: str = "") -> ProcessorOptions:
    module_ids = payload.get("module_ids")
    options = ProcessorOptions(
        js_transpilation=bool(payload.get("js_transpilation", False)),
        es5_mode=bool(payload.get("es5_mode", False)),
        convert_index_import_shorthand=bool(payload.get("convert_index_import_shorthand", False)),
        root_dir=root_dir,
        strip_internal=bool(payload.get("strip_internal", False)),
    )
    if isinstance(module_ids, Mapping) and module_ids:
        ids = {str(key): str(value) for key, value in module_ids.items()}
        default = options.module_id

        def module_id_for(file_name: str) -> str:
            return ids.get(file_name) or default(file_name)

        options.module_id_for = module_id_for
    namespace = payload.get("closure_namespace")
    if namespace:
        options.closure_namespace = str(namespace)
    return options


def bundle_from_json(payload: Any) -> Bundle:
    if not isinstance(payload, Mapping):
        raise ModuleStructureError("bundle must be a JSON object")
    root_dir = str(payload.get("root_dir", ""))
    options = options_from_json(payload.get("options") or {}, root_dir)
    module_names = payload.get("module_names") or {}
    bundle = Bundle(options)
    entries = payload.get("modules")
    if not isinstance(entries, list):
        raise ModuleStructureError("bundle requires a 'modules' array")
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ModuleStructureError("module entries must be objects")
        try:
            oracle = StaticOracle.from_json(entry, root_dir=root_dir, module_names=module_names)
        except ModuleStructureError:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise ModuleStructureError(f"invalid oracle tables: {exc}") from exc
        module = SourceModule(
            file_name=oracle.file_name,
            statements=statements_from_json(entry.get("statements", [])),
            is_module=bool(entry.get("is_module", True)),
        )
        bundle.modules.append(module)
        bundle.oracles[module.file_name] = oracle
    return bundle


def load_bundle(path: Path) -> Bundle:
    """Read and decode the bundle stored at ``path``."""

    try:
        payload = json.loads(Path(path).read_text("utf-8"))
    except json.JSONDecodeError as exc:
        raise ModuleStructureError(f"{path}: not valid JSON ({exc})") from exc
    return bundle_from_json(payload)


__all__ = [
    "Bundle",
    "bundle_from_json",
    "expression_from_json",
    "load_bundle",
    "options_from_json",
    "parameter_from_json",
    "statement_from_json",
    "statements_from_json",
]
