"""Rewrite a CommonJS module statement list into ``goog.module`` form.

The compiler emits CommonJS output made of a handful of recurring idioms:
``require`` calls, ``exports.x = ...`` assignments, ``__esModule`` markers,
getter based re-exports and so on.  :class:`StatementRewriter` recognises those
idioms one top-level statement at a time and replaces them with their
``goog.module`` equivalents.  Every matcher is a chain of guarded checks that
returns ``None`` on the first mismatch; a statement that only nearly matches
an idiom is passed through untouched.

:class:`ModuleProcessor` drives one module through the pipeline:

* declarations go to the :class:`~googmod.annotator.DeclarationAnnotator`,
  everything else to the rewriter;
* ``x.default`` is collapsed to ``x`` for ``goog:`` imports;
* the prologue from :class:`~googmod.header.HeaderSynthesizer` is spliced in;
* the module and its references are appended to the shared manifest.

All per-module state lives in a :class:`ModuleContext` created by
:meth:`ModuleProcessor.process` and dropped when it returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from . import path_utils
from .annotator import DeclarationAnnotator
from .diagnostics import Diagnostic, DiagnosticBag, ModuleStructureError
from .header import HeaderRequest, HeaderSynthesizer
from .exports_index import collect_local_exports
from .js_ast import (
    BinaryExpr,
    BooleanLiteral,
    CallExpr,
    CommaListExpr,
    ElementAccess,
    ExportDeclaration,
    ExpressionStatement,
    FunctionExpr,
    Identifier,
    ImportDeclaration,
    JsExpression,
    JsStatement,
    MethodProperty,
    NumericLiteral,
    ObjectLiteral,
    PropertyAccess,
    PropertyAssignment,
    ReturnStatement,
    StringLiteral,
    VariableDeclaration,
    VariableStatement,
    VoidExpr,
    assign,
    call,
    derive_all,
    dotted,
    emit_statement,
    ident,
    map_statement,
    not_emitted,
)
from .js_formatter import JsRenderOptions, JsWriter, fileoverview_lines
from .jsdoc import AnnotationTag
from .manifest import ModulesManifest
from .naming import AliasTable
from .oracle import TypeOracle
from .type_translator import TypeTranslator

logger = logging.getLogger(__name__)

SELF_LOADER_NAMESPACE = "google3.javascript.closure.goog"
TSLIB_SPECIFIER = "tslib"
EXPORT_STAR_HELPERS = ("__exportStar", "__export")


# ---------------------------------------------------------------------------
# inputs and outputs
# ---------------------------------------------------------------------------


@dataclass
class SourceModule:
    """Top-level statements of one compiled module."""

    file_name: str
    statements: List[JsStatement] = field(default_factory=list)
    is_module: bool = True


@dataclass
class ProcessorOptions:
    """Host settings that influence rewriting.

    ``module_id_for`` maps a file name to the id exposed as ``module.id``;
    when unset the path relative to ``root_dir`` is used.
    """

    js_transpilation: bool = False
    es5_mode: bool = False
    convert_index_import_shorthand: bool = False
    root_dir: str = ""
    strip_internal: bool = False
    module_id_for: Optional[Callable[[str], str]] = None
    closure_namespace: str = SELF_LOADER_NAMESPACE

    def module_id(self, file_name: str) -> str:
        if self.module_id_for is not None:
            return self.module_id_for(file_name)
        return path_utils.file_name_to_module_id(self.root_dir, file_name)


@dataclass
class ModuleResult:
    file_name: str
    module_name: str
    statements: List[JsStatement]
    annotations: Dict[str, Tuple[AnnotationTag, ...]] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    referenced_namespaces: List[str] = field(default_factory=list)
    local_exports: List[Tuple[str, str]] = field(default_factory=list)

    def render(self, options: Optional[JsRenderOptions] = None) -> str:
        return render_module(self, options)


class ModuleContext:
    """State scoped to one :meth:`ModuleProcessor.process` call."""

    def __init__(self, file_name: str, oracle: TypeOracle, options: ProcessorOptions) -> None:
        self.file_name = file_name
        self.oracle = oracle
        self.options = options
        self.aliases = AliasTable()
        self.diagnostics = DiagnosticBag(file_name)
        self.translator = TypeTranslator(file_name, oracle, self.aliases, self.diagnostics)
        self.seen_exports_init = False
        self.reassigns_exports = False
        self.namespace_bindings: Set[str] = set()
        self.referenced: List[str] = []
        # Unbound goog.require statements by namespace, and those a later binding
        # of the same namespace makes redundant.
        self.bare_requires: Dict[str, JsStatement] = {}
        self.superseded_requires: List[JsStatement] = []

    @property
    def declaration_kind(self) -> str:
        return "var" if self.options.es5_mode else "const"

    def reference(self, namespace: str) -> None:
        if namespace not in self.referenced:
            self.referenced.append(namespace)

    def resolve_namespace(self, specifier: str) -> Tuple[str, bool]:
        """Return the namespace loaded by ``specifier`` and whether it is a
        ``goog:`` import."""

        namespace = path_utils.extract_namespace_import(specifier)
        if namespace is not None:
            return namespace, True
        if specifier == TSLIB_SPECIFIER:
            if self.options.js_transpilation:
                return TSLIB_SPECIFIER, False
            return self.resolve_tslib_namespace(), False
        if self.options.convert_index_import_shorthand:
            specifier = self._resolve_index_shorthand(specifier)
        return self.oracle.path_to_registered_name(self.file_name, specifier), False

    def resolve_tslib_namespace(self) -> str:
        """Namespace of the baseline helper module, always path resolved."""

        resolved = self.oracle.resolve_module_path(self.file_name, TSLIB_SPECIFIER)
        return self.oracle.path_to_registered_name(self.file_name, resolved)

    def _resolve_index_shorthand(self, specifier: str) -> str:
        resolved = self.oracle.resolve_module_path(self.file_name, specifier)
        if resolved == specifier:
            return specifier
        requested = path_utils.strip_extension(specifier)
        if path_utils.strip_extension(resolved).endswith("/index") and not requested.endswith("index"):
            return resolved
        return specifier


# ---------------------------------------------------------------------------
# shape helpers
# ---------------------------------------------------------------------------


def _is_identifier(expr: Optional[JsExpression], name: str) -> bool:
    return isinstance(expr, Identifier) and expr.name == name


def _is_dotted(expr: Optional[JsExpression], path: str) -> bool:
    head, _, tail = path.rpartition(".")
    if not head:
        return _is_identifier(expr, path)
    return isinstance(expr, PropertyAccess) and expr.name == tail and _is_dotted(expr.target, head)


def _exports_property(expr: Optional[JsExpression]) -> Optional[str]:
    """Return ``a`` for ``exports.a``."""

    if isinstance(expr, PropertyAccess) and _is_identifier(expr.target, "exports"):
        return expr.name
    return None


def _assignment(expr: Optional[JsExpression]) -> Optional[BinaryExpr]:
    if isinstance(expr, BinaryExpr) and expr.operator == "=":
        return expr
    return None


def require_specifier(expr: Optional[JsExpression]) -> Optional[str]:
    """Return ``p`` for ``require('p')``."""

    if not isinstance(expr, CallExpr) or not _is_identifier(expr.callee, "require"):
        return None
    if len(expr.arguments) != 1:
        return None
    argument = expr.arguments[0]
    if not isinstance(argument, StringLiteral):
        return None
    return argument.value


def _flatten_comma(expr: JsExpression) -> List[JsExpression]:
    if isinstance(expr, CommaListExpr):
        parts: List[JsExpression] = []
        for element in expr.elements:
            parts.extend(_flatten_comma(element))
        return parts
    if isinstance(expr, BinaryExpr) and expr.operator == ",":
        return _flatten_comma(expr.left) + _flatten_comma(expr.right)
    return [expr]


def _property(literal: ObjectLiteral, name: str) -> Optional[object]:
    for prop in literal.properties:
        if isinstance(prop, (PropertyAssignment, MethodProperty)) and prop.name == name:
            return prop
    return None


def goog_require(namespace: str) -> CallExpr:
    return call(dotted("goog.require"), StringLiteral(namespace))


# ---------------------------------------------------------------------------
# statement rewriting
# ---------------------------------------------------------------------------


class StatementRewriter:
    """Rewrite top-level statements one at a time."""

    def __init__(self, context: ModuleContext) -> None:
        self._context = context

    def rewrite(self, statement: JsStatement) -> List[JsStatement]:
        if isinstance(statement, (ImportDeclaration, ExportDeclaration)):
            raise ModuleStructureError(
                f"{self._context.file_name}: ES module syntax must be lowered before rewriting"
            )
        if isinstance(statement, ExpressionStatement):
            return self._rewrite_expression_statement(statement)
        if isinstance(statement, VariableStatement):
            rewritten = self._rewrite_require_binding(statement)
            if rewritten is not None:
                return derive_all(rewritten, statement)
        return [statement]

    # ------------------------------------------------------------------
    def _rewrite_expression_statement(self, statement: ExpressionStatement) -> List[JsStatement]:
        expr = statement.expression
        if self._is_use_strict(expr) or self._is_es_module_marker(expr):
            return [not_emitted(statement)]
        if not self._context.seen_exports_init and self._is_exports_init(expr):
            self._context.seen_exports_init = True
            return [not_emitted(statement)]

        matchers = (
            self._rewrite_module_exports,
            self._split_comma,
            self._rewrite_namespace_reexport,
            self._rewrite_exports_getter,
            self._rewrite_declare_module_id,
            self._rewrite_export_star,
            self._rewrite_bare_require,
        )
        for matcher in matchers:
            replacement = matcher(statement)
            if replacement is not None:
                return derive_all(replacement, statement)

        target = _assignment(expr)
        if target is not None and _is_identifier(target.left, "exports"):
            self._context.reassigns_exports = True
        return [statement]

    @staticmethod
    def _is_use_strict(expr: JsExpression) -> bool:
        return isinstance(expr, StringLiteral) and expr.value == "use strict"

    @staticmethod
    def _is_es_module_marker(expr: JsExpression) -> bool:
        """``Object.defineProperty(exports, '__esModule', {value: true})``"""

        if not isinstance(expr, CallExpr) or not _is_dotted(expr.callee, "Object.defineProperty"):
            return False
        if len(expr.arguments) != 3:
            return False
        target, name, descriptor = expr.arguments
        if not _is_identifier(target, "exports"):
            return False
        if not isinstance(name, StringLiteral) or name.value != "__esModule":
            return False
        if not isinstance(descriptor, ObjectLiteral) or len(descriptor.properties) != 1:
            return False
        value = descriptor.properties[0]
        return (
            isinstance(value, PropertyAssignment)
            and value.name == "value"
            and isinstance(value.value, BooleanLiteral)
            and value.value.value
        )

    @staticmethod
    def _is_exports_init(expr: JsExpression) -> bool:
        """``exports.a = exports.b = void 0``"""

        current: JsExpression = expr
        depth = 0
        while True:
            target = _assignment(current)
            if target is None:
                break
            if _exports_property(target.left) is None:
                return False
            current = target.right
            depth += 1
        if depth == 0 or not isinstance(current, VoidExpr):
            return False
        return isinstance(current.operand, NumericLiteral) and current.operand.text == "0"

    def _rewrite_module_exports(self, statement: ExpressionStatement) -> Optional[List[JsStatement]]:
        target = _assignment(statement.expression)
        if target is None or not _is_dotted(target.left, "module.exports"):
            return None
        self._context.reassigns_exports = True
        replacement = ExpressionStatement(assign(ident("exports"), target.right))
        return [replacement]

    def _split_comma(self, statement: ExpressionStatement) -> Optional[List[JsStatement]]:
        expr = statement.expression
        if not isinstance(expr, CommaListExpr) and not (isinstance(expr, BinaryExpr) and expr.operator == ","):
            return None
        parts = _flatten_comma(expr)
        for part in parts:
            target = _assignment(part)
            if target is not None and (
                _is_identifier(target.left, "exports") or _is_dotted(target.left, "module.exports")
            ):
                self._context.reassigns_exports = True
        logger.debug("splitting comma expression into %d statements", len(parts))
        return [ExpressionStatement(part) for part in parts]

    def _rewrite_namespace_reexport(self, statement: ExpressionStatement) -> Optional[List[JsStatement]]:
        """``exports.ns = require('p')``"""

        target = _assignment(statement.expression)
        if target is None:
            return None
        export_name = _exports_property(target.left)
        specifier = require_specifier(target.right)
        if export_name is None or specifier is None:
            return None
        namespace, _ = self._context.resolve_namespace(specifier)
        self._context.reference(namespace)
        replacement: List[JsStatement] = []
        binding = self._context.aliases.lookup(namespace)
        if binding is None:
            binding = self._bind(namespace)
            replacement.append(self._binding_statement(binding, namespace))
        assignment = ExpressionStatement(assign(target.left, ident(binding)))
        replacement.append(assignment)
        return replacement

    def _rewrite_exports_getter(self, statement: ExpressionStatement) -> Optional[List[JsStatement]]:
        """``Object.defineProperty(exports, 'a', {enumerable: true, get: ...})``"""

        expr = statement.expression
        if not isinstance(expr, CallExpr) or not _is_dotted(expr.callee, "Object.defineProperty"):
            return None
        if len(expr.arguments) != 3:
            return None
        target, name, descriptor = expr.arguments
        if not _is_identifier(target, "exports") or not isinstance(name, StringLiteral):
            return None
        if not isinstance(descriptor, ObjectLiteral):
            return None
        enumerable = _property(descriptor, "enumerable")
        if not isinstance(enumerable, PropertyAssignment):
            return None
        if not isinstance(enumerable.value, BooleanLiteral) or not enumerable.value.value:
            return None
        getter = _property(descriptor, "get")
        if isinstance(getter, PropertyAssignment):
            if not isinstance(getter.value, FunctionExpr):
                return None
            body = getter.value.body
        elif isinstance(getter, MethodProperty):
            body = getter.body
        else:
            return None
        if len(body) != 1 or not isinstance(body[0], ReturnStatement):
            return None
        value = body[0].expression
        if value is None:
            return None
        if name.value.isidentifier():
            export_target: JsExpression = PropertyAccess(ident("exports"), name.value)
        else:
            export_target = ElementAccess(ident("exports"), StringLiteral(name.value))
        return [ExpressionStatement(assign(export_target, value))]

    def _rewrite_declare_module_id(self, statement: ExpressionStatement) -> Optional[List[JsStatement]]:
        """``goog.declareModuleId('id')``"""

        expr = statement.expression
        if not isinstance(expr, CallExpr) or not _is_dotted(expr.callee, "goog.declareModuleId"):
            return None
        if len(expr.arguments) != 1 or not isinstance(expr.arguments[0], StringLiteral):
            return None
        module_id = expr.arguments[0].value
        registration = ObjectLiteral(
            [
                PropertyAssignment("exports", ident("exports")),
                PropertyAssignment("type", dotted("goog.ModuleType.GOOG")),
                PropertyAssignment("moduleId", StringLiteral(module_id)),
            ]
        )
        loaded = ElementAccess(dotted("goog.loadedModules_"), StringLiteral(module_id))
        return [ExpressionStatement(assign(loaded, registration))]

    def _rewrite_export_star(self, statement: ExpressionStatement) -> Optional[List[JsStatement]]:
        """``__exportStar(require('p'), exports)`` and ``__export(require('p'))``"""

        expr = statement.expression
        if not isinstance(expr, CallExpr) or not expr.arguments:
            return None
        callee = expr.callee
        if isinstance(callee, Identifier):
            helper = callee.name
        elif isinstance(callee, PropertyAccess):
            helper = callee.name
        else:
            return None
        if helper not in EXPORT_STAR_HELPERS:
            return None
        specifier = require_specifier(expr.arguments[0])
        if specifier is None:
            return None
        namespace, _ = self._context.resolve_namespace(specifier)
        self._context.reference(namespace)
        replacement: List[JsStatement] = []
        binding = self._context.aliases.lookup(namespace)
        if binding is None:
            binding = self._bind(namespace)
            replacement.append(self._binding_statement(binding, namespace))
        reexport = ExpressionStatement(CallExpr(callee, [ident(binding), *expr.arguments[1:]]))
        replacement.append(reexport)
        return replacement

    def _rewrite_bare_require(self, statement: ExpressionStatement) -> Optional[List[JsStatement]]:
        """``require('p');`` loaded for its side effects."""

        specifier = require_specifier(statement.expression)
        if specifier is None:
            return None
        namespace, _ = self._context.resolve_namespace(specifier)
        self._context.reference(namespace)
        if not self._context.aliases.mark_required(namespace):
            logger.debug("eliding repeated require of %s", namespace)
            return [not_emitted(statement)]
        loaded = ExpressionStatement(goog_require(namespace))
        self._context.bare_requires[namespace] = loaded
        return [loaded]

    # ------------------------------------------------------------------
    def _rewrite_require_binding(self, statement: VariableStatement) -> Optional[List[JsStatement]]:
        """``var x = require('p')``"""

        if len(statement.declarations) != 1:
            return None
        declaration = statement.declarations[0]
        if not isinstance(declaration.name, Identifier):
            return None
        specifier = require_specifier(declaration.initializer)
        if specifier is None:
            return None
        name = declaration.name.name
        namespace, is_namespace_import = self._context.resolve_namespace(specifier)
        if name == "goog" and namespace == self._context.options.closure_namespace:
            logger.debug("eliding self loader require in %s", self._context.file_name)
            return [not_emitted(statement)]
        self._context.reference(namespace)
        if is_namespace_import:
            self._context.namespace_bindings.add(name)

        existing = self._context.aliases.lookup(namespace)
        if existing is not None:
            logger.debug("reusing %s for %s", existing, namespace)
            if existing == name:
                return [not_emitted(statement)]
            reuse = VariableStatement(
                [VariableDeclaration(ident(name), ident(existing))],
                kind=self._context.declaration_kind,
            )
            return [reuse]
        self._bind(namespace, name)
        return [self._binding_statement(name, namespace)]

    def _bind(self, namespace: str, name: Optional[str] = None) -> str:
        binding = self._context.aliases.register(namespace, name)
        loaded = self._context.bare_requires.pop(namespace, None)
        if loaded is not None:
            logger.debug("binding %s supersedes its bare require", namespace)
            self._context.superseded_requires.append(loaded)
        return binding

    def _binding_statement(self, name: str, namespace: str) -> VariableStatement:
        return VariableStatement(
            [VariableDeclaration(ident(name), goog_require(namespace))],
            kind=self._context.declaration_kind,
        )


def drop_superseded_requires(
    statements: Sequence[JsStatement], superseded: Sequence[JsStatement]
) -> List[JsStatement]:
    """Elide bare ``goog.require`` statements whose namespace was bound later."""

    if not superseded:
        return list(statements)
    return [
        not_emitted(statement) if any(statement is item for item in superseded) else statement
        for statement in statements
    ]


def collapse_default_access(statements: Sequence[JsStatement], bindings: Set[str]) -> List[JsStatement]:
    """Replace ``x.default`` with ``x`` for every binding of a ``goog:`` import."""

    if not bindings:
        return list(statements)

    def collapse(expr: JsExpression) -> JsExpression:
        if (
            isinstance(expr, PropertyAccess)
            and expr.name == "default"
            and isinstance(expr.target, Identifier)
            and expr.target.name in bindings
        ):
            return expr.target
        return expr

    return [map_statement(statement, collapse) for statement in statements]


# ---------------------------------------------------------------------------
# module pipeline
# ---------------------------------------------------------------------------


class ModuleProcessor:
    """Convert one :class:`SourceModule` at a time.

    The oracle answers symbol, type and path queries for the module being
    processed.  A single manifest may be shared by several processors.
    """

    def __init__(
        self,
        oracle: TypeOracle,
        options: Optional[ProcessorOptions] = None,
        manifest: Optional[ModulesManifest] = None,
    ) -> None:
        self.oracle = oracle
        self.options = options or ProcessorOptions()
        self.manifest = manifest if manifest is not None else ModulesManifest()
        self._header = HeaderSynthesizer()

    def process(self, source: SourceModule) -> ModuleResult:
        if not isinstance(source, SourceModule):
            raise ModuleStructureError(f"expected a SourceModule, got {type(source).__name__}")
        file_name = source.file_name
        module_name = self.oracle.path_to_registered_name("", file_name)

        if self.options.js_transpilation and not source.is_module:
            logger.debug("%s is a script, leaving it unchanged", file_name)
            return ModuleResult(file_name, module_name, list(source.statements))

        context = ModuleContext(file_name, self.oracle, self.options)
        annotator = DeclarationAnnotator(self.oracle, context.translator, context.diagnostics)
        rewriter = StatementRewriter(context)

        statements: List[JsStatement] = []
        for statement in source.statements:
            annotated = annotator.annotate(statement)
            if annotated is not None:
                statements.extend(annotated)
                continue
            statements.extend(rewriter.rewrite(statement))
        annotator.finish()
        statements = drop_superseded_requires(statements, context.superseded_requires)
        statements = collapse_default_access(statements, context.namespace_bindings)

        tslib_namespace = context.resolve_tslib_namespace()
        require_tslib = not self.options.js_transpilation and not context.aliases.is_required(tslib_namespace)
        if require_tslib:
            context.aliases.mark_required(tslib_namespace)
            context.reference(tslib_namespace)
        header = self._header.build(
            HeaderRequest(
                module_name=module_name,
                module_id=self.options.module_id(file_name),
                require_tslib=require_tslib,
                tslib_namespace=tslib_namespace,
                es5_mode=self.options.es5_mode,
                reassigns_exports=context.reassigns_exports,
            )
        )
        statements = self._header.splice(statements, header)

        local_exports = self._local_exports(source)
        self.manifest.record(file_name, module_name, context.referenced)
        logger.debug(
            "converted %s to %s (%d requires, %d diagnostics)",
            file_name,
            module_name,
            len(context.aliases.namespaces()),
            len(context.diagnostics),
        )
        return ModuleResult(
            file_name=file_name,
            module_name=module_name,
            statements=statements,
            annotations=dict(annotator.annotations),
            diagnostics=context.diagnostics.as_list(),
            referenced_namespaces=list(context.referenced),
            local_exports=local_exports,
        )

    def _local_exports(self, source: SourceModule) -> List[Tuple[str, str]]:
        module_symbol = self.oracle.resolve_symbol(source)
        if module_symbol is None:
            return []
        return collect_local_exports(
            self.oracle,
            module_symbol,
            source.file_name,
            strip_internal=self.options.strip_internal,
        )


def render_module(result: ModuleResult, options: Optional[JsRenderOptions] = None) -> str:
    """Render a converted module as JavaScript text."""

    options = options or JsRenderOptions()
    writer = JsWriter(indent=options.indent)
    if options.emit_fileoverview:
        writer.write_jsdoc(fileoverview_lines(options), inline=False)
    for statement in result.statements:
        emit_statement(statement, writer, inline_single_tag=options.inline_single_tag)
    return writer.render()


__all__ = [
    "EXPORT_STAR_HELPERS",
    "ModuleContext",
    "ModuleProcessor",
    "ModuleResult",
    "ProcessorOptions",
    "SELF_LOADER_NAMESPACE",
    "SourceModule",
    "StatementRewriter",
    "TSLIB_SPECIFIER",
    "collapse_default_access",
    "drop_superseded_requires",
    "goog_require",
    "render_module",
    "require_specifier",
]
