"""Attach Closure annotation blocks to declarations.

The annotator sees the top-level declarations of one module in order.  Body
less function declarations are overload signatures: they are elided on the
spot (their comments survive as :class:`NotEmittedStatement`) and remembered
until the implementation with the same name arrives, which then receives the
merged annotation and the canonical parameter names.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Optional, Tuple

from .diagnostics import DiagnosticBag
from .js_ast import (
    CallExpr,
    FunctionDeclaration,
    Identifier,
    JsStatement,
    Parameter,
    PropertyAccess,
    VariableStatement,
    not_emitted,
    rename_identifiers,
)
from .jsdoc import AnnotationTag
from .oracle import TypeOracle
from .overloads import OverloadMerger, OverloadSet, call_signatures
from .type_descriptors import ArrayType, ParameterInfo, Signature, UnknownType
from .type_translator import TypeTranslator

logger = logging.getLogger(__name__)

# Tags the annotator derives itself; any other tag already present is kept.
GENERATED_TAGS = frozenset({"param", "return", "template", "this", "type"})


class DeclarationAnnotator:
    """Annotate function and variable declarations of one module."""

    def __init__(
        self,
        oracle: TypeOracle,
        translator: TypeTranslator,
        diagnostics: DiagnosticBag,
    ) -> None:
        self._oracle = oracle
        self._translator = translator
        self._merger = OverloadMerger(translator)
        self.diagnostics = diagnostics
        self._stubs: List[FunctionDeclaration] = []
        self.annotations: Dict[str, Tuple[AnnotationTag, ...]] = {}

    def annotate(self, statement: JsStatement) -> Optional[List[JsStatement]]:
        """Return the annotated replacement, or ``None`` for non-declarations."""

        if isinstance(statement, FunctionDeclaration):
            if statement.is_overload_signature:
                return self._buffer_stub(statement)
            return [self._annotate_function(statement)]
        self._drop_orphan_stubs()
        if isinstance(statement, VariableStatement):
            annotated = self._annotate_variable(statement)
            if annotated is None:
                return None
            return [annotated]
        return None

    def finish(self) -> None:
        self._drop_orphan_stubs()

    # ------------------------------------------------------------------
    # functions
    # ------------------------------------------------------------------
    def _buffer_stub(self, stub: FunctionDeclaration) -> List[JsStatement]:
        if self._stubs and self._stubs[0].name != stub.name:
            self._drop_orphan_stubs()
        self._stubs.append(stub)
        logger.debug("buffered overload signature %s/%d", stub.name, len(self._stubs))
        return [not_emitted(stub)]

    def _drop_orphan_stubs(self) -> None:
        if self._stubs:
            self.diagnostics.warn(
                "overload signatures without an implementation", subject=self._stubs[0].name
            )
            self._stubs = []

    def _annotate_function(self, function: FunctionDeclaration) -> FunctionDeclaration:
        stubs = [stub for stub in self._stubs if stub.name == function.name]
        if len(stubs) != len(self._stubs):
            self._drop_orphan_stubs()
        self._stubs = []

        signatures = call_signatures(self._oracle.type_of(function))
        if not signatures:
            signatures = [self._unresolved_signature(function)]
        overloads = OverloadSet(function.name, signatures)
        merged = self._merger.merge(overloads, extra_tags=_kept_tags(function.jsdoc))

        parameters = list(function.parameters)
        body = function.body
        if stubs:
            parameters, renames = _canonical_parameters(function.parameters, merged.parameter_names)
            if renames and body is not None:
                logger.debug("renaming parameters of %s: %s", function.name, renames)
                body = rename_identifiers(body, renames)

        tags = merged.tags
        if not stubs:
            tags = _relabel_parameters(tags, parameters)
        annotated = dataclasses.replace(function, parameters=parameters, body=body, jsdoc=tuple(tags))
        annotated.origin = function.origin
        self.annotations[function.name] = annotated.jsdoc
        return annotated

    def _unresolved_signature(self, function: FunctionDeclaration) -> Signature:
        reason = f"type of {function.name!r} could not be resolved"
        parameters = tuple(
            ParameterInfo(
                name=param.name,
                type=ArrayType(UnknownType(reason)) if param.is_rest else UnknownType(reason),
                optional=param.initializer is not None,
                rest=param.is_rest,
            )
            for param in function.parameters
        )
        return Signature(parameters=parameters, return_type=UnknownType(reason))

    # ------------------------------------------------------------------
    # variables
    # ------------------------------------------------------------------
    def _annotate_variable(self, statement: VariableStatement) -> Optional[VariableStatement]:
        if len(statement.declarations) != 1:
            return None
        declaration = statement.declarations[0]
        if not isinstance(declaration.name, Identifier):
            return None
        if _is_loading_call(declaration.initializer):
            return None
        name = declaration.name.name
        type_text = self._translator.translate(name, self._oracle.type_of(statement))
        tags = _kept_tags(statement.jsdoc) + (AnnotationTag("type", type=type_text),)
        annotated = dataclasses.replace(statement, jsdoc=tags)
        annotated.origin = statement.origin
        self.annotations[name] = tags
        return annotated


def _kept_tags(tags: Tuple[AnnotationTag, ...]) -> Tuple[AnnotationTag, ...]:
    return tuple(tag for tag in tags if tag.tag_name not in GENERATED_TAGS)


def _canonical_parameters(
    parameters, names: List[str]
) -> Tuple[List[Parameter], Dict[str, str]]:
    renamed: List[Parameter] = []
    mapping: Dict[str, str] = {}
    for index, name in enumerate(names):
        if index < len(parameters):
            original = parameters[index]
            if original.name != name:
                mapping[original.name] = name
            renamed.append(dataclasses.replace(original, name=name))
        else:
            renamed.append(Parameter(name))
    renamed.extend(parameters[len(names):])
    return renamed, mapping


def _relabel_parameters(
    tags: List[AnnotationTag], parameters: List[Parameter]
) -> List[AnnotationTag]:
    # @param names follow the implementation when nothing was renamed.
    out: List[AnnotationTag] = []
    index = 0
    for tag in tags:
        if tag.tag_name == "param" and index < len(parameters):
            tag = tag.with_name(parameters[index].name)
            index += 1
        out.append(tag)
    return out


def _is_loading_call(expr) -> bool:
    if not isinstance(expr, CallExpr):
        return False
    callee = expr.callee
    if isinstance(callee, Identifier):
        return callee.name == "require"
    return (
        isinstance(callee, PropertyAccess)
        and callee.name == "require"
        and isinstance(callee.target, Identifier)
        and callee.target.name == "goog"
    )


__all__ = ["DeclarationAnnotator", "GENERATED_TAGS"]
