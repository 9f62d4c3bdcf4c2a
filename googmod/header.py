"""Module prologue synthesis.

Every rewritten module starts with the same few statements::

    goog.module('a.b');
    var module = module || { id: 'a/b.ts' };
    goog.require('tslib');
    module = module;
    exports = {};

The last three are conditional.  The prologue goes right after the leading
run of comment-only statements so file comments stay at the top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .js_ast import (
    BinaryExpr,
    ExpressionStatement,
    JsStatement,
    NotEmittedStatement,
    ObjectLiteral,
    PropertyAssignment,
    StringLiteral,
    VariableDeclaration,
    VariableStatement,
    assign,
    call,
    dotted,
    ident,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeaderRequest:
    module_name: str
    module_id: str
    require_tslib: bool = True
    tslib_namespace: str = "tslib"
    es5_mode: bool = False
    reassigns_exports: bool = False


class HeaderSynthesizer:
    def build(self, request: HeaderRequest) -> List[JsStatement]:
        header: List[JsStatement] = [
            ExpressionStatement(call(dotted("goog.module"), StringLiteral(request.module_name))),
            VariableStatement(
                [
                    VariableDeclaration(
                        ident("module"),
                        BinaryExpr(
                            ident("module"),
                            "||",
                            ObjectLiteral([PropertyAssignment("id", StringLiteral(request.module_id))]),
                        ),
                    )
                ]
            ),
        ]
        if request.require_tslib:
            header.append(ExpressionStatement(call(dotted("goog.require"), StringLiteral(request.tslib_namespace))))
        if not request.es5_mode:
            header.append(ExpressionStatement(assign(ident("module"), ident("module"))))
            if not request.reassigns_exports:
                header.append(ExpressionStatement(assign(ident("exports"), ObjectLiteral([]))))
        return header

    def splice(self, statements: Sequence[JsStatement], header: Sequence[JsStatement]) -> List[JsStatement]:
        """Insert ``header`` after the leading comment-only statements."""

        position = 0
        while position < len(statements) and isinstance(statements[position], NotEmittedStatement):
            position += 1
        logger.debug("inserting %d header statements at %d", len(header), position)
        return list(statements[:position]) + list(header) + list(statements[position:])


__all__ = ["HeaderRequest", "HeaderSynthesizer"]
