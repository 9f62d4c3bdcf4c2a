"""Render structural type descriptors as Closure type annotation text.

:class:`TypeTranslator` is scoped to a single module.  It consults the
module's :class:`~googmod.naming.AliasTable` when a referenced symbol lives in
another module, so annotations name the imported binding (``moduleVar_1.Foo``
or ``foo_1.Foo``) instead of an unqualified name that would not resolve.

Translation never fails.  Anything the oracle could not resolve renders as
the ``?`` sentinel and leaves a warning in the module's diagnostics.

Results are cached per (context, descriptor).  A cross-module reference that
had no alias yet is not cached, because a later ``require`` may still bind its
namespace.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from .diagnostics import DiagnosticBag
from .naming import AliasTable
from .oracle import TypeOracle
from .type_descriptors import (
    ArrayType,
    FunctionType,
    GenericType,
    PrimitiveType,
    ReferenceType,
    Signature,
    Symbol,
    TypeDescriptor,
    UnionType,
    UnknownType,
)

logger = logging.getLogger(__name__)

UNKNOWN_SENTINEL = "?"

PRIMITIVE_NAMES: Dict[str, str] = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "void": "void",
    "undefined": "undefined",
    "null": "null",
    "symbol": "symbol",
    "bigint": "bigint",
    "any": "?",
    "unknown": "*",
    "never": "?",
    "object": "!Object",
}


class TypeTranslator:
    """Translate descriptors to annotation text within one module."""

    def __init__(
        self,
        file_name: str,
        oracle: TypeOracle,
        aliases: AliasTable,
        diagnostics: DiagnosticBag,
    ) -> None:
        self.file_name = file_name
        self._oracle = oracle
        self._aliases = aliases
        self._diagnostics = diagnostics
        self._cache: Dict[Tuple[str, TypeDescriptor], str] = {}
        self._cacheable = True
        self.cache_hits = 0

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def translate(self, context: str, descriptor: Optional[TypeDescriptor]) -> str:
        """Return the annotation text of ``descriptor`` seen from ``context``."""

        if descriptor is None:
            return self._unknown(context, "type could not be resolved")
        key = (context, descriptor)
        cached = self._cache.get(key)
        if cached is not None:
            self.cache_hits += 1
            return cached
        outer = self._cacheable
        self._cacheable = True
        text = self._render(context, descriptor, nested=False)
        if self._cacheable:
            self._cache[key] = text
        self._cacheable = outer and self._cacheable
        return text

    def translate_rest(self, context: str, descriptor: Optional[TypeDescriptor]) -> str:
        """Translate a rest parameter's type without its array wrapper."""

        element = rest_element(descriptor)
        if element is None:
            return self._unknown(context, "rest parameter is not an array type")
        return self.translate(context, element)

    # ------------------------------------------------------------------
    # rendering
    # ------------------------------------------------------------------
    def _render(self, context: str, descriptor: TypeDescriptor, *, nested: bool) -> str:
        if isinstance(descriptor, PrimitiveType):
            text = PRIMITIVE_NAMES.get(descriptor.name)
            if text is None:
                return self._unknown(context, f"unknown primitive {descriptor.name!r}")
            return text
        if isinstance(descriptor, ReferenceType):
            return self._render_reference(context, descriptor.symbol)
        if isinstance(descriptor, UnionType):
            return self._render_union(context, descriptor, nested=nested)
        if isinstance(descriptor, ArrayType):
            element = self._render(context, descriptor.element, nested=True)
            return f"!Array<{element}>"
        if isinstance(descriptor, FunctionType):
            return self._render_function(context, descriptor.signature)
        if isinstance(descriptor, GenericType):
            return self._render_generic(context, descriptor)
        if isinstance(descriptor, UnknownType):
            return self._unknown(context, descriptor.reason or "unknown type")
        raise TypeError(f"not a type descriptor: {descriptor!r}")

    def _render_union(self, context: str, descriptor: UnionType, *, nested: bool) -> str:
        members = []
        for member in descriptor.members:
            text = self._render(context, member, nested=False)
            if isinstance(member, UnionType) and text.startswith("("):
                text = text[1:-1]
            if text not in members:
                members.append(text)
        if not members:
            return self._unknown(context, "empty union")
        joined = "|".join(members)
        if nested and len(members) > 1:
            return f"({joined})"
        return joined

    def _render_reference(self, context: str, symbol: Optional[Symbol]) -> str:
        if symbol is None or not symbol.name:
            return self._unknown(context, "unresolved symbol reference")
        name = self._qualified_name(symbol)
        if symbol.is_nominal_object:
            return f"!{name}"
        return name

    def _qualified_name(self, symbol: Symbol) -> str:
        if symbol.kind == "type_parameter" or not symbol.file_name:
            return symbol.name
        if symbol.file_name == self.file_name:
            return symbol.name
        namespace = self._oracle.path_to_registered_name(self.file_name, symbol.file_name)
        alias = self._aliases.lookup(namespace)
        if alias is None:
            self._cacheable = False
            logger.debug("no alias for %s in %s, using namespace", namespace, self.file_name)
            return f"{namespace}.{symbol.name}"
        return f"{alias}.{symbol.name}"

    def _render_generic(self, context: str, descriptor: GenericType) -> str:
        base = descriptor.base
        if isinstance(base, ReferenceType) and base.symbol is not None and base.symbol.name:
            base_text = self._qualified_name(base.symbol)
            nominal = base.symbol.kind != "type_parameter"
        elif isinstance(base, PrimitiveType):
            base_text = base.name
            nominal = True
        else:
            base_text = self._render(context, base, nested=True).lstrip("!")
            nominal = base_text != UNKNOWN_SENTINEL
        if not descriptor.arguments:
            return f"!{base_text}" if nominal else base_text
        arguments = ",".join(
            self._render(context, argument, nested=True) for argument in descriptor.arguments
        )
        prefix = "!" if nominal else ""
        return f"{prefix}{base_text}<{arguments}>"

    def _render_function(self, context: str, signature: Signature) -> str:
        params = []
        if signature.this_type is not None:
            params.append(f"this:{self._render(context, signature.this_type, nested=True)}")
        for parameter in signature.parameters:
            if parameter.rest:
                params.append(f"...{self.translate_rest(context, parameter.type)}")
                continue
            text = self._render_optional(context, parameter.type)
            params.append(f"{text}=" if parameter.optional else text)
        head = "new:" if signature.is_constructor else ""
        rendered = f"function({head}{', '.join(params)})"
        if signature.return_type is None:
            return rendered
        return f"{rendered}: {self._render(context, signature.return_type, nested=True)}"

    def _render_optional(self, context: str, descriptor: Optional[TypeDescriptor]) -> str:
        if descriptor is None:
            return self._unknown(context, "parameter type could not be resolved")
        return self._render(context, descriptor, nested=True)

    def _unknown(self, context: str, reason: str) -> str:
        self._cacheable = False
        self._diagnostics.warn(reason, subject=context)
        return UNKNOWN_SENTINEL


def rest_element(descriptor: Optional[TypeDescriptor]) -> Optional[TypeDescriptor]:
    """Strip one array level off a rest parameter's declared type."""

    if isinstance(descriptor, ArrayType):
        return descriptor.element
    if isinstance(descriptor, GenericType) and len(descriptor.arguments) == 1:
        base = descriptor.base
        if isinstance(base, ReferenceType) and base.symbol is not None and base.symbol.name == "Array":
            return descriptor.arguments[0]
        if isinstance(base, PrimitiveType) and base.name == "Array":
            return descriptor.arguments[0]
    return None


__all__ = ["PRIMITIVE_NAMES", "TypeTranslator", "UNKNOWN_SENTINEL", "rest_element"]
