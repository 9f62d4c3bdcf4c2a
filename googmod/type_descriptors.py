"""Structural type descriptors supplied by the resolver.

The oracle describes every type as a small recursive value that is independent
of concrete syntax.  The variant set is closed: :class:`PrimitiveType`,
:class:`ReferenceType`, :class:`UnionType`, :class:`ArrayType`,
:class:`FunctionType`, :class:`GenericType` and :class:`UnknownType`.  All
descriptors are frozen so they can key the translation cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Declaration:
    """Where a symbol is declared.

    ``is_export_specifier`` marks ``export {x as y}`` style declarations, for
    which ``property_name`` holds the local name (``x``) and ``local_target``
    the symbol the specifier resolves to inside the module.
    """

    file_name: str
    is_export_specifier: bool = False
    property_name: Optional[str] = None
    local_target: Optional["Symbol"] = None
    internal: bool = False


@dataclass(frozen=True)
class Symbol:
    """A resolved named entity.

    ``file_name`` is the module that declares the symbol, ``None`` for globals
    and built-ins.  ``kind`` is one of ``class``, ``interface``, ``enum``,
    ``typedef``, ``type_parameter``, ``value`` or ``module``.
    """

    name: str
    file_name: Optional[str] = None
    kind: str = "class"
    declarations: Optional[Tuple[Declaration, ...]] = ()

    @property
    def is_nominal_object(self) -> bool:
        return self.kind in ("class", "interface")


@dataclass(frozen=True)
class PrimitiveType:
    name: str


@dataclass(frozen=True)
class ReferenceType:
    symbol: Optional[Symbol]


@dataclass(frozen=True)
class UnionType:
    members: Tuple["TypeDescriptor", ...]


@dataclass(frozen=True)
class ArrayType:
    element: "TypeDescriptor"


@dataclass(frozen=True)
class ParameterInfo:
    name: str
    type: Optional["TypeDescriptor"] = None
    optional: bool = False
    rest: bool = False


@dataclass(frozen=True)
class Signature:
    """One call signature.

    ``return_type`` is ``None`` when the declaration has no explicit return
    type; the merger treats that as ``void``.
    """

    parameters: Tuple[ParameterInfo, ...] = ()
    return_type: Optional["TypeDescriptor"] = None
    type_parameters: Tuple[str, ...] = ()
    this_type: Optional["TypeDescriptor"] = None
    is_constructor: bool = False

    @property
    def required_count(self) -> int:
        return sum(1 for param in self.parameters if not param.optional and not param.rest)


@dataclass(frozen=True)
class FunctionType:
    signature: Signature


@dataclass(frozen=True)
class GenericType:
    base: "TypeDescriptor"
    arguments: Tuple["TypeDescriptor", ...]


@dataclass(frozen=True)
class UnknownType:
    reason: str = ""


TypeDescriptor = Union[
    PrimitiveType,
    ReferenceType,
    UnionType,
    ArrayType,
    FunctionType,
    GenericType,
    UnknownType,
]

STRING = PrimitiveType("string")
NUMBER = PrimitiveType("number")
BOOLEAN = PrimitiveType("boolean")
VOID = PrimitiveType("void")
UNDEFINED = PrimitiveType("undefined")
ANY = PrimitiveType("any")


def union(*members: TypeDescriptor) -> UnionType:
    return UnionType(tuple(members))


def generic(base: TypeDescriptor, *arguments: TypeDescriptor) -> GenericType:
    return GenericType(base, tuple(arguments))


__all__ = [
    "ANY",
    "ArrayType",
    "BOOLEAN",
    "Declaration",
    "FunctionType",
    "GenericType",
    "NUMBER",
    "ParameterInfo",
    "PrimitiveType",
    "ReferenceType",
    "STRING",
    "Signature",
    "Symbol",
    "TypeDescriptor",
    "UNDEFINED",
    "UnionType",
    "UnknownType",
    "VOID",
    "generic",
    "union",
]
