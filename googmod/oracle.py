"""Resolver interface consulted by the rewriter.

The front-end that parses and type-checks the original sources is outside this
package.  Everything the rewriter needs from it goes through the small
:class:`TypeOracle` protocol, which is injected into
:class:`~googmod.module_rewriter.ModuleProcessor` rather than looked up
globally.

:class:`StaticOracle` is a table driven implementation.  The command line tool
loads it from the JSON bundle a front-end writes next to the statement list,
and the tests build it directly.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from . import path_utils
from .js_ast import FunctionDeclaration, Identifier, VariableDeclaration, VariableStatement
from .type_descriptors import (
    ArrayType,
    Declaration,
    FunctionType,
    GenericType,
    ParameterInfo,
    PrimitiveType,
    ReferenceType,
    Signature,
    Symbol,
    TypeDescriptor,
    UnionType,
    UnknownType,
)


class TypeOracle(Protocol):
    def resolve_symbol(self, node: object) -> Optional[Symbol]:
        ...

    def type_of(self, node_or_symbol: object) -> Optional[TypeDescriptor]:
        ...

    def exports_of(self, module_symbol: Symbol) -> Sequence[Symbol]:
        ...

    def resolve_module_path(self, from_file: str, specifier: str) -> str:
        ...

    def path_to_registered_name(self, context_file: str, path: str) -> str:
        ...


def declared_name(node: object) -> Optional[str]:
    """Return the name a declaration-like node introduces, if any."""

    if isinstance(node, Symbol):
        return node.name
    if isinstance(node, FunctionDeclaration):
        return node.name
    if isinstance(node, VariableStatement) and len(node.declarations) == 1:
        return declared_name(node.declarations[0])
    if isinstance(node, VariableDeclaration) and isinstance(node.name, Identifier):
        return node.name.name
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, str):
        return node
    return None


class StaticOracle:
    """Answer oracle queries from precomputed tables for one module.

    Parameters
    ----------
    file_name:
        The module the tables describe.  Its module symbol is what
        :meth:`resolve_symbol` returns for the module itself.
    types:
        Declared name to type descriptor.
    symbols:
        Declared name to resolved symbol.
    exports:
        Symbols exported by the module, in declaration order.
    module_paths:
        Specifier to resolved file name, used by :meth:`resolve_module_path`.
    module_names:
        Explicit namespace overrides keyed by specifier or by resolved file
        name; everything else goes through
        :func:`googmod.path_utils.path_to_module_name`.
    """

    def __init__(
        self,
        file_name: str = "",
        *,
        root_dir: str = "",
        types: Optional[Mapping[str, TypeDescriptor]] = None,
        symbols: Optional[Mapping[str, Symbol]] = None,
        exports: Optional[Iterable[Symbol]] = None,
        module_paths: Optional[Mapping[str, str]] = None,
        module_names: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.file_name = file_name
        self.root_dir = root_dir
        self._types: Dict[str, TypeDescriptor] = dict(types or {})
        self._symbols: Dict[str, Symbol] = dict(symbols or {})
        self._exports: List[Symbol] = list(exports or [])
        self._module_paths: Dict[str, str] = dict(module_paths or {})
        self._module_names: Dict[str, str] = dict(module_names or {})
        self.module_symbol = Symbol(
            name=path_utils.strip_extension(file_name.rsplit("/", 1)[-1]) or "module",
            file_name=file_name,
            kind="module",
            declarations=(Declaration(file_name),),
        )

    # ------------------------------------------------------------------
    # oracle protocol
    # ------------------------------------------------------------------
    def resolve_symbol(self, node: object) -> Optional[Symbol]:
        if getattr(node, "file_name", None) == self.file_name and hasattr(node, "statements"):
            return self.module_symbol
        name = declared_name(node)
        if name is None:
            return None
        return self._symbols.get(name)

    def type_of(self, node_or_symbol: object) -> Optional[TypeDescriptor]:
        name = declared_name(node_or_symbol)
        if name is None:
            return None
        return self._types.get(name)

    def exports_of(self, module_symbol: Symbol) -> Sequence[Symbol]:
        if module_symbol.file_name != self.file_name:
            return []
        return list(self._exports)

    def resolve_module_path(self, from_file: str, specifier: str) -> str:
        resolved = self._module_paths.get(specifier)
        if resolved is None:
            return specifier
        if path_utils.is_dependency_path(resolved, self.root_dir):
            return specifier
        return resolved

    def path_to_registered_name(self, context_file: str, path: str) -> str:
        explicit = self._module_names.get(path)
        if explicit is None and path in self._module_paths:
            explicit = self._module_names.get(self._module_paths[path])
        if explicit is not None:
            return explicit
        return path_utils.path_to_module_name(self.root_dir, context_file or self.file_name, path)

    # ------------------------------------------------------------------
    # construction helpers
    # ------------------------------------------------------------------
    def add_type(self, name: str, descriptor: TypeDescriptor) -> None:
        self._types[name] = descriptor

    def add_symbol(self, symbol: Symbol) -> None:
        self._symbols[symbol.name] = symbol

    @classmethod
    def from_json(
        cls,
        payload: Mapping[str, Any],
        *,
        root_dir: str = "",
        module_names: Optional[Mapping[str, str]] = None,
    ) -> "StaticOracle":
        """Build an oracle from one module entry of a JSON bundle."""

        file_name = payload.get("file_name")
        if not isinstance(file_name, str):
            raise ValueError("module entry requires a 'file_name' string")
        types = {
            name: descriptor_from_json(entry)
            for name, entry in (payload.get("types") or {}).items()
        }
        symbols = {
            name: symbol_from_json(entry)
            for name, entry in (payload.get("symbols") or {}).items()
        }
        exports = [symbol_from_json(entry) for entry in payload.get("exports") or []]
        return cls(
            file_name,
            root_dir=root_dir,
            types=types,
            symbols=symbols,
            exports=exports,
            module_paths=payload.get("module_paths") or {},
            module_names=module_names,
        )


# ---------------------------------------------------------------------------
# JSON decoding
# ---------------------------------------------------------------------------


def symbol_from_json(entry: Mapping[str, Any]) -> Symbol:
    if not isinstance(entry, Mapping) or "name" not in entry:
        raise ValueError("symbol entries must be objects with a 'name'")
    raw_declarations = entry.get("declarations", ())
    declarations = None
    if raw_declarations is not None:
        declarations = tuple(_declaration_from_json(item) for item in raw_declarations)
    return Symbol(
        name=str(entry["name"]),
        file_name=entry.get("file_name"),
        kind=str(entry.get("kind", "class")),
        declarations=declarations,
    )


def _declaration_from_json(entry: Mapping[str, Any]) -> Declaration:
    target = entry.get("local_target")
    return Declaration(
        file_name=str(entry.get("file_name", "")),
        is_export_specifier=bool(entry.get("is_export_specifier", False)),
        property_name=entry.get("property_name"),
        local_target=symbol_from_json(target) if target is not None else None,
        internal=bool(entry.get("internal", False)),
    )


def _signature_from_json(entry: Mapping[str, Any]) -> Signature:
    parameters = tuple(
        ParameterInfo(
            name=str(param["name"]),
            type=descriptor_from_json(param["type"]) if param.get("type") is not None else None,
            optional=bool(param.get("optional", False)),
            rest=bool(param.get("rest", False)),
        )
        for param in entry.get("parameters", [])
    )
    return_type = entry.get("return_type")
    this_type = entry.get("this_type")
    return Signature(
        parameters=parameters,
        return_type=descriptor_from_json(return_type) if return_type is not None else None,
        type_parameters=tuple(entry.get("type_parameters", ())),
        this_type=descriptor_from_json(this_type) if this_type is not None else None,
        is_constructor=bool(entry.get("is_constructor", False)),
    )


def descriptor_from_json(entry: Any) -> TypeDescriptor:
    """Decode a ``{"kind": ...}`` object into a type descriptor.

    Plain strings are shorthand for primitives.  Unrecognised kinds decode to
    :class:`UnknownType` so a partially understood bundle still converts.
    """

    if isinstance(entry, str):
        return PrimitiveType(entry)
    if not isinstance(entry, Mapping):
        return UnknownType(f"malformed descriptor {entry!r}")
    kind = entry.get("kind")
    if kind == "primitive":
        return PrimitiveType(str(entry["name"]))
    if kind == "reference":
        symbol = entry.get("symbol")
        return ReferenceType(symbol_from_json(symbol) if symbol is not None else None)
    if kind == "union":
        return UnionType(tuple(descriptor_from_json(item) for item in entry.get("members", [])))
    if kind == "array":
        return ArrayType(descriptor_from_json(entry["element"]))
    if kind == "function":
        return FunctionType(_signature_from_json(entry.get("signature", {})))
    if kind == "generic":
        return GenericType(
            descriptor_from_json(entry["base"]),
            tuple(descriptor_from_json(item) for item in entry.get("arguments", [])),
        )
    if kind == "unknown":
        return UnknownType(str(entry.get("reason", "")))
    return UnknownType(f"unsupported descriptor kind {kind!r}")


__all__ = [
    "StaticOracle",
    "TypeOracle",
    "declared_name",
    "descriptor_from_json",
    "symbol_from_json",
]
