"""Identifier allocation for rewritten modules.

The rewriter needs to mint local names for loaded modules while converting
``require`` calls into ``goog.require`` statements.  Every namespace must be
bound exactly once per module so that repeated loads of the same module reuse
one binding instead of importing it twice.  :class:`AliasTable` is that
registry; one instance lives for exactly one module and is thrown away
afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

__all__ = [
    "AliasEntry",
    "AliasTable",
]


@dataclass(frozen=True)
class AliasEntry:
    """Binding of one resolved namespace to a local identifier."""

    namespace: str
    identifier: str
    synthetic: bool


@dataclass
class AliasTable:
    """Per-module registry mapping namespaces to their local binding.

    ``register`` is idempotent: the first call for a namespace decides the
    identifier and every later call returns it.  Synthetic identifiers are
    numbered ``moduleVar_1``, ``moduleVar_2``, ... in first-discovery order and
    the counter only advances when a name is actually minted.

    Namespaces that were loaded for their side effects only (``require('x');``)
    are tracked separately through :meth:`mark_required`; they have no binding
    but still count as already imported.
    """

    prefix: str = "moduleVar_"
    _entries: Dict[str, AliasEntry] = field(default_factory=dict)
    _required: List[str] = field(default_factory=list)
    _counter: int = 0

    def register(self, namespace: str, identifier: Optional[str] = None) -> str:
        existing = self._entries.get(namespace)
        if existing is not None:
            return existing.identifier
        synthetic = identifier is None
        if identifier is None:
            identifier = self.next_identifier()
        self._entries[namespace] = AliasEntry(namespace, identifier, synthetic)
        if namespace not in self._required:
            self._required.append(namespace)
        return identifier

    def lookup(self, namespace: str) -> Optional[str]:
        entry = self._entries.get(namespace)
        return entry.identifier if entry is not None else None

    def next_identifier(self) -> str:
        self._counter += 1
        return f"{self.prefix}{self._counter}"

    def mark_required(self, namespace: str) -> bool:
        """Record an unbound load; return ``False`` if it was already imported."""

        if namespace in self._required:
            return False
        self._required.append(namespace)
        return True

    def is_required(self, namespace: str) -> bool:
        return namespace in self._required

    def namespaces(self) -> List[str]:
        """Every imported namespace, bound or not, in first-discovery order."""

        return list(self._required)

    def entries(self) -> List[AliasEntry]:
        return list(self._entries.values())

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._entries

    def __len__(self) -> int:
        return len(self._entries)
