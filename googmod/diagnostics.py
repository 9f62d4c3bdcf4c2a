"""Diagnostics and errors raised while rewriting a module."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)


class ModuleStructureError(ValueError):
    """The input violates a structural precondition of the rewriter."""


@dataclass(frozen=True)
class Diagnostic:
    file_name: str
    message: str
    category: str = "warning"
    subject: Optional[str] = None

    def describe(self) -> str:
        location = self.file_name or "<unknown>"
        if self.subject:
            return f"{location}: {self.category}: {self.message} ({self.subject})"
        return f"{location}: {self.category}: {self.message}"


@dataclass
class DiagnosticBag:
    """Non-fatal problems collected while processing one module."""

    file_name: str
    _items: List[Diagnostic] = field(default_factory=list)

    def warn(self, message: str, subject: Optional[str] = None) -> Diagnostic:
        diagnostic = Diagnostic(self.file_name, message, "warning", subject)
        self._items.append(diagnostic)
        logger.warning("%s", diagnostic.describe())
        return diagnostic

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def as_list(self) -> List[Diagnostic]:
        return list(self._items)


__all__ = ["Diagnostic", "DiagnosticBag", "ModuleStructureError"]
