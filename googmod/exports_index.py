"""Index of exported symbols that are declared in the module itself.

Only symbols that can be classified without doubt are listed.  Re-exports
from other files, ``default``, internal declarations (when stripped) and
export specifiers whose target lives elsewhere are all left out.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .oracle import TypeOracle
from .type_descriptors import Symbol

logger = logging.getLogger(__name__)


def collect_local_exports(
    oracle: TypeOracle,
    module_symbol: Symbol,
    file_name: str,
    *,
    strip_internal: bool = False,
) -> List[Tuple[str, str]]:
    """Return sorted ``(local name, exported name)`` pairs."""

    pairs: List[Tuple[str, str]] = []
    for symbol in oracle.exports_of(module_symbol):
        local = _local_name(symbol, file_name, strip_internal)
        if local is None:
            logger.debug("not aliasing export %s of %s", symbol.name, file_name)
            continue
        pairs.append((local, symbol.name))
    return sorted(pairs, key=lambda pair: (pair[1], pair[0]))


def _local_name(symbol: Symbol, file_name: str, strip_internal: bool) -> Optional[str]:
    if symbol.name == "default" or not symbol.declarations:
        return None
    local = symbol.name
    for declaration in symbol.declarations:
        if declaration.file_name != file_name:
            return None
        if strip_internal and declaration.internal:
            return None
        if declaration.is_export_specifier:
            target = declaration.local_target
            if target is None or target.file_name != file_name:
                return None
            local = declaration.property_name or target.name
    return local


__all__ = ["collect_local_exports"]
