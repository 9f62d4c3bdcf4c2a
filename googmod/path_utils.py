"""Import path and namespace helpers.

Module specifiers in the compiled output come in two flavours: ordinary paths
(``./foo``, ``../lib/bar``, ``pkg``) that have to be mapped to a dotted
``goog.module`` name, and ``goog:`` specifiers that already name a global
namespace and bypass path resolution entirely.  Paths are handled with
:mod:`posixpath` because they are JavaScript module paths, not host paths.
"""

from __future__ import annotations

import posixpath
import re
from typing import Optional

NAMESPACE_MARKER = "goog:"
DEPENDENCY_DIRECTORY = "node_modules"

_EXTENSION = re.compile(r"(\.d)?\.[tj]sx?$")
_LEADING_INVALID = re.compile(r"^[^a-zA-Z_$]")
_INVALID = re.compile(r"[^a-zA-Z0-9._$]")


def extract_namespace_import(specifier: str) -> Optional[str]:
    """Return ``foo.Bar`` for ``goog:foo.Bar`` and ``None`` for plain paths."""

    if specifier.startswith(NAMESPACE_MARKER):
        return specifier[len(NAMESPACE_MARKER):]
    return None


def is_dependency_path(resolved: str, root_dir: str = "") -> bool:
    """True when ``resolved`` lands inside the third-party dependency folder."""

    relative = posixpath.relpath(resolved, root_dir) if root_dir and posixpath.isabs(resolved) else resolved
    return DEPENDENCY_DIRECTORY in relative.split("/")


def strip_extension(path: str) -> str:
    return _EXTENSION.sub("", path)


def path_to_module_name(root_dir: str, context: str, import_path: str) -> str:
    """Derive the dotted module name for ``import_path`` seen from ``context``.

    Relative specifiers resolve against the directory of ``context``; absolute
    paths are made relative to ``root_dir``; bare specifiers are taken as root
    relative.  Characters ``goog.module`` does not accept become ``_``.
    """

    file_name = strip_extension(import_path)
    if file_name.startswith("."):
        file_name = posixpath.normpath(posixpath.join(posixpath.dirname(context), file_name))
    if posixpath.isabs(file_name) and root_dir:
        file_name = posixpath.relpath(file_name, root_dir)
    file_name = file_name.lstrip("/")
    module_name = file_name.replace("/", ".").replace("\\", ".")
    module_name = _LEADING_INVALID.sub("_", module_name)
    return _INVALID.sub("_", module_name)


def file_name_to_module_id(root_dir: str, file_name: str) -> str:
    """Module id exposed through ``module.id``: the root relative path."""

    if root_dir and posixpath.isabs(file_name):
        return posixpath.relpath(file_name, root_dir)
    return file_name


__all__ = [
    "DEPENDENCY_DIRECTORY",
    "NAMESPACE_MARKER",
    "extract_namespace_import",
    "file_name_to_module_id",
    "is_dependency_path",
    "path_to_module_name",
    "strip_extension",
]
