"""Helpers for rendering rewritten JavaScript source code.

This module centralises formatting concerns used by the module rewriter.  The
rewriter itself only produces statement objects (see :mod:`googmod.js_ast`);
turning them into text happens here so that every entry point shares the same
layout rules: indentation, blank line collapsing, comment placement and the
shape of JSDoc annotation blocks.

The design is intentionally opinionated: we favour stable output over raw
performance so that diffs between two runs of the converter stay readable.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Sequence


class JsWriter:
    """Incremental JavaScript pretty printer.

    The writer keeps track of indentation and blank line management.  Every
    component that wants to contribute source lines only needs to call
    :meth:`write_line`, :meth:`write_comment` or :meth:`write_jsdoc` without
    worrying about spacing rules.
    """

    def __init__(self, indent: str = "    ") -> None:
        self._indent = 0
        self._indent_unit = indent
        self._lines: List[str] = []
        self._pending_blank = False
        self._saw_content = False

    # ------------------------------------------------------------------
    # basic line emission helpers
    # ------------------------------------------------------------------
    def write_line(self, text: str = "", *, align: bool = True) -> None:
        """Append ``text`` to the output honouring indentation rules.

        Parameters
        ----------
        text:
            Line content to append.  When empty the writer schedules a blank
            line which will materialise once a non-empty line is written.
        align:
            When ``True`` (the default) the current indentation level is
            prepended to the line.
        """

        if not text:
            # Consecutive blank lines collapse to a single one.
            if self._saw_content:
                self._pending_blank = True
            return

        if self._pending_blank:
            self._lines.append("")
            self._pending_blank = False

        if align:
            self._lines.append(f"{self._indent_unit * self._indent}{text}")
        else:
            self._lines.append(text)
        self._saw_content = True

    def write_comment(self, text: str) -> None:
        """Emit a comment, keeping block comments verbatim."""

        stripped = text.strip()
        if stripped.startswith("/*") or stripped.startswith("//"):
            for line in stripped.splitlines():
                self.write_line(line.rstrip())
            return
        if not stripped:
            self.write_line("//")
        else:
            self.write_line(f"// {stripped}")

    def write_jsdoc(self, lines: Sequence[str], *, inline: bool = True) -> None:
        """Emit a ``/** ... */`` block.

        A single line block is folded onto one line when ``inline`` is set,
        mirroring how Closure annotated sources usually spell ``@type`` tags.
        """

        if not lines:
            return
        if inline and len(lines) == 1:
            self.write_line(f"/** {lines[0]} */")
            return
        self.write_line("/**")
        for line in lines:
            self.write_line(f" * {line}" if line else " *")
        self.write_line(" */")

    # ------------------------------------------------------------------
    # indentation helpers
    # ------------------------------------------------------------------
    @contextmanager
    def indented(self) -> Iterator[None]:
        """Context manager that increases indentation within the ``with`` body."""

        self.indent()
        try:
            yield
        finally:
            self.dedent()

    def indent(self) -> None:
        self._indent += 1

    def dedent(self) -> None:
        if self._indent == 0:
            raise ValueError("indentation underflow")
        self._indent -= 1

    # ------------------------------------------------------------------
    # rendering helpers
    # ------------------------------------------------------------------
    def render(self) -> str:
        """Return the accumulated JavaScript source code."""

        return "\n".join(self._lines).rstrip() + "\n"


@dataclass
class JsRenderOptions:
    """Customisation knobs that influence module rendering."""

    indent: str = "    "
    inline_single_tag: bool = True
    emit_fileoverview: bool = False
    fileoverview_suppressions: Sequence[str] = ("checkTypes", "extraRequire", "uselessCode")
    source_note: str = ""


def fileoverview_lines(options: JsRenderOptions) -> List[str]:
    """Return the ``@fileoverview`` block contents for a rewritten module."""

    lines = ["@fileoverview added by googmod"]
    if options.source_note:
        lines.append(f"Generated from: {options.source_note}")
    if options.fileoverview_suppressions:
        joined = ",".join(options.fileoverview_suppressions)
        lines.append(f"@suppress {{{joined}}} checked by tsc")
    return lines


__all__ = [
    "JsRenderOptions",
    "JsWriter",
    "fileoverview_lines",
]
