"""Unit tests covering the JavaScript writer and annotation tags."""

from __future__ import annotations

import pytest

from googmod.js_formatter import JsRenderOptions, JsWriter, fileoverview_lines
from googmod.jsdoc import AnnotationTag, merge, render_tags


def test_writer_collapses_blank_lines() -> None:
    writer = JsWriter()
    writer.write_line("")
    writer.write_line("a;")
    writer.write_line("")
    writer.write_line("")
    writer.write_line("b;")

    assert writer.render() == "a;\n\nb;\n"


def test_writer_indents_and_guards_underflow() -> None:
    writer = JsWriter(indent="  ")
    writer.write_line("if (x) {")
    with writer.indented():
        writer.write_line("y();")
    writer.write_line("}")

    assert writer.render() == "if (x) {\n  y();\n}\n"
    with pytest.raises(ValueError):
        writer.dedent()


def test_jsdoc_single_line_and_block() -> None:
    writer = JsWriter()
    writer.write_jsdoc(["@type {number}"])
    writer.write_jsdoc(["@param {string} a", "@return {void}"])
    writer.write_jsdoc(["@const"], inline=False)

    assert writer.render().splitlines() == [
        "/** @type {number} */",
        "/**",
        " * @param {string} a",
        " * @return {void}",
        " */",
        "/**",
        " * @const",
        " */",
    ]


def test_fileoverview_lines_include_source_note() -> None:
    options = JsRenderOptions(source_note="/src/a.ts")

    assert fileoverview_lines(options) == [
        "@fileoverview added by googmod",
        "Generated from: /src/a.ts",
        "@suppress {checkTypes,extraRequire,uselessCode} checked by tsc",
    ]


def test_annotation_tags_render_markers() -> None:
    tags = [
        AnnotationTag("param", type="number", parameter_name="a", optional=True),
        AnnotationTag("param", type="string", parameter_name="rest", rest=True),
        AnnotationTag("deprecated", text="use @foo"),
    ]

    assert render_tags(tags) == [
        "@param {number=} a",
        "@param {...string} rest",
        "@deprecated use \\@foo",
    ]


def test_merge_joins_names_and_types() -> None:
    merged = merge(
        [
            AnnotationTag("param", type="string", parameter_name="a"),
            AnnotationTag("param", type="number", parameter_name="b", optional=True),
            AnnotationTag("param", type="string", parameter_name="a"),
        ]
    )

    assert merged.render() == "@param {string|number=} a_or_b"


def test_merge_rejects_mixed_tags() -> None:
    with pytest.raises(ValueError):
        merge([AnnotationTag("param"), AnnotationTag("return")])
    with pytest.raises(ValueError):
        merge([])
