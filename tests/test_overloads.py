import pytest

from googmod.diagnostics import DiagnosticBag
from googmod.jsdoc import render_tags
from googmod.naming import AliasTable
from googmod.oracle import StaticOracle
from googmod.overloads import OverloadMerger, OverloadSet, call_signatures
from googmod.type_descriptors import (
    BOOLEAN,
    NUMBER,
    STRING,
    ArrayType,
    FunctionType,
    ParameterInfo,
    ReferenceType,
    Signature,
    Symbol,
    union,
)
from googmod.type_translator import TypeTranslator

FILE = "/src/a/b.ts"


def _merger() -> OverloadMerger:
    oracle = StaticOracle(FILE, root_dir="/src")
    translator = TypeTranslator(FILE, oracle, AliasTable(), DiagnosticBag(FILE))
    return OverloadMerger(translator)


def _merge(*signatures: Signature):
    return _merger().merge(OverloadSet("f", list(signatures)))


def test_extra_parameter_becomes_optional() -> None:
    merged = _merge(
        Signature((ParameterInfo("a", STRING),)),
        Signature((ParameterInfo("a", STRING), ParameterInfo("b", NUMBER))),
    )

    assert merged.parameter_names == ["a", "b"]
    assert render_tags(merged.tags) == [
        "@param {string} a",
        "@param {number=} b",
        "@return {void}",
    ]


def test_differing_names_and_types_are_joined() -> None:
    merged = _merge(
        Signature((ParameterInfo("a", STRING),), return_type=STRING),
        Signature((ParameterInfo("b", NUMBER),), return_type=NUMBER),
    )

    assert merged.parameter_names == ["a_or_b"]
    assert render_tags(merged.tags) == [
        "@param {string|number} a_or_b",
        "@return {string|number}",
    ]


def test_optional_positions_stay_optional_afterwards() -> None:
    merged = _merge(
        Signature((ParameterInfo("a", STRING), ParameterInfo("b", STRING), ParameterInfo("c", STRING))),
        Signature((ParameterInfo("a", STRING),)),
    )

    assert [tag.optional for tag in merged.parameters()] == [False, True, True]


def test_duplicate_names_get_their_index() -> None:
    merged = _merge(Signature((ParameterInfo("a", STRING), ParameterInfo("a", NUMBER))))

    assert merged.parameter_names == ["a", "a1"]


def test_rest_in_every_variant_stays_rest() -> None:
    merged = _merge(
        Signature((ParameterInfo("a", STRING), ParameterInfo("rest", ArrayType(NUMBER), rest=True))),
        Signature((ParameterInfo("a", STRING),)),
    )

    assert render_tags(merged.parameters()) == ["@param {string} a", "@param {...number} rest"]


def test_rest_mixed_with_fixed_becomes_optional_array() -> None:
    merged = _merge(
        Signature((ParameterInfo("a", STRING), ParameterInfo("rest", ArrayType(NUMBER), rest=True))),
        Signature((ParameterInfo("a", STRING), ParameterInfo("b", BOOLEAN))),
    )

    assert merged.parameter_names == ["a", "rest_or_b"]
    assert render_tags(merged.parameters())[1] == "@param {!Array<number>|boolean=} rest_or_b"


def test_nothing_follows_a_rest_parameter() -> None:
    merged = _merge(
        Signature((ParameterInfo("items", ArrayType(STRING), rest=True),)),
        Signature((ParameterInfo("items", ArrayType(STRING), rest=True), ParameterInfo("extra", NUMBER))),
    )

    assert merged.parameter_names == ["items"]


def test_templates_and_this_types_are_merged() -> None:
    foo = ReferenceType(Symbol("Foo", FILE))
    bar = ReferenceType(Symbol("Bar", FILE))
    merged = _merge(
        Signature(type_parameters=("T",), this_type=foo, return_type=STRING),
        Signature(type_parameters=("T", "U"), this_type=bar),
    )

    assert render_tags(merged.tags) == [
        "@template T, U",
        "@this {!Foo|!Bar}",
        "@return {string|void}",
    ]


def test_constructors_have_no_return_tag() -> None:
    merged = _merge(Signature((ParameterInfo("a", STRING),), is_constructor=True))

    assert merged.tag("return") is None
    assert render_tags(merged.tags) == ["@param {string} a"]


def test_empty_overload_set_is_rejected() -> None:
    with pytest.raises(ValueError):
        _merger().merge(OverloadSet("f"))


def test_call_signatures_reads_function_unions() -> None:
    first = Signature((ParameterInfo("a", STRING),))
    second = Signature()

    assert call_signatures(FunctionType(first)) == [first]
    assert call_signatures(union(FunctionType(first), FunctionType(second))) == [first, second]
    assert call_signatures(union(FunctionType(first), STRING)) == []
    assert call_signatures(None) == []
