"""Merge overloaded signatures into one annotation block.

A declaration with several signatures (TypeScript overloads) ends up as a
single JavaScript function, so its annotation has to describe every variant at
once.  The merge rules:

* the merged parameter count is the largest count across the variants;
* names that differ at one position are joined with ``_or_``;
* a position some variant does not have becomes optional, and every position
  after an optional one is optional too;
* a position that is variadic in every variant stays variadic; a position
  that is variadic in one variant but fixed in another loses the variadic
  marker and takes the array type of the variadic variant as an optional
  parameter;
* nothing follows a variadic parameter;
* the return type is the union of every variant's return type, ``void`` for
  variants without an explicit one;
* template parameters and ``this`` types are unioned across variants.

None of these situations is an error; the merge always produces a block.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

from .jsdoc import AnnotationTag, merge
from .type_descriptors import FunctionType, ParameterInfo, Signature, TypeDescriptor, UnionType
from .type_translator import TypeTranslator


@dataclass
class OverloadSet:
    """Signatures sharing one declared name, in declaration order."""

    name: str
    signatures: List[Signature] = field(default_factory=list)

    def add(self, signature: Signature) -> None:
        self.signatures.append(signature)

    def __len__(self) -> int:
        return len(self.signatures)


@dataclass
class MergedSignature:
    tags: List[AnnotationTag]
    parameter_names: List[str]

    def tag(self, tag_name: str) -> Optional[AnnotationTag]:
        for tag in self.tags:
            if tag.tag_name == tag_name:
                return tag
        return None

    def parameters(self) -> List[AnnotationTag]:
        return [tag for tag in self.tags if tag.tag_name == "param"]


class OverloadMerger:
    """Reduce an :class:`OverloadSet` to tags plus canonical parameter names."""

    def __init__(self, translator: TypeTranslator) -> None:
        self._translator = translator

    def merge(
        self,
        overloads: OverloadSet,
        *,
        context: Optional[str] = None,
        extra_tags: Sequence[AnnotationTag] = (),
    ) -> MergedSignature:
        if not overloads.signatures:
            raise ValueError(f"overload set {overloads.name!r} has no signatures")
        context = context or overloads.name
        signatures = overloads.signatures
        is_constructor = any(signature.is_constructor for signature in signatures)

        tags: List[AnnotationTag] = list(extra_tags)
        templates = self._template_names(signatures)
        if templates:
            tags.append(AnnotationTag("template", text=", ".join(templates)))
        this_tag = self._this_tag(context, signatures)
        if this_tag is not None:
            tags.append(this_tag)

        param_tags = self._merge_parameters(context, signatures)
        tags.extend(param_tags)

        if not is_constructor:
            returns = [
                AnnotationTag("return", type=self._return_text(context, signature))
                for signature in signatures
            ]
            tags.append(merge(returns))

        names = [tag.parameter_name or f"arg{index}" for index, tag in enumerate(param_tags)]
        return MergedSignature(tags=tags, parameter_names=names)

    # ------------------------------------------------------------------
    def _merge_parameters(
        self, context: str, signatures: Sequence[Signature]
    ) -> List[AnnotationTag]:
        max_count = max(len(signature.parameters) for signature in signatures)
        min_required = min(signature.required_count for signature in signatures)

        merged_tags: List[AnnotationTag] = []
        used_names: List[str] = []
        found_optional = False
        for index in range(max_count):
            slot = [
                signature.parameters[index]
                for signature in signatures
                if index < len(signature.parameters)
            ]
            tag = merge(self._slot_tags(context, slot))
            if tag.parameter_name in used_names:
                tag = tag.with_name(f"{tag.parameter_name}{index}")
            used_names.append(tag.parameter_name or "")

            missing = len(slot) < len(signatures)
            if not tag.rest and (tag.optional or found_optional or missing or index >= min_required):
                found_optional = True
                tag = replace(tag, optional=True)
            merged_tags.append(tag)
            if tag.rest:
                break
        return merged_tags

    def _slot_tags(self, context: str, slot: Sequence[ParameterInfo]) -> List[AnnotationTag]:
        mixed = any(param.rest for param in slot) and not all(param.rest for param in slot)
        tags = []
        for param in slot:
            if param.rest and not mixed:
                type_text = self._translator.translate_rest(context, param.type)
                tags.append(AnnotationTag("param", type=type_text, parameter_name=param.name, rest=True))
                continue
            # A variadic variant sharing a position with a fixed one keeps its
            # array type and turns into an optional parameter.
            type_text = self._translator.translate(context, param.type)
            tags.append(
                AnnotationTag(
                    "param",
                    type=type_text,
                    parameter_name=param.name,
                    optional=param.optional or param.rest,
                )
            )
        return tags

    def _return_text(self, context: str, signature: Signature) -> str:
        if signature.return_type is None:
            return "void"
        return self._translator.translate(context, signature.return_type)

    def _this_tag(self, context: str, signatures: Sequence[Signature]) -> Optional[AnnotationTag]:
        this_tags = [
            AnnotationTag("this", type=self._translator.translate(context, signature.this_type))
            for signature in signatures
            if signature.this_type is not None
        ]
        if not this_tags:
            return None
        return merge(this_tags)

    @staticmethod
    def _template_names(signatures: Sequence[Signature]) -> Tuple[str, ...]:
        names: List[str] = []
        for signature in signatures:
            for name in signature.type_parameters:
                if name not in names:
                    names.append(name)
        return tuple(names)


def call_signatures(descriptor: Optional[TypeDescriptor]) -> List[Signature]:
    """Return the call signatures of a function-valued descriptor.

    An overloaded declaration is described as a union of function types, one
    member per overload in declaration order.
    """

    if isinstance(descriptor, FunctionType):
        return [descriptor.signature]
    if isinstance(descriptor, UnionType) and descriptor.members:
        if all(isinstance(member, FunctionType) for member in descriptor.members):
            return [member.signature for member in descriptor.members]
    return []


__all__ = ["MergedSignature", "OverloadMerger", "OverloadSet", "call_signatures"]
