"""JSDoc annotation tags.

An annotation block is an ordered sequence of :class:`AnnotationTag` values.
Each tag is a (kind, type text, parameter name, free text) record plus the
optional/rest markers that Closure spells inside the type braces
(``{number=}``, ``{...string}``).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class AnnotationTag:
    tag_name: str
    type: Optional[str] = None
    parameter_name: Optional[str] = None
    text: Optional[str] = None
    optional: bool = False
    rest: bool = False

    def render(self) -> str:
        out = f"@{self.tag_name}"
        if self.type is not None:
            prefix = "..." if self.rest else ""
            suffix = "=" if self.optional else ""
            out += f" {{{prefix}{self.type}{suffix}}}"
        if self.parameter_name:
            out += f" {self.parameter_name}"
        if self.text:
            out += " " + self.text.replace("@", "\\@")
        return out

    def with_name(self, name: str) -> "AnnotationTag":
        return replace(self, parameter_name=name)


def render_tags(tags: Iterable[AnnotationTag]) -> List[str]:
    return [tag.render() for tag in tags]


def _ordered_unique(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def merge(tags: Sequence[AnnotationTag]) -> AnnotationTag:
    """Merge tags of the same kind into one.

    Parameter names are joined with ``_or_`` and types with ``|``, both in
    order of first appearance.  A merged tag is ``rest`` when any input is,
    otherwise ``optional`` when any input is.
    """

    if not tags:
        raise ValueError("cannot merge an empty tag list")
    tag_names = _ordered_unique(tag.tag_name for tag in tags)
    if len(tag_names) != 1:
        raise ValueError(f"cannot merge differing tags: {', '.join(tag_names)}")
    tag_name = tag_names[0]
    names = _ordered_unique(tag.parameter_name for tag in tags if tag.parameter_name is not None)
    types = _ordered_unique(tag.type for tag in tags if tag.type is not None)
    texts = _ordered_unique(tag.text for tag in tags if tag.text is not None)

    separator = "," if tag_name == "template" else " / "
    rest = any(tag.rest for tag in tags)
    return AnnotationTag(
        tag_name=tag_name,
        type="|".join(types) if types else None,
        parameter_name="_or_".join(names) if names else None,
        text=separator.join(texts) if texts else None,
        optional=not rest and any(tag.optional for tag in tags),
        rest=rest,
    )


__all__ = ["AnnotationTag", "merge", "render_tags"]
