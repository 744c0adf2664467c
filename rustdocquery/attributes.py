"""Parsing of attribute strings such as ``#[derive(Debug)]`` into meta items."""

from __future__ import annotations

from dataclasses import dataclass

_LEFT_BRACKETS = "([{"
_RIGHT_BRACKETS = ")]}"
_MATCHING_RIGHT = {"(": ")", "[": "]", "{": "}"}


@dataclass(frozen=True)
class AttributeMetaItem:
    """One meta item of an attribute: a path, optionally assigned or with arguments."""

    raw_item: str
    base: str
    assigned_item: str | None = None
    arguments: tuple[AttributeMetaItem, ...] | None = None


@dataclass(frozen=True)
class Attribute:
    """An outer (``#[...]``) or inner (``#![...]``) attribute."""

    is_inner: bool
    content: AttributeMetaItem

    def raw_attribute(self) -> str:
        """Rebuild the attribute text from its parsed content."""
        bang = "!" if self.is_inner else ""
        return f"#{bang}[{self.content.raw_item}]"


def _slice_arguments(raw: str) -> tuple[AttributeMetaItem, ...] | None:
    """Parse a bracketed, comma-separated sequence of meta items.

    Returns None when the text is not such a sequence or its brackets do not balance.
    """
    trimmed = raw.strip()
    if not trimmed or trimmed[0] not in _LEFT_BRACKETS:
        return None
    if not trimmed.endswith(_MATCHING_RIGHT[trimmed[0]]) or len(trimmed) < 2:
        return None
    sequence = trimmed[1:-1].strip()

    start = 0
    previous_is_escape = False
    inside_string = False
    open_brackets: list[str] = []
    arguments: list[AttributeMetaItem] = []

    for position, char in enumerate(sequence):
        if char == '"' and not previous_is_escape:
            inside_string = not inside_string

        if not inside_string:
            if char in _LEFT_BRACKETS:
                open_brackets.append(char)
            elif char in _RIGHT_BRACKETS:
                if not open_brackets or _MATCHING_RIGHT[open_brackets.pop()] != char:
                    return None
            elif char == "," and not open_brackets:
                arguments.append(parse_meta_item(sequence[start:position]))
                start = position + 1

        previous_is_escape = char == "\\"

    if start < len(sequence):
        arguments.append(parse_meta_item(sequence[start:]))

    return tuple(arguments)


def parse_meta_item(raw: str) -> AttributeMetaItem:
    """Parse the content of an attribute into an :class:`AttributeMetaItem`.

    Text in an unrecognised form becomes an item whose base is the whole text.
    """
    trimmed = raw.strip()

    path_end = next(
        (
            index
            for index, char in enumerate(trimmed)
            if char.isspace() or char == "=" or char in _LEFT_BRACKETS
        ),
        None,
    )
    if path_end is not None:
        simple_path = trimmed[:path_end]
        attr_input = trimmed[path_end:]
        if simple_path:
            stripped_input = attr_input.strip()
            if stripped_input.startswith("="):
                return AttributeMetaItem(
                    raw_item=trimmed,
                    base=simple_path,
                    assigned_item=stripped_input[1:].lstrip(),
                )
            arguments = _slice_arguments(attr_input)
            if arguments is not None:
                return AttributeMetaItem(
                    raw_item=trimmed,
                    base=simple_path,
                    arguments=arguments,
                )

    return AttributeMetaItem(raw_item=trimmed, base=trimmed)


def parse_attribute(raw: str) -> Attribute:
    """Parse a full attribute string such as ``#[cfg(test)]`` or ``#![no_std]``.

    Raises ValueError if the text is not enclosed as an attribute.
    """
    trimmed = raw.strip()
    if not trimmed.endswith("]"):
        raise ValueError(
            f"String `{trimmed}` cannot be parsed as an attribute "
            "because it is not closed with a square bracket."
        )
    without_closing = trimmed[:-1]

    if without_closing.startswith("#["):
        return Attribute(is_inner=False, content=parse_meta_item(without_closing[2:]))
    if without_closing.startswith("#!["):
        return Attribute(is_inner=True, content=parse_meta_item(without_closing[3:]))
    raise ValueError(
        f"String `{trimmed}` cannot be parsed as an attribute "
        "because it starts with neither `#[` nor `#![`."
    )


def is_doc_hidden(raw: str) -> bool:
    """Tell whether an attribute is ``#[doc(...)]`` with a ``hidden`` argument."""
    raw = raw.lstrip()
    if not raw.startswith("#[doc("):
        return False

    content = parse_attribute(raw).content
    return content.base == "doc" and any(
        argument.base == "hidden" for argument in content.arguments or ()
    )