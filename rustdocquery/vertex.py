"""Vertices of the rustdoc query graph and the helpers that build them.

Items, spans, types and ABIs are taken as they appear in rustdoc JSON:
an item is a mapping whose ``inner`` entry is an externally tagged enum
such as ``{"struct": {...}}``. A crate vertex wraps an indexed crate,
any object whose ``inner`` attribute holds the parsed rustdoc JSON.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from .attributes import Attribute, AttributeMetaItem

_SUPPORTED_ITEM_KINDS = frozenset(
    {
        "struct",
        "struct_field",
        "enum",
        "variant",
        "function",
        "impl",
        "trait",
        "constant",
        "static",
        "assoc_type",
        "module",
    }
)

_ITEM_TYPENAMES = {
    "module": "Module",
    "struct": "Struct",
    "enum": "Enum",
    "function": "Function",
    "struct_field": "StructField",
    "impl": "Impl",
    "trait": "Trait",
    "constant": "Constant",
    "static": "Static",
    "assoc_type": "AssociatedType",
}

_VARIANT_TYPENAMES = {
    "plain": "PlainVariant",
    "tuple": "TupleVariant",
    "struct": "StructVariant",
}


def _tag(value: Any) -> str:
    """Return the tag of an externally tagged enum value from rustdoc JSON."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and len(value) == 1:
        return next(iter(value))
    raise ValueError(f"not an externally tagged enum value: {value!r}")


def item_kind(item: dict) -> str:
    """Return the kind of an item, such as ``"struct"`` or ``"module"``."""
    return _tag(item["inner"])


def supported_item_kind(item: dict) -> bool:
    """Tell whether items of this kind take part in queries."""
    return item_kind(item) in _SUPPORTED_ITEM_KINDS


def _item_content(item: dict, kind: str) -> Any:
    inner = item["inner"]
    if isinstance(inner, dict) and kind in inner:
        return inner[kind]
    return None


class VertexKind(enum.Enum):
    """The kinds of values a vertex can hold."""

    CRATE_DIFF = "CrateDiff"
    CRATE = "Crate"
    ITEM = "Item"
    SPAN = "Span"
    PATH = "Path"
    IMPORTABLE_PATH = "ImportablePath"
    RAW_TYPE = "RawType"
    ATTRIBUTE = "Attribute"
    ATTRIBUTE_META_ITEM = "AttributeMetaItem"
    IMPLEMENTED_TRAIT = "ImplementedTrait"
    FUNCTION_PARAMETER = "FunctionParameter"
    FUNCTION_ABI = "FunctionAbi"


class Origin(enum.Enum):
    """Which of the two crates a vertex comes from."""

    CURRENT_CRATE = "current"
    PREVIOUS_CRATE = "previous"

    def _vertex(self, kind: VertexKind, value: Any) -> Vertex:
        return Vertex(origin=self, kind=kind, value=value)

    def make_item_vertex(self, item: dict) -> Vertex:
        return self._vertex(VertexKind.ITEM, item)

    def make_span_vertex(self, span: dict) -> Vertex:
        return self._vertex(VertexKind.SPAN, span)

    def make_path_vertex(self, path: list[str]) -> Vertex:
        return self._vertex(VertexKind.PATH, path)

    def make_importable_path_vertex(self, importable_path: Any) -> Vertex:
        return self._vertex(VertexKind.IMPORTABLE_PATH, importable_path)

    def make_raw_type_vertex(self, raw_type: Any) -> Vertex:
        return self._vertex(VertexKind.RAW_TYPE, raw_type)

    def make_attribute_vertex(self, attr: Attribute) -> Vertex:
        return self._vertex(VertexKind.ATTRIBUTE, attr)

    def make_attribute_meta_item_vertex(self, meta_item: AttributeMetaItem) -> Vertex:
        return self._vertex(VertexKind.ATTRIBUTE_META_ITEM, meta_item)

    def make_implemented_trait_vertex(self, path: dict, trait_def: dict) -> Vertex:
        return self._vertex(VertexKind.IMPLEMENTED_TRAIT, (path, trait_def))

    def make_function_parameter_vertex(self, name: str) -> Vertex:
        return self._vertex(VertexKind.FUNCTION_PARAMETER, name)

    def make_function_abi_vertex(self, abi: Any) -> Vertex:
        return self._vertex(VertexKind.FUNCTION_ABI, abi)


@dataclass(frozen=True, eq=False)
class Vertex:
    """A value in the query graph together with the crate it came from."""

    origin: Origin
    kind: VertexKind
    value: Any

    @staticmethod
    def new_crate(origin: Origin, crate: Any) -> Vertex:
        return Vertex(origin=origin, kind=VertexKind.CRATE, value=crate)

    def typename(self) -> str:
        """The schema type name of the value this vertex holds."""
        if self.kind is VertexKind.ITEM:
            item = self.value
            kind = item_kind(item)
            if kind == "variant":
                return _VARIANT_TYPENAMES[_tag(_item_content(item, "variant")["kind"])]
            try:
                return _ITEM_TYPENAMES[kind]
            except KeyError:
                raise ValueError(f"unexpected item kind {kind!r} for item: {item!r}") from None
        if self.kind is VertexKind.RAW_TYPE:
            return "ResolvedPathType" if _tag(self.value) == "resolved_path" else "RawType"
        return self.kind.value

    def _of(self, kind: VertexKind) -> Any:
        return self.value if self.kind is kind else None

    def _item_of(self, kind: str) -> Any:
        item = self.as_item()
        return None if item is None else _item_content(item, kind)

    def as_crate_diff(self) -> tuple[Any, Any] | None:
        return self._of(VertexKind.CRATE_DIFF)

    def as_indexed_crate(self) -> Any:
        return self._of(VertexKind.CRATE)

    def as_crate(self) -> Any:
        indexed = self.as_indexed_crate()
        return None if indexed is None else indexed.inner

    def as_item(self) -> dict | None:
        return self._of(VertexKind.ITEM)

    def as_module(self) -> dict | None:
        return self._item_of("module")

    def as_struct(self) -> dict | None:
        return self._item_of("struct")

    def as_struct_field(self) -> Any:
        return self._item_of("struct_field")

    def as_span(self) -> dict | None:
        return self._of(VertexKind.SPAN)

    def as_enum(self) -> dict | None:
        return self._item_of("enum")

    def as_trait(self) -> dict | None:
        return self._item_of("trait")

    def as_variant(self) -> dict | None:
        return self._item_of("variant")

    def as_path(self) -> list[str] | None:
        return self._of(VertexKind.PATH)

    def as_importable_path(self) -> Any:
        return self._of(VertexKind.IMPORTABLE_PATH)

    def as_function(self) -> dict | None:
        return self._item_of("function")

    def as_function_parameter(self) -> str | None:
        return self._of(VertexKind.FUNCTION_PARAMETER)

    def as_function_abi(self) -> Any:
        return self._of(VertexKind.FUNCTION_ABI)

    def as_impl(self) -> dict | None:
        return self._item_of("impl")

    def as_constant(self) -> dict | None:
        return self._item_of("constant")

    def as_static(self) -> dict | None:
        return self._item_of("static")

    def as_attribute(self) -> Attribute | None:
        return self._of(VertexKind.ATTRIBUTE)

    def as_attribute_meta_item(self) -> AttributeMetaItem | None:
        return self._of(VertexKind.ATTRIBUTE_META_ITEM)

    def as_raw_type(self) -> Any:
        return self._of(VertexKind.RAW_TYPE)

    def as_implemented_trait(self) -> tuple[dict, dict] | None:
        return self._of(VertexKind.IMPLEMENTED_TRAIT)