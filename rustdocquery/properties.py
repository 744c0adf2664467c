"""Resolution of vertex properties for the rustdoc query graph.

Each resolver takes an iterable of contexts and a property name and returns
an iterator of ``(context, value)`` pairs, one per context, in order.
A context is either a :class:`~rustdocquery.vertex.Vertex`, ``None``, or an
object whose ``active_vertex`` attribute (or zero-argument method) gives the
vertex. Contexts without an active vertex resolve to ``None``.

Unknown property names raise :class:`ValueError` when the resolver is called.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any

from .attributes import is_doc_hidden, parse_attribute
from .vertex import Vertex

Resolver = Callable[[Vertex], Any]
PropertyOutcomes = Iterator[tuple[Any, Any]]

_ABI_NAMES = {
    "C": "C",
    "Cdecl": "cdecl",
    "Stdcall": "stdcall",
    "Fastcall": "fastcall",
    "Aapcs": "aapcs",
    "Win64": "win64",
    "SysV64": "sysv64",
    "System": "system",
}

_NON_UNWINDING_ABIS = frozenset(
    {
        "ptx-kernel",
        "msp430-interrupt",
        "x86-interrupt",
        "amdgpu-kernel",
        "efiapi",
        "avr-interrupt",
        "avr-non-blocking-interrupt",
        "C-cmse-nonsecure-call",
        "wasm",
        "platform-intrinsic",
        "unadjusted",
    }
)


def _active_vertex(ctx: Any) -> Vertex | None:
    if ctx is None or isinstance(ctx, Vertex):
        return ctx
    vertex = ctx.active_vertex
    return vertex() if callable(vertex) else vertex


def _resolve(contexts: Iterable[Any], resolver: Resolver) -> PropertyOutcomes:
    for ctx in contexts:
        vertex = _active_vertex(ctx)
        yield ctx, (None if vertex is None else resolver(vertex))


def _dispatch(
    table: dict[str, Resolver], label: str, contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    try:
        resolver = table[property_name]
    except KeyError:
        raise ValueError(f"{label} property {property_name}") from None
    return _resolve(contexts, resolver)


def _expect(value: Any, what: str) -> Any:
    if value is None:
        raise ValueError(f"vertex was not {what}")
    return value


def _split_tagged(value: Any) -> tuple[str, Any]:
    """Split an externally tagged enum value into its tag and content."""
    if isinstance(value, str):
        return value, None
    if isinstance(value, dict) and len(value) == 1:
        return next(iter(value.items()))
    raise ValueError(f"not an externally tagged enum value: {value!r}")


def _item(vertex: Vertex) -> dict:
    return _expect(vertex.as_item(), "an Item")


def _item_inner(vertex: Vertex, kind: str) -> dict:
    tag, content = _split_tagged(_item(vertex)["inner"])
    if tag != kind:
        raise ValueError(f"expected an item of kind {kind!r}, found {tag!r}")
    return content


def _attrs_doc_hidden(item: dict) -> bool:
    return any(is_doc_hidden(attr) for attr in item.get("attrs", ()))


# Crate


def _crate(vertex: Vertex) -> dict:
    return _expect(vertex.as_crate(), "a Crate")


_CRATE_PROPERTIES: dict[str, Resolver] = {
    "root": lambda v: _crate(v)["root"],
    "crate_version": lambda v: _crate(v).get("crate_version"),
    "includes_private": lambda v: _crate(v)["includes_private"],
    "format_version": lambda v: _crate(v)["format_version"],
}


def resolve_crate_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    return _dispatch(_CRATE_PROPERTIES, "Crate", contexts, property_name)


# Item


def _public_api_eligible(vertex: Vertex) -> bool:
    # Eligible items are public (explicitly or implicitly) and either
    # deprecated or not `#[doc(hidden)]`. Eligibility alone does not make
    # an item public API: pub-in-priv items are eligible but not public.
    item = _item(vertex)
    is_public = item.get("visibility") in ("public", "default")
    return is_public and (
        item.get("deprecation") is not None or not _attrs_doc_hidden(item)
    )


def _visibility_limit(vertex: Vertex) -> str:
    visibility = _item(vertex)["visibility"]
    tag, content = _split_tagged(visibility)
    if tag in ("public", "default", "crate"):
        return tag
    if tag == "restricted":
        return f"restricted ({content['path']})"
    raise ValueError(f"unexpected visibility {visibility!r}")


_ITEM_PROPERTIES: dict[str, Resolver] = {
    "id": lambda v: _item(v)["id"],
    "crate_id": lambda v: _item(v)["crate_id"],
    "name": lambda v: _item(v).get("name"),
    "docs": lambda v: _item(v).get("docs"),
    "attrs": lambda v: list(_item(v).get("attrs", ())),
    "deprecated": lambda v: _item(v).get("deprecation") is not None,
    "doc_hidden": lambda v: _attrs_doc_hidden(_item(v)),
    "public_api_eligible": _public_api_eligible,
    "visibility_limit": _visibility_limit,
}


def resolve_item_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    return _dispatch(_ITEM_PROPERTIES, "Item", contexts, property_name)


# Module, struct, enum, span, paths


def resolve_module_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "is_stripped": lambda v: _expect(v.as_module(), "a Module")["is_stripped"],
    }
    return _dispatch(table, "Module", contexts, property_name)


def _struct_kind(vertex: Vertex) -> tuple[str, Any]:
    return _split_tagged(_expect(vertex.as_struct(), "a Struct")["kind"])


def _fields_stripped(vertex: Vertex) -> bool | None:
    tag, content = _struct_kind(vertex)
    return content["fields_stripped"] if tag == "plain" else None


def resolve_struct_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "struct_type": lambda v: _struct_kind(v)[0],
        "fields_stripped": _fields_stripped,
    }
    return _dispatch(table, "Struct", contexts, property_name)


def _span(vertex: Vertex) -> dict:
    return _expect(vertex.as_span(), "a Span")


def resolve_span_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "filename": lambda v: str(_span(v)["filename"]),
        "begin_line": lambda v: int(_span(v)["begin"][0]),
        "begin_column": lambda v: int(_span(v)["begin"][1]),
        "end_line": lambda v: int(_span(v)["end"][0]),
        "end_column": lambda v: int(_span(v)["end"][1]),
    }
    return _dispatch(table, "Span", contexts, property_name)


def resolve_enum_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "variants_stripped": lambda v: _expect(v.as_enum(), "an Enum")["variants_stripped"],
    }
    return _dispatch(table, "Enum", contexts, property_name)


def resolve_path_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "path": lambda v: list(_expect(v.as_path(), "a Path")),
    }
    return _dispatch(table, "Path", contexts, property_name)


def _importable(vertex: Vertex) -> Any:
    return _expect(vertex.as_importable_path(), "an ImportablePath")


def _public_api(vertex: Vertex) -> bool:
    value = _importable(vertex).public_api
    return value() if callable(value) else value


def resolve_importable_path_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "path": lambda v: [str(part) for part in _importable(v).path.components],
        "visibility_limit": lambda v: "public",
        "doc_hidden": lambda v: bool(_importable(v).modifiers.doc_hidden),
        "deprecated": lambda v: bool(_importable(v).modifiers.deprecated),
        "public_api": _public_api,
    }
    return _dispatch(table, "ImportablePath", contexts, property_name)


# Functions


def _header(vertex: Vertex) -> dict:
    return _expect(vertex.as_function(), "a Function")["header"]


def resolve_function_like_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "const": lambda v: _header(v)["const"],
        "async": lambda v: _header(v)["async"],
        "unsafe": lambda v: _header(v)["unsafe"],
    }
    return _dispatch(table, "FunctionLike", contexts, property_name)


def _export_name(vertex: Vertex) -> str | None:
    item = _item(vertex)
    attrs = item.get("attrs", ())
    if "#[no_mangle]" in attrs:
        # Items with `#[no_mangle]` are exported under their own name.
        return item.get("name")
    for attr in attrs:
        if not attr.startswith("#[export_name"):
            continue
        content = parse_attribute(attr).content
        if content.base == "export_name" and content.assigned_item is not None:
            return content.assigned_item.strip('"')
    return None


def resolve_function_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {"export_name": _export_name}
    return _dispatch(table, "Function", contexts, property_name)


def resolve_function_parameter_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "name": lambda v: _expect(v.as_function_parameter(), "a FunctionParameter"),
    }
    return _dispatch(table, "FunctionParameter", contexts, property_name)


def _abi(vertex: Vertex) -> tuple[str, Any]:
    return _split_tagged(_expect(vertex.as_function_abi(), "a FunctionAbi"))


def _abi_name(vertex: Vertex) -> str:
    tag, content = _abi(vertex)
    if tag == "Rust":
        return "Rust"
    if tag == "Other":
        return content[: -len("-unwind")] if content.endswith("-unwind") else content
    return _ABI_NAMES[tag]


def _abi_raw_name(vertex: Vertex) -> str:
    tag, content = _abi(vertex)
    if tag == "Rust":
        return "Rust"
    if tag == "Other":
        return content
    name = _ABI_NAMES[tag]
    return f"{name}-unwind" if content["unwind"] else name


def _abi_unwind(vertex: Vertex) -> bool | None:
    tag, content = _abi(vertex)
    if tag == "Rust":
        return True
    if tag == "Other":
        if content.endswith("-unwind") or content.startswith("rust-"):
            return True
        if content in _NON_UNWINDING_ABIS:
            return False
        return None
    return bool(content["unwind"])


def resolve_function_abi_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "name": _abi_name,
        "raw_name": _abi_raw_name,
        "unwind": _abi_unwind,
    }
    return _dispatch(table, "FunctionAbi", contexts, property_name)


# Impls, attributes, types, traits


def _impl(vertex: Vertex) -> dict:
    return _expect(vertex.as_impl(), "an Impl")


def resolve_impl_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "unsafe": lambda v: _impl(v)["is_unsafe"],
        "negative": lambda v: _impl(v)["negative"],
        "synthetic": lambda v: _impl(v)["synthetic"],
    }
    return _dispatch(table, "Impl", contexts, property_name)


def resolve_attribute_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "raw_attribute": lambda v: _expect(v.as_attribute(), "an Attribute").raw_attribute(),
        "is_inner": lambda v: _expect(v.as_attribute(), "an Attribute").is_inner,
    }
    return _dispatch(table, "Attribute", contexts, property_name)


def _meta(vertex: Vertex) -> Any:
    return _expect(vertex.as_attribute_meta_item(), "an AttributeMetaItem")


def resolve_attribute_meta_item_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "raw_item": lambda v: _meta(v).raw_item,
        "base": lambda v: _meta(v).base,
        "assigned_item": lambda v: _meta(v).assigned_item,
    }
    return _dispatch(table, "AttributeMetaItem", contexts, property_name)


def _raw_type_name(vertex: Vertex) -> str:
    raw_type = _expect(vertex.as_raw_type(), "a RawType")
    tag, content = _split_tagged(raw_type)
    if tag == "resolved_path":
        return content["name"]
    if tag == "primitive":
        return content
    raise ValueError(f"unexpected RawType vertex content: {raw_type!r}")


def resolve_raw_type_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {"name": _raw_type_name}
    return _dispatch(table, "RawType", contexts, property_name)


def resolve_trait_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "unsafe": lambda v: _expect(v.as_trait(), "a Trait")["is_unsafe"],
    }
    return _dispatch(table, "Trait", contexts, property_name)


def resolve_implemented_trait_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "name": lambda v: _expect(v.as_implemented_trait(), "an ImplementedTrait")[0]["name"],
    }
    return _dispatch(table, "ImplementedTrait", contexts, property_name)


# Global values and associated items


def resolve_static_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "mutable": lambda v: _expect(v.as_static(), "a Static")["mutable"],
    }
    return _dispatch(table, "Static", contexts, property_name)


def resolve_associated_type_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "has_default": lambda v: _item_inner(v, "assoc_type").get("default") is not None,
    }
    return _dispatch(table, "AssociatedType", contexts, property_name)


def resolve_associated_constant_property(
    contexts: Iterable[Any], property_name: str
) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "default": lambda v: _item_inner(v, "assoc_const").get("default"),
    }
    return _dispatch(table, "AssociatedConstant", contexts, property_name)


def resolve_constant_property(contexts: Iterable[Any], property_name: str) -> PropertyOutcomes:
    table: dict[str, Resolver] = {
        "expr": lambda v: _item_inner(v, "constant")["expr"],
        "value": lambda v: _item_inner(v, "constant").get("value"),
        "is_literal": lambda v: _item_inner(v, "constant")["is_literal"],
    }
    return _dispatch(table, "Constant", contexts, property_name)