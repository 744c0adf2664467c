"""Resolution of edges between vertices of the rustdoc query graph.

Each resolver takes an iterable of contexts and an edge name and returns an
iterator of ``(context, neighbors)`` pairs, one per context, in order;
``neighbors`` is an iterator of :class:`~rustdocquery.vertex.Vertex`.
A context is a vertex, ``None``, or an object whose ``active_vertex``
attribute (or zero-argument method) gives the vertex. Contexts without an
active vertex have no neighbors.

An indexed crate is any object whose ``inner`` attribute holds the parsed
rustdoc JSON (with ``root``, ``index`` and ``paths`` entries), with a
``manually_inlined_builtin_traits`` mapping from trait ids to trait items and
a ``publicly_importable_names(item_id)`` method. The adapter is any object
with ``current_crate`` and ``previous_crate`` attributes.

Unknown edge names raise :class:`ValueError` when the resolver is called.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from .attributes import parse_attribute
from .optimizations import (
    ResolveEdgeInfo,
    resolve_crate_items,
    resolve_impl_methods,
    resolve_owner_impl,
)
from .vertex import Origin, Vertex, item_kind, supported_item_kind

NeighborOutcomes = Iterator[tuple[Any, Iterator[Vertex]]]
EdgeResolver = Callable[[Vertex], Iterator[Vertex]]


def _active_vertex(ctx: Any) -> Vertex | None:
    if ctx is None or isinstance(ctx, Vertex):
        return ctx
    vertex = ctx.active_vertex
    return vertex() if callable(vertex) else vertex


def _resolve_neighbors(contexts: Iterable[Any], resolver: EdgeResolver) -> NeighborOutcomes:
    for ctx in contexts:
        vertex = _active_vertex(ctx)
        yield ctx, (iter(()) if vertex is None else resolver(vertex))


def _dispatch(
    table: Mapping[str, EdgeResolver], label: str, contexts: Iterable[Any], edge_name: str
) -> NeighborOutcomes:
    try:
        resolver = table[edge_name]
    except KeyError:
        raise ValueError(f"{label} edge {edge_name}") from None
    return _resolve_neighbors(contexts, resolver)


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


def _crate_for(origin: Origin, current_crate: Any, previous_crate: Any) -> Any:
    if origin is Origin.CURRENT_CRATE:
        return current_crate
    if previous_crate is None:
        raise ValueError("no previous crate provided")
    return previous_crate


def _lookup(index: Mapping, item_id: Any) -> dict | None:
    item = index.get(item_id)
    if item is None and not isinstance(item_id, str):
        item = index.get(str(item_id))
    return item


def _require(index: Mapping, item_id: Any) -> dict:
    item = _lookup(index, item_id)
    if item is None:
        raise ValueError(f"missing item {item_id!r}")
    return item


def _item_vertices(origin: Origin, index: Mapping, item_ids: Iterable[Any]) -> Iterator[Vertex]:
    return (origin.make_item_vertex(_require(index, item_id)) for item_id in item_ids)


def _items_of_kind(
    origin: Origin, index: Mapping, item_ids: Iterable[Any], kind: str
) -> Iterator[Vertex]:
    for item_id in item_ids:
        item = _lookup(index, item_id)
        if item is not None and item_kind(item) == kind:
            yield origin.make_item_vertex(item)


# Crates


def resolve_crate_diff_edge(contexts: Iterable[Any], edge_name: str) -> NeighborOutcomes:
    """Resolve the ``current`` and ``baseline`` edges of a crate diff."""

    def current(vertex: Vertex) -> Iterator[Vertex]:
        pair = _expect(vertex.as_crate_diff(), "a CrateDiff")
        return iter((Vertex.new_crate(Origin.CURRENT_CRATE, pair[0]),))

    def baseline(vertex: Vertex) -> Iterator[Vertex]:
        pair = _expect(vertex.as_crate_diff(), "a CrateDiff")
        return iter((Vertex.new_crate(Origin.PREVIOUS_CRATE, pair[1]),))

    table = {"current": current, "baseline": baseline}
    return _dispatch(table, "CrateDiff", contexts, edge_name)


def resolve_crate_edge(
    adapter: Any, contexts: Iterable[Any], edge_name: str, resolve_info: ResolveEdgeInfo
) -> NeighborOutcomes:
    """Resolve the ``item`` and ``root_module`` edges of a crate."""
    if edge_name == "item":
        return resolve_crate_items(adapter, contexts, resolve_info)
    if edge_name != "root_module":
        raise ValueError(f"Crate edge {edge_name}")

    def root_module(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        crate_data = _expect(vertex.as_crate(), "a Crate")
        crate = _crate_for(origin, adapter.current_crate, adapter.previous_crate)
        module = _lookup(crate.inner["index"], crate_data["root"])
        if module is None:
            raise ValueError("crate had no root module")
        return iter((origin.make_item_vertex(module),))

    return _resolve_neighbors(contexts, root_module)


def resolve_importable_edge(
    contexts: Iterable[Any], edge_name: str, current_crate: Any, previous_crate: Any
) -> NeighborOutcomes:
    """Resolve the ``canonical_path`` and ``importable_path`` edges of an item."""

    def canonical_path(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        item = _expect(vertex.as_item(), "an Item")
        crate = _crate_for(origin, current_crate, previous_crate)
        summary = _lookup(crate.inner.get("paths", {}), item["id"])
        if summary is None:
            return iter(())
        return iter((origin.make_path_vertex(summary["path"]),))

    def importable_path(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        item = _expect(vertex.as_item(), "an Item")
        crate = _crate_for(origin, current_crate, previous_crate)
        return (
            origin.make_importable_path_vertex(path)
            for path in crate.publicly_importable_names(item["id"])
        )

    table = {"canonical_path": canonical_path, "importable_path": importable_path}
    return _dispatch(table, "Importable", contexts, edge_name)


# Items


def resolve_item_edge(contexts: Iterable[Any], edge_name: str) -> NeighborOutcomes:
    """Resolve the ``span`` and ``attribute`` edges of an item."""

    def span(vertex: Vertex) -> Iterator[Vertex]:
        item = _expect(vertex.as_item(), "an Item")
        item_span = item.get("span")
        if item_span is None:
            return iter(())
        return iter((vertex.origin.make_span_vertex(item_span),))

    def attribute(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        item = _expect(vertex.as_item(), "an Item")
        return (
            origin.make_attribute_vertex(parse_attribute(attr)) for attr in item.get("attrs", ())
        )

    table = {"span": span, "attribute": attribute}
    return _dispatch(table, "Item", contexts, edge_name)


def resolve_impl_owner_edge(
    adapter: Any, contexts: Iterable[Any], edge_name: str, resolve_info: ResolveEdgeInfo
) -> NeighborOutcomes:
    """Resolve the ``impl`` and ``inherent_impl`` edges of a struct or enum."""
    if edge_name not in ("impl", "inherent_impl"):
        raise ValueError(f"ImplOwner edge {edge_name}")
    return resolve_owner_impl(adapter, contexts, edge_name, resolve_info)


def resolve_function_like_edge(contexts: Iterable[Any], edge_name: str) -> NeighborOutcomes:
    """Resolve the ``parameter`` and ``abi`` edges of a function or method."""

    def parameter(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        function = _expect(vertex.as_function(), "a Function")
        return (
            origin.make_function_parameter_vertex(name)
            for name, _type in function["decl"]["inputs"]
        )

    def abi(vertex: Vertex) -> Iterator[Vertex]:
        function = _expect(vertex.as_function(), "a Function")
        return iter((vertex.origin.make_function_abi_vertex(function["header"]["abi"]),))

    table = {"parameter": parameter, "abi": abi}
    return _dispatch(table, "FunctionLike", contexts, edge_name)


def resolve_module_edge(
    contexts: Iterable[Any], edge_name: str, current_crate: Any, previous_crate: Any
) -> NeighborOutcomes:
    """Resolve the ``item`` edge of a module, skipping unsupported item kinds."""

    def items(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        module = _expect(vertex.as_module(), "a Module")
        index = _crate_for(origin, current_crate, previous_crate).inner["index"]
        for item_id in module["items"]:
            item = _lookup(index, item_id)
            if item is not None and supported_item_kind(item):
                yield origin.make_item_vertex(item)

    return _dispatch({"item": items}, "Module", contexts, edge_name)


def resolve_struct_edge(
    contexts: Iterable[Any], edge_name: str, current_crate: Any, previous_crate: Any
) -> NeighborOutcomes:
    """Resolve the ``field`` edge of a struct."""

    def fields(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        struct = _expect(vertex.as_struct(), "a Struct")
        index = _crate_for(origin, current_crate, previous_crate).inner["index"]
        tag, content = _split_tagged(struct["kind"])
        if tag == "unit":
            field_ids: list[Any] = []
        elif tag == "tuple":
            field_ids = [field_id for field_id in content if field_id is not None]
        elif tag == "plain":
            field_ids = list(content["fields"])
        else:
            raise ValueError(f"unexpected struct kind {tag!r}")
        return _item_vertices(origin, index, field_ids)

    return _dispatch({"field": fields}, "Struct", contexts, edge_name)


def resolve_variant_edge(
    contexts: Iterable[Any], edge_name: str, current_crate: Any, previous_crate: Any
) -> NeighborOutcomes:
    """Resolve the ``field`` edge of an enum variant."""

    def fields(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        variant = _expect(vertex.as_variant(), "a Variant")
        index = _crate_for(origin, current_crate, previous_crate).inner["index"]
        tag, content = _split_tagged(variant["kind"])
        if tag == "plain":
            field_ids: list[Any] = []
        elif tag == "tuple":
            field_ids = [field_id for field_id in content if field_id is not None]
        elif tag == "struct":
            field_ids = list(content["fields"])
        else:
            raise ValueError(f"unexpected variant kind {tag!r}")
        return _item_vertices(origin, index, field_ids)

    return _dispatch({"field": fields}, "Variant", contexts, edge_name)


def resolve_enum_edge(
    contexts: Iterable[Any], edge_name: str, current_crate: Any, previous_crate: Any
) -> NeighborOutcomes:
    """Resolve the ``variant`` edge of an enum."""

    def variants(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        enum_ = _expect(vertex.as_enum(), "an Enum")
        index = _crate_for(origin, current_crate, previous_crate).inner["index"]
        return _item_vertices(origin, index, enum_["variants"])

    return _dispatch({"variant": variants}, "Enum", contexts, edge_name)


def resolve_struct_field_edge(contexts: Iterable[Any], edge_name: str) -> NeighborOutcomes:
    """Resolve the ``raw_type`` edge of a struct field."""

    def raw_type(vertex: Vertex) -> Iterator[Vertex]:
        field_type = _expect(vertex.as_struct_field(), "a StructField")
        return iter((vertex.origin.make_raw_type_vertex(field_type),))

    return _dispatch({"raw_type": raw_type}, "StructField", contexts, edge_name)


# Impls and traits


def resolve_impl_edge(
    adapter: Any, contexts: Iterable[Any], edge_name: str, resolve_info: ResolveEdgeInfo
) -> NeighborOutcomes:
    """Resolve the ``method``, ``implemented_trait`` and ``associated_constant`` edges."""
    if edge_name == "method":
        return resolve_impl_methods(adapter, contexts, resolve_info)

    def crate_of(vertex: Vertex) -> Any:
        return _crate_for(vertex.origin, adapter.current_crate, adapter.previous_crate)

    def implemented_trait(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        crate = crate_of(vertex)
        impl_ = _expect(vertex.as_impl(), "an Impl")
        path = impl_.get("trait")
        if path is None:
            return iter(())
        # Traits defined outside this crate, even `core` or `std` ones, are
        # absent from its index; a few common builtins are inlined by hand.
        found = _lookup(crate.inner["index"], path["id"])
        if found is None:
            found = _lookup(crate.manually_inlined_builtin_traits, path["id"])
        if found is None:
            return iter(())
        return iter((origin.make_implemented_trait_vertex(path, found),))

    def associated_constant(vertex: Vertex) -> Iterator[Vertex]:
        impl_ = _expect(vertex.as_impl(), "an Impl")
        index = crate_of(vertex).inner["index"]
        return _items_of_kind(vertex.origin, index, impl_["items"], "assoc_const")

    table = {
        "implemented_trait": implemented_trait,
        "associated_constant": associated_constant,
    }
    return _dispatch(table, "Impl", contexts, edge_name)


def resolve_trait_edge(
    contexts: Iterable[Any], edge_name: str, current_crate: Any, previous_crate: Any
) -> NeighborOutcomes:
    """Resolve the ``supertrait``, ``method``, ``associated_type`` and
    ``associated_constant`` edges of a trait."""

    def trait_and_index(vertex: Vertex) -> tuple[dict, Mapping]:
        trait_ = _expect(vertex.as_trait(), "a Trait")
        index = _crate_for(vertex.origin, current_crate, previous_crate).inner["index"]
        return trait_, index

    def supertrait(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        trait_, index = trait_and_index(vertex)
        for bound in trait_.get("bounds", ()):
            tag, content = _split_tagged(bound)
            if tag != "trait_bound":
                continue
            path = content["trait"]
            found = _lookup(index, path["id"])
            if found is not None:
                yield origin.make_implemented_trait_vertex(path, found)

    def items_of(kind: str) -> EdgeResolver:
        def resolve(vertex: Vertex) -> Iterator[Vertex]:
            trait_, index = trait_and_index(vertex)
            return _items_of_kind(vertex.origin, index, trait_["items"], kind)

        return resolve

    table = {
        "supertrait": supertrait,
        "method": items_of("function"),
        "associated_type": items_of("assoc_type"),
        "associated_constant": items_of("assoc_const"),
    }
    return _dispatch(table, "Trait", contexts, edge_name)


def resolve_implemented_trait_edge(contexts: Iterable[Any], edge_name: str) -> NeighborOutcomes:
    """Resolve the ``trait`` edge of an implemented trait."""

    def trait_item(vertex: Vertex) -> Iterator[Vertex]:
        _path, item = _expect(vertex.as_implemented_trait(), "an ImplementedTrait")
        return iter((vertex.origin.make_item_vertex(item),))

    return _dispatch({"trait": trait_item}, "ImplementedTrait", contexts, edge_name)


# Attributes


def resolve_attribute_edge(contexts: Iterable[Any], edge_name: str) -> NeighborOutcomes:
    """Resolve the ``content`` edge of an attribute."""

    def content(vertex: Vertex) -> Iterator[Vertex]:
        attribute = _expect(vertex.as_attribute(), "an Attribute")
        return iter((vertex.origin.make_attribute_meta_item_vertex(attribute.content),))

    return _dispatch({"content": content}, "Attribute", contexts, edge_name)


def resolve_attribute_meta_item_edge(contexts: Iterable[Any], edge_name: str) -> NeighborOutcomes:
    """Resolve the ``argument`` edge of an attribute meta item."""

    def argument(vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        meta_item = _expect(vertex.as_attribute_meta_item(), "an AttributeMetaItem")
        return (
            origin.make_attribute_meta_item_vertex(arg) for arg in meta_item.arguments or ()
        )

    return _dispatch({"argument": argument}, "AttributeMetaItem", contexts, edge_name)