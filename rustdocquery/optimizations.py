"""Index-backed lookups for the edges that are expensive to resolve naively.

Each resolver takes an iterable of contexts and returns an iterator of
``(context, neighbors)`` pairs, one per context, in order; ``neighbors`` is an
iterator of :class:`~rustdocquery.vertex.Vertex`. A context is a vertex,
``None``, or an object whose ``active_vertex`` attribute (or zero-argument
method) gives the vertex. Contexts without an active vertex have no neighbors.

The adapter is any object with ``current_crate`` and ``previous_crate``
attributes. An indexed crate is any object with:

- ``inner``: the parsed rustdoc JSON, with ``root`` and ``index`` entries;
- ``impl_index``: a mapping from ``(owner_id, method_name)`` to a list of
  ``(impl_item, method_item)`` pairs;
- ``imports_index``: a mapping from a tuple of path components to a list of
  ``(item, modifiers)`` pairs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from itertools import chain
from typing import Any

from .vertex import Origin, Vertex, item_kind, supported_item_kind

NeighborOutcomes = Iterator[tuple[Any, Iterator[Vertex]]]
Candidates = Sequence[Any] | None


@dataclass(frozen=True)
class ResolveEdgeInfo:
    """What a query asks of the vertex at the far end of an edge.

    ``edges`` maps the names of edges taken from that vertex to the
    information about their own destinations. ``properties`` maps property
    names to the values the query requires them to have: either a sequence
    of the possible values (an empty sequence means no value can match), or
    a callable that takes a context and returns such a sequence, or ``None``
    when that context puts no constraint on the property.
    """

    edges: Mapping[str, ResolveEdgeInfo] = field(default_factory=dict)
    properties: Mapping[str, Any] = field(default_factory=dict)

    def first_edge(self, edge_name: str) -> ResolveEdgeInfo | None:
        """Information about the destination of the named edge, if it is used."""
        return self.edges.get(edge_name)

    def required_property(self, property_name: str) -> Any:
        """The requirement on the named property, or None if there is none."""
        return self.properties.get(property_name)


def _active_vertex(ctx: Any) -> Vertex | None:
    if ctx is None or isinstance(ctx, Vertex):
        return ctx
    vertex = ctx.active_vertex
    return vertex() if callable(vertex) else vertex


def _resolve_neighbors(
    contexts: Iterable[Any], resolver: Callable[[Any, Vertex], Iterator[Vertex]]
) -> NeighborOutcomes:
    for ctx in contexts:
        vertex = _active_vertex(ctx)
        yield ctx, (iter(()) if vertex is None else resolver(ctx, vertex))


def _candidates_for(requirement: Any, ctx: Any) -> Candidates:
    if callable(requirement):
        return requirement(ctx)
    return requirement


def _crate_for(adapter: Any, origin: Origin) -> Any:
    if origin is Origin.CURRENT_CRATE:
        return adapter.current_crate
    if adapter.previous_crate is None:
        raise ValueError("no previous crate provided")
    return adapter.previous_crate


def _impl_index(crate: Any) -> Mapping:
    if crate.impl_index is None:
        raise ValueError("no impl index present")
    return crate.impl_index


def _lookup(index: Mapping, item_id: Any) -> dict | None:
    item = index.get(item_id)
    if item is None and not isinstance(item_id, str):
        item = index.get(str(item_id))
    return item


def _inner(item: dict, kind: str) -> dict | None:
    inner = item["inner"]
    if isinstance(inner, dict) and kind in inner:
        return inner[kind]
    return None


def _as_name(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"method name was not a string: {value!r}")
    return value


# Crate items


def resolve_crate_items(
    adapter: Any, contexts: Iterable[Any], resolve_info: ResolveEdgeInfo
) -> NeighborOutcomes:
    """Resolve the ``Crate.item`` edge, using the imports index when the path is known."""
    path_info = resolve_info.first_edge("importable_path")
    requirement = None if path_info is None else path_info.required_property("path")

    if requirement is None:
        return _resolve_neighbors(
            contexts, lambda ctx, vertex: _items_slow_path(_indexed_crate(vertex), vertex.origin)
        )

    def resolve(ctx: Any, vertex: Vertex) -> Iterator[Vertex]:
        crate = _indexed_crate(vertex)
        candidates = _candidates_for(requirement, ctx)
        if candidates is None:
            return _items_slow_path(crate, vertex.origin)
        return chain.from_iterable(
            _items_by_importable_path(crate, vertex.origin, path) for path in candidates
        )

    return _resolve_neighbors(contexts, resolve)


def _indexed_crate(vertex: Vertex) -> Any:
    crate = vertex.as_indexed_crate()
    if crate is None:
        raise ValueError("vertex was not a Crate")
    return crate


def _item_vertices(origin: Origin, items: Iterable[dict]) -> Iterator[Vertex]:
    return (origin.make_item_vertex(item) for item in items if supported_item_kind(item))


def _items_by_importable_path(crate: Any, origin: Origin, path: Any) -> Iterator[Vertex]:
    if crate.imports_index is None:
        raise ValueError("crate's imports_index was never constructed")
    if isinstance(path, str) or not isinstance(path, Sequence):
        raise ValueError(f"ImportablePath.path was not a list: {path!r}")
    entries = crate.imports_index.get(tuple(path), ())
    return _item_vertices(origin, (item for item, _ in entries))


def _items_slow_path(crate: Any, origin: Origin) -> Iterator[Vertex]:
    # The index can hold items inlined from builtin crates; keep only the
    # items that share the root module's crate id.
    index = crate.inner["index"]
    own_crate_id = _lookup(index, crate.inner["root"])["crate_id"]
    own_items = (item for item in index.values() if item["crate_id"] == own_crate_id)
    return _item_vertices(origin, own_items)


# Impls of an owner


def resolve_owner_impl(
    adapter: Any, contexts: Iterable[Any], edge_name: str, resolve_info: ResolveEdgeInfo
) -> NeighborOutcomes:
    """Resolve ``ImplOwner.impl`` and ``ImplOwner.inherent_impl``."""
    if edge_name == "inherent_impl":
        inherent_only = True
    elif edge_name == "impl":
        inherent_only = False
    else:
        raise ValueError(f"unexpected edge name: {edge_name}")

    method_info = resolve_info.first_edge("method")
    requirement = None if method_info is None else method_info.required_property("name")

    def resolve(ctx: Any, vertex: Vertex) -> Iterator[Vertex]:
        if requirement is not None:
            candidates = _candidates_for(requirement, ctx)
            if candidates is not None:
                return _impls_by_method_names(adapter, vertex, inherent_only, candidates)
        return _owner_impl_slow_path(adapter, vertex, inherent_only)

    return _resolve_neighbors(contexts, resolve)


def _impls_by_method_names(
    adapter: Any, vertex: Vertex, inherent_only: bool, names: Sequence[Any]
) -> Iterator[Vertex]:
    origin = vertex.origin
    impl_index = _impl_index(_crate_for(adapter, origin))
    item = vertex.as_item()
    if item is None:
        raise ValueError("vertex was not an Item")
    owner_id = item["id"]

    def for_name(name: Any) -> Iterator[Vertex]:
        for impl_item, _ in impl_index.get((owner_id, _as_name(name)), ()):
            impl_ = _inner(impl_item, "impl")
            if impl_ is None:
                raise ValueError(f"the impl index held a non-impl item: {impl_item!r}")
            if not inherent_only or impl_.get("trait") is None:
                yield origin.make_item_vertex(impl_item)

    return chain.from_iterable(for_name(name) for name in names)


def _owner_impl_slow_path(adapter: Any, vertex: Vertex, inherent_only: bool) -> Iterator[Vertex]:
    origin = vertex.origin
    index = _crate_for(adapter, origin).inner["index"]
    # Only structs and enums own impls.
    owner = vertex.as_struct() or vertex.as_enum()
    if owner is None:
        raise ValueError("vertex was neither a struct nor an enum")

    def impls() -> Iterator[Vertex]:
        for impl_id in owner["impls"]:
            impl_item = _lookup(index, impl_id)
            if impl_item is None:
                continue
            impl_ = _inner(impl_item, "impl")
            if impl_ is not None and (not inherent_only or impl_.get("trait") is None):
                yield origin.make_item_vertex(impl_item)

    return impls()


# Methods of an impl


def find_impl_owner_id(impl_: dict) -> Any:
    """Return the id of the type an impl block is for, looking through references and pointers.

    Returns None when the type is of any other form.
    """
    ty = impl_["for"]
    while isinstance(ty, dict) and len(ty) == 1:
        (tag, content), = ty.items()
        if tag == "resolved_path":
            return content["id"]
        if tag in ("borrowed_ref", "raw_pointer"):
            ty = content["type"]
            continue
        break
    return None


def resolve_impl_methods(
    adapter: Any, contexts: Iterable[Any], resolve_info: ResolveEdgeInfo
) -> NeighborOutcomes:
    """Resolve ``Impl.method``, using the impl index when the method name is known."""
    requirement = resolve_info.required_property("name")

    def resolve(ctx: Any, vertex: Vertex) -> Iterator[Vertex]:
        origin = vertex.origin
        crate = _crate_for(adapter, origin)
        impl_ = vertex.as_impl()
        if impl_ is None:
            raise ValueError("vertex was not an Impl")
        index = crate.inner["index"]

        candidates = None if requirement is None else _candidates_for(requirement, ctx)
        if candidates is None:
            return _methods_slow_path(impl_, origin, index)

        impl_index = _impl_index(crate)
        owner_id = find_impl_owner_id(impl_)
        if owner_id is None:
            return _methods_slow_path(impl_, origin, index)
        impl_id = vertex.as_item()["id"]
        return chain.from_iterable(
            _impl_methods_by_name(origin, impl_index, owner_id, impl_id, _as_name(name))
            for name in candidates
        )

    return _resolve_neighbors(contexts, resolve)


def _impl_methods_by_name(
    origin: Origin, impl_index: Mapping, owner_id: Any, impl_id: Any, name: str
) -> Iterator[Vertex]:
    return (
        origin.make_item_vertex(method)
        for impl_item, method in impl_index.get((owner_id, name), ())
        if impl_item["id"] == impl_id
    )


def _methods_slow_path(impl_: dict, origin: Origin, index: Mapping) -> Iterator[Vertex]:
    provided_ids: Iterable[Any] = ()
    provided_names = set(impl_.get("provided_trait_methods") or ())
    if provided_names:
        trait_path = impl_.get("trait")
        if trait_path is None:
            raise ValueError("no trait but provided_trait_methods was non-empty")
        trait_item = _lookup(index, trait_path["id"])
        if trait_item is not None:
            trait_ = _inner(trait_item, "trait")
            if trait_ is None:
                raise ValueError(f"found a non-trait item: {trait_item!r}")
            provided_ids = [
                item_id
                for item_id in trait_["items"]
                if (_lookup(index, item_id) or {}).get("name") in provided_names
            ]

    def methods() -> Iterator[Vertex]:
        for item_id in chain(provided_ids, impl_["items"]):
            item = _lookup(index, item_id)
            if item is not None and item_kind(item) == "function":
                yield origin.make_item_vertex(item)

    return methods()