"""The query adapter: routes starting vertices, properties, edges and coercions.

Contexts are vertices, ``None``, or objects whose ``active_vertex`` attribute
(or zero-argument method) gives the vertex. Property and coercion resolution
return iterators of ``(context, value)`` pairs. Edge resolution returns
iterators of ``(context, neighbors)`` pairs. Requests for types, properties or
edges that the schema does not have raise :class:`ValueError`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any

from . import edges, properties
from .optimizations import ResolveEdgeInfo
from .vertex import Origin, Vertex, VertexKind

_ITEM_SUBTYPES = frozenset(
    {
        "ImplOwner",
        "Struct",
        "StructField",
        "Enum",
        "Variant",
        "PlainVariant",
        "TupleVariant",
        "StructVariant",
        "Trait",
        "Function",
        "Method",
        "Impl",
        "GlobalValue",
        "Constant",
        "Static",
        "AssociatedType",
        "AssociatedConstant",
        "Module",
    }
)

_INHERITED_ITEM_PROPERTIES = frozenset(
    {
        "id",
        "crate_id",
        "name",
        "docs",
        "attrs",
        "doc_hidden",
        "deprecated",
        "public_api_eligible",
        "visibility_limit",
    }
)

_FUNCTION_LIKE_TYPES = frozenset({"FunctionLike", "Function", "Method"})
_FUNCTION_LIKE_PROPERTIES = frozenset({"const", "unsafe", "async"})

_IMPORTABLE_TYPES = frozenset(
    {
        "Importable",
        "ImplOwner",
        "Struct",
        "Enum",
        "Trait",
        "Function",
        "GlobalValue",
        "Constant",
        "Static",
        "Module",
    }
)

_VARIANT_TYPES = frozenset({"Variant", "PlainVariant", "TupleVariant", "StructVariant"})

_PROPERTY_RESOLVERS: dict[str, Callable[[Iterable[Any], str], Iterator[tuple[Any, Any]]]] = {
    "Crate": properties.resolve_crate_property,
    "Item": properties.resolve_item_property,
    "Module": properties.resolve_module_property,
    "Struct": properties.resolve_struct_property,
    "Enum": properties.resolve_enum_property,
    "Span": properties.resolve_span_property,
    "Path": properties.resolve_path_property,
    "ImportablePath": properties.resolve_importable_path_property,
    "Function": properties.resolve_function_property,
    "FunctionParameter": properties.resolve_function_parameter_property,
    "FunctionAbi": properties.resolve_function_abi_property,
    "Impl": properties.resolve_impl_property,
    "Attribute": properties.resolve_attribute_property,
    "AttributeMetaItem": properties.resolve_attribute_meta_item_property,
    "Trait": properties.resolve_trait_property,
    "ImplementedTrait": properties.resolve_implemented_trait_property,
    "Static": properties.resolve_static_property,
    "AssociatedType": properties.resolve_associated_type_property,
    "AssociatedConstant": properties.resolve_associated_constant_property,
    "Constant": properties.resolve_constant_property,
}

_COERCIBLE_TYPES = frozenset(
    {"Item", "Variant", "FunctionLike", "Importable", "ImplOwner", "RawType", "GlobalValue"}
)

_ABSTRACT_SUBTYPES = {
    "Variant": frozenset({"PlainVariant", "TupleVariant", "StructVariant"}),
    "ImplOwner": frozenset({"Struct", "Enum"}),
    "GlobalValue": frozenset({"Constant", "Static"}),
}


def _active_vertex(ctx: Any) -> Vertex | None:
    if ctx is None or isinstance(ctx, Vertex):
        return ctx
    vertex = ctx.active_vertex
    return vertex() if callable(vertex) else vertex


def _typenames(contexts: Iterable[Any]) -> Iterator[tuple[Any, Any]]:
    for ctx in contexts:
        vertex = _active_vertex(ctx)
        yield ctx, (None if vertex is None else vertex.typename())


def _coercions(contexts: Iterable[Any], coerce_to_type: str) -> Iterator[tuple[Any, bool]]:
    subtypes = _ABSTRACT_SUBTYPES.get(coerce_to_type)
    for ctx in contexts:
        vertex = _active_vertex(ctx)
        if vertex is None:
            yield ctx, False
            continue
        actual = vertex.typename()
        # Types other than the abstract ones have no subtypes.
        yield ctx, (actual in subtypes if subtypes is not None else actual == coerce_to_type)


class RustdocAdapter:
    """Answers graph queries over one crate, or over a current and a previous crate."""

    def __init__(self, current_crate: Any, previous_crate: Any = None) -> None:
        self.current_crate = current_crate
        self.previous_crate = previous_crate

    def resolve_starting_vertices(
        self, edge_name: str, parameters: Any = None, resolve_info: Any = None
    ) -> Iterator[Vertex]:
        """Return the vertices a query starts from: ``Crate`` or ``CrateDiff``."""
        if edge_name == "Crate":
            return iter((Vertex.new_crate(Origin.CURRENT_CRATE, self.current_crate),))
        if edge_name == "CrateDiff":
            if self.previous_crate is None:
                raise ValueError("no previous crate provided")
            diff = Vertex(
                origin=Origin.CURRENT_CRATE,
                kind=VertexKind.CRATE_DIFF,
                value=(self.current_crate, self.previous_crate),
            )
            return iter((diff,))
        raise ValueError(f"resolve_starting_vertices {edge_name}")

    def resolve_property(
        self,
        contexts: Iterable[Any],
        type_name: str,
        property_name: str,
        resolve_info: Any = None,
    ) -> Iterator[tuple[Any, Any]]:
        """Resolve a property of the vertices in ``contexts``."""
        if property_name == "__typename":
            return _typenames(contexts)
        return self._property_resolver(type_name, property_name)(contexts, property_name)

    @staticmethod
    def _property_resolver(
        type_name: str, property_name: str
    ) -> Callable[[Iterable[Any], str], Iterator[tuple[Any, Any]]]:
        if type_name in _ITEM_SUBTYPES and property_name in _INHERITED_ITEM_PROPERTIES:
            return properties.resolve_item_property
        if type_name in _FUNCTION_LIKE_TYPES and property_name in _FUNCTION_LIKE_PROPERTIES:
            return properties.resolve_function_like_property
        if type_name in ("RawType", "ResolvedPathType") and property_name == "name":
            return properties.resolve_raw_type_property
        resolver = _PROPERTY_RESOLVERS.get(type_name)
        if resolver is None:
            raise ValueError(f"resolve_property {type_name} {property_name}")
        return resolver

    def resolve_neighbors(
        self,
        contexts: Iterable[Any],
        type_name: str,
        edge_name: str,
        parameters: Any = None,
        resolve_info: ResolveEdgeInfo | None = None,
    ) -> Iterator[tuple[Any, Iterator[Vertex]]]:
        """Resolve an edge from the vertices in ``contexts``."""
        info = resolve_info if resolve_info is not None else ResolveEdgeInfo()
        current, previous = self.current_crate, self.previous_crate

        if type_name in _IMPORTABLE_TYPES and edge_name in ("importable_path", "canonical_path"):
            return edges.resolve_importable_edge(contexts, edge_name, current, previous)
        if (type_name == "Item" or type_name in _ITEM_SUBTYPES) and edge_name in (
            "span",
            "attribute",
        ):
            return edges.resolve_item_edge(contexts, edge_name)
        if type_name in ("ImplOwner", "Struct", "Enum") and edge_name in ("impl", "inherent_impl"):
            return edges.resolve_impl_owner_edge(self, contexts, edge_name, info)
        if type_name in _FUNCTION_LIKE_TYPES and edge_name in ("parameter", "abi"):
            return edges.resolve_function_like_edge(contexts, edge_name)

        if type_name == "CrateDiff":
            return edges.resolve_crate_diff_edge(contexts, edge_name)
        if type_name == "Crate":
            return edges.resolve_crate_edge(self, contexts, edge_name, info)
        if type_name == "Module":
            return edges.resolve_module_edge(contexts, edge_name, current, previous)
        if type_name == "Struct":
            return edges.resolve_struct_edge(contexts, edge_name, current, previous)
        if type_name in _VARIANT_TYPES:
            return edges.resolve_variant_edge(contexts, edge_name, current, previous)
        if type_name == "Enum":
            return edges.resolve_enum_edge(contexts, edge_name, current, previous)
        if type_name == "StructField":
            return edges.resolve_struct_field_edge(contexts, edge_name)
        if type_name == "Impl":
            return edges.resolve_impl_edge(self, contexts, edge_name, info)
        if type_name == "Trait":
            return edges.resolve_trait_edge(contexts, edge_name, current, previous)
        if type_name == "ImplementedTrait":
            return edges.resolve_implemented_trait_edge(contexts, edge_name)
        if type_name == "Attribute":
            return edges.resolve_attribute_edge(contexts, edge_name)
        if type_name == "AttributeMetaItem":
            return edges.resolve_attribute_meta_item_edge(contexts, edge_name)
        raise ValueError(f"resolve_neighbors {type_name} {edge_name} {parameters!r}")

    def resolve_coercion(
        self,
        contexts: Iterable[Any],
        type_name: str,
        coerce_to_type: str,
        resolve_info: Any = None,
    ) -> Iterator[tuple[Any, bool]]:
        """Tell, for each context, whether its vertex is of type ``coerce_to_type``."""
        if type_name not in _COERCIBLE_TYPES:
            raise ValueError(f"resolve_coercion {type_name} {coerce_to_type}")
        return _coercions(contexts, coerce_to_type)