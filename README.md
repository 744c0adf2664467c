# rustdocquery

`rustdocquery` answers structured questions about a Rust crate's API, working from the JSON
documentation that rustdoc emits. It presents a crate as a graph of vertices (the crate, its
items, impls, traits, spans, attributes, paths and importable paths), and an adapter resolves
properties, edges and type coercions over that graph. It can look at one crate on its own, or
at a current and a previous version of the same crate side by side.

There are no dependencies outside the standard library.

## Installation

```
pip install rustdocquery
```

The `test` extra pulls in pytest for running the test suite.

## Parsing attributes

`rustdocquery.attributes` parses the attribute strings that rustdoc records on items:

```python
from rustdocquery.attributes import is_doc_hidden, parse_attribute, parse_meta_item

attr = parse_attribute('#[cfg_attr(feature = "serde", derive(Serialize, Deserialize))]')
attr.is_inner                              # False
attr.content.base                          # "cfg_attr"
[a.base for a in attr.content.arguments]   # ["feature", "derive"]
attr.content.arguments[0].assigned_item    # '"serde"'
attr.raw_attribute()                       # '#[cfg_attr(feature = "serde", derive(Serialize, Deserialize))]'

parse_attribute("#![no_std]").is_inner     # True
parse_meta_item("macro{arg1,arg2}").base   # "macro"

is_doc_hidden('#[doc(hidden, alias = "TheAlias")]')   # True
```

`Attribute` and `AttributeMetaItem` are frozen dataclasses. Arguments may be wrapped in
parentheses, square brackets or curly brackets; commas and brackets inside string literals are
left alone. Text that does not fit a recognised form becomes a meta item whose `base` is the
whole text. `parse_attribute` raises `ValueError` when the string is not closed with `]` or
does not start with `#[` or `#![`.

## What the adapter works on

Items, spans, types and ABIs are the values found in rustdoc JSON: an item is a dict whose
`inner` entry is an externally tagged value such as `{"struct": {...}}`.

The adapter does not load files or build indexes itself. It is given an *indexed crate*: any
object that has

- `inner`: the parsed rustdoc JSON, with `root`, `index` and `paths` entries;
- `impl_index`: a mapping from `(owner_id, method_name)` to a list of
  `(impl_item, method_item)` pairs;
- `imports_index`: a mapping from a tuple of path components to a list of `(item, modifiers)`
  pairs;
- `manually_inlined_builtin_traits`: a mapping from trait ids to trait items;
- `publicly_importable_names(item_id)`: a method returning the importable paths of an item.
  Each importable path has `path.components`, `modifiers.doc_hidden`, `modifiers.deprecated`
  and `public_api` (a value or a zero-argument method).

Only the members that a given query touches need to be present.

## The query adapter

`rustdocquery.adapter.RustdocAdapter(current_crate, previous_crate=None)` resolves:

- starting vertices: `resolve_starting_vertices("Crate")` and, when a previous crate was
  given, `resolve_starting_vertices("CrateDiff")`;
- properties, with `resolve_property(contexts, type_name, property_name)`, such as `name`,
  `docs`, `visibility_limit`, `doc_hidden`, `deprecated`, `public_api_eligible`,
  `export_name`, `struct_type`, the ABI's `name`, `raw_name` and `unwind`, and `__typename`
  on every type;
- edges, with `resolve_neighbors(contexts, type_name, edge_name)`, such as `item`,
  `root_module`, `current`, `baseline`, `importable_path`, `canonical_path`, `span`,
  `attribute`, `impl`, `inherent_impl`, `method`, `implemented_trait`, `supertrait`,
  `associated_type`, `associated_constant`, `field`, `variant`, `parameter` and `abi`;
- coercions, with `resolve_coercion(contexts, type_name, coerce_to_type)`, from `Item`,
  `Variant`, `FunctionLike`, `Importable`, `ImplOwner`, `RawType` and `GlobalValue` to their
  concrete types.

A context is a `Vertex`, `None`, or an object whose `active_vertex` attribute (or
zero-argument method) gives the vertex. Every resolver returns an iterator of pairs of a
context and its result: a value for properties, an iterator of neighbouring vertices for
edges, and a bool for coercions. A context without an active vertex gets `None`, no
neighbours, or `False`. A type, property or edge the graph does not have raises `ValueError`.

```python
from types import SimpleNamespace

from rustdocquery.adapter import RustdocAdapter

index = {
    "0": {"id": "0", "crate_id": 0, "name": "demo", "visibility": "public", "attrs": [],
          "inner": {"module": {"items": ["1"], "is_stripped": False}}},
    "1": {"id": "1", "crate_id": 0, "name": "Thing", "visibility": "public", "attrs": [],
          "inner": {"struct": {"kind": "unit", "impls": []}}},
}
crate = SimpleNamespace(inner={"root": "0", "index": index, "paths": {}})
adapter = RustdocAdapter(crate)

(crate_vertex,) = adapter.resolve_starting_vertices("Crate")
[(_, roots)] = adapter.resolve_neighbors([crate_vertex], "Crate", "root_module")
module = next(roots)
[(_, name)] = adapter.resolve_property([module], "Module", "name")        # "demo"

[(_, members)] = adapter.resolve_neighbors([module], "Module", "item")
thing = next(members)
[(_, typename)] = adapter.resolve_property([thing], "Item", "__typename")  # "Struct"
[(_, owner)] = adapter.resolve_coercion([thing], "Item", "ImplOwner")      # True
```

Without any hints, the crate's `item` edge lists every supported item of the index that
belongs to the same crate as the root module.

## Indexed lookups

`rustdocquery.optimizations` resolves the `Crate.item`, `ImplOwner.impl`,
`ImplOwner.inherent_impl` and `Impl.method` edges from the crate's indexes when the query pins
the values it is looking for. That knowledge is passed as a `ResolveEdgeInfo`: `edges` maps
the names of edges taken from the destination vertex to their own `ResolveEdgeInfo`, and
`properties` maps property names to the values they must have, either as a sequence of
candidate values or as a callable that takes a context and returns such a sequence (or
`None` when that context sets no constraint).

```python
from rustdocquery.optimizations import ResolveEdgeInfo

info = ResolveEdgeInfo(
    edges={"importable_path": ResolveEdgeInfo(properties={"path": [("demo", "Thing")]})}
)
adapter.resolve_neighbors([crate_vertex], "Crate", "item", resolve_info=info)
```

With this, the items are looked up in the crate's `imports_index` rather than found by a scan.
A known method name likewise takes impls and methods from `impl_index`.
`find_impl_owner_id(impl_)` gives the id of the type an impl block is for, looking through
references and raw pointers.

## Modules

- `rustdocquery.attributes`: `Attribute`, `AttributeMetaItem`, `parse_attribute`,
  `parse_meta_item`, `is_doc_hidden`
- `rustdocquery.vertex`: `Origin`, `VertexKind`, `Vertex`, `item_kind`, `supported_item_kind`
- `rustdocquery.properties`: the property resolvers, one per vertex type
- `rustdocquery.optimizations`: `ResolveEdgeInfo` and the indexed lookups
- `rustdocquery.edges`: the edge resolvers, one per vertex type
- `rustdocquery.adapter`: `RustdocAdapter`

## What it does not do

- It does not read rustdoc JSON files or check their format version. You parse the JSON
  yourself, for example with `json.load`.
- It does not build the indexed crate: the `impl_index`, `imports_index`, the list of
  importable names and the inlined builtin traits must be supplied by the caller.
- It has no query language, schema or query engine. It answers the individual resolution
  requests that such an engine would make, and it has no command-line tool.