from dataclasses import dataclass, field
from typing import Any

import pytest

from rustdocquery.adapter import RustdocAdapter
from rustdocquery.attributes import parse_attribute
from rustdocquery.optimizations import ResolveEdgeInfo
from rustdocquery.vertex import Origin, Vertex, VertexKind


@dataclass
class FakeCrate:
    inner: dict
    impl_index: dict = field(default_factory=dict)
    imports_index: dict = field(default_factory=dict)
    manually_inlined_builtin_traits: dict = field(default_factory=dict)
    importable: dict = field(default_factory=dict)

    def publicly_importable_names(self, item_id: Any) -> list:
        return self.importable.get(item_id, [])


def _item(item_id, name, inner, crate_id=0, attrs=(), deprecation=None):
    return {
        "id": item_id,
        "crate_id": crate_id,
        "name": name,
        "visibility": "public",
        "docs": None,
        "attrs": list(attrs),
        "deprecation": deprecation,
        "span": None,
        "inner": inner,
    }


def _make_crate():
    index = {
        "0": _item("0", "mycrate", {"module": {"items": ["1", "2", "5", "6"], "is_stripped": False}}),
        "1": _item(
            "1",
            "Foo",
            {
                "struct": {
                    "kind": {"plain": {"fields": ["3"], "fields_stripped": False}},
                    "impls": ["4"],
                }
            },
            attrs=["#[doc(hidden)]"],
        ),
        "3": _item("3", "x", {"struct_field": {"primitive": "u32"}}),
        "4": _item(
            "4",
            None,
            {
                "impl": {
                    "trait": None,
                    "items": ["8"],
                    "for": {"resolved_path": {"id": "1", "name": "Foo"}},
                    "provided_trait_methods": [],
                    "is_unsafe": False,
                    "negative": False,
                    "synthetic": False,
                }
            },
        ),
        "8": _item(
            "8",
            "new",
            {
                "function": {
                    "header": {"const": True, "unsafe": False, "async": False, "abi": "Rust"},
                    "decl": {"inputs": [["a", {"primitive": "u32"}], ["b", {"primitive": "bool"}]]},
                }
            },
        ),
        "2": _item("2", "E", {"enum": {"variants": ["7"], "variants_stripped": False, "impls": []}}),
        "7": _item("7", "A", {"variant": {"kind": "plain"}}),
        "5": _item("5", "C", {"constant": {"expr": "1", "value": "1u32", "is_literal": True}}),
        "6": _item("6", "S", {"static": {"mutable": True}}),
        "99": _item("99", "Foreign", {"struct": {"kind": "unit", "impls": []}}, crate_id=1),
    }
    return FakeCrate(
        inner={
            "root": "0",
            "index": index,
            "paths": {},
            "crate_version": None,
            "includes_private": False,
            "format_version": 1,
        }
    )


@pytest.fixture
def crate():
    return _make_crate()


@pytest.fixture
def adapter(crate):
    return RustdocAdapter(crate)


def _vertex(crate, item_id):
    return Origin.CURRENT_CRATE.make_item_vertex(crate.inner["index"][item_id])


def _values(outcomes):
    return [value for _ctx, value in outcomes]


def _names(outcomes):
    return [[v.value["name"] for v in neighbors] for _ctx, neighbors in outcomes]


def test_starting_vertex_crate(adapter, crate):
    (vertex,) = list(adapter.resolve_starting_vertices("Crate"))
    assert vertex.origin is Origin.CURRENT_CRATE
    assert vertex.as_indexed_crate() is crate
    assert vertex.typename() == "Crate"


def test_starting_vertex_crate_diff_needs_previous(adapter):
    with pytest.raises(ValueError):
        adapter.resolve_starting_vertices("CrateDiff")


def test_starting_vertex_crate_diff(crate):
    baseline = _make_crate()
    adapter = RustdocAdapter(crate, baseline)
    (vertex,) = list(adapter.resolve_starting_vertices("CrateDiff"))
    assert vertex.kind is VertexKind.CRATE_DIFF
    assert vertex.as_crate_diff() == (crate, baseline)


def test_unknown_starting_vertex(adapter):
    with pytest.raises(ValueError):
        adapter.resolve_starting_vertices("Nothing")


def test_typename_property(adapter, crate):
    ctxs = [_vertex(crate, "1"), None, _vertex(crate, "7")]
    values = _values(adapter.resolve_property(ctxs, "Item", "__typename"))
    assert values == ["Struct", None, "PlainVariant"]


def test_inherited_item_properties_on_subtypes(adapter, crate):
    struct = _vertex(crate, "1")
    assert _values(adapter.resolve_property([struct], "Struct", "name")) == ["Foo"]
    assert _values(adapter.resolve_property([struct], "ImplOwner", "doc_hidden")) == [True]
    module = _vertex(crate, "0")
    assert _values(adapter.resolve_property([module], "Module", "visibility_limit")) == ["public"]


def test_type_specific_properties(adapter, crate):
    assert _values(adapter.resolve_property([_vertex(crate, "0")], "Module", "is_stripped")) == [False]
    assert _values(adapter.resolve_property([_vertex(crate, "1")], "Struct", "struct_type")) == ["plain"]
    assert _values(adapter.resolve_property([_vertex(crate, "5")], "Constant", "value")) == ["1u32"]
    assert _values(adapter.resolve_property([_vertex(crate, "6")], "Static", "mutable")) == [True]


def test_function_like_properties(adapter, crate):
    function = _vertex(crate, "8")
    assert _values(adapter.resolve_property([function], "Method", "const")) == [True]
    assert _values(adapter.resolve_property([function], "FunctionLike", "unsafe")) == [False]


def test_raw_type_name(adapter):
    raw = Origin.CURRENT_CRATE.make_raw_type_vertex({"primitive": "u32"})
    assert _values(adapter.resolve_property([raw], "RawType", "name")) == ["u32"]


def test_attribute_property(adapter):
    attr = Origin.CURRENT_CRATE.make_attribute_vertex(parse_attribute("#![no_std]"))
    assert _values(adapter.resolve_property([attr], "Attribute", "raw_attribute")) == ["#![no_std]"]


def test_unknown_property_type(adapter, crate):
    with pytest.raises(ValueError):
        adapter.resolve_property([_vertex(crate, "1")], "Nothing", "name")
    with pytest.raises(ValueError):
        adapter.resolve_property([_vertex(crate, "1")], "RawType", "id")


def test_crate_items_exclude_foreign(adapter, crate):
    (start,) = list(adapter.resolve_starting_vertices("Crate"))
    (names,) = _names(adapter.resolve_neighbors([start], "Crate", "item"))
    expected = {i["name"] for i in crate.inner["index"].values() if i["crate_id"] == 0}
    assert set(names) == expected
    assert "Foreign" not in names


def test_root_module_edge(adapter):
    (start,) = list(adapter.resolve_starting_vertices("Crate"))
    assert _names(adapter.resolve_neighbors([start], "Crate", "root_module")) == [["mycrate"]]


def test_module_items(adapter, crate):
    assert _names(adapter.resolve_neighbors([_vertex(crate, "0")], "Module", "item")) == [
        ["Foo", "E", "C", "S"]
    ]


def test_struct_field_and_impl_edges(adapter, crate):
    struct = _vertex(crate, "1")
    assert _names(adapter.resolve_neighbors([struct], "Struct", "field")) == [["x"]]
    (impls,) = [list(n) for _c, n in adapter.resolve_neighbors([struct], "Struct", "inherent_impl")]
    assert [v.value["id"] for v in impls] == ["4"]
    assert _names(adapter.resolve_neighbors(impls, "Impl", "method")) == [["new"]]


def test_enum_variant_edge(adapter, crate):
    ((_ctx, neighbors),) = list(adapter.resolve_neighbors([_vertex(crate, "2")], "Enum", "variant"))
    assert [v.typename() for v in neighbors] == ["PlainVariant"]


def test_function_parameter_edge(adapter, crate):
    ((_ctx, neighbors),) = list(
        adapter.resolve_neighbors([_vertex(crate, "8")], "Function", "parameter")
    )
    assert [v.as_function_parameter() for v in neighbors] == ["a", "b"]


def test_attribute_edge_on_item(adapter, crate):
    ((_ctx, neighbors),) = list(
        adapter.resolve_neighbors([_vertex(crate, "1")], "Struct", "attribute")
    )
    assert [v.as_attribute().raw_attribute() for v in neighbors] == ["#[doc(hidden)]"]


def test_none_context_has_no_neighbors(adapter):
    ((ctx, neighbors),) = list(adapter.resolve_neighbors([None], "Module", "item"))
    assert ctx is None
    assert list(neighbors) == []


def test_unknown_edge_type(adapter, crate):
    with pytest.raises(ValueError):
        adapter.resolve_neighbors([_vertex(crate, "1")], "Nothing", "item")


def test_coercion(adapter, crate):
    ctxs = [_vertex(crate, "1"), _vertex(crate, "5"), _vertex(crate, "7"), None]
    assert _values(adapter.resolve_coercion(ctxs, "Item", "ImplOwner")) == [True, False, False, False]
    assert _values(adapter.resolve_coercion(ctxs, "Item", "GlobalValue")) == [False, True, False, False]
    assert _values(adapter.resolve_coercion(ctxs, "Item", "Variant")) == [False, False, True, False]
    assert _values(adapter.resolve_coercion(ctxs, "Item", "Struct")) == [True, False, False, False]


def test_coercion_from_unknown_type(adapter, crate):
    with pytest.raises(ValueError):
        adapter.resolve_coercion([_vertex(crate, "1")], "Struct", "Item")