from types import SimpleNamespace

import pytest

from rustdocquery.optimizations import (
    ResolveEdgeInfo,
    find_impl_owner_id,
    resolve_crate_items,
    resolve_impl_methods,
    resolve_owner_impl,
)
from rustdocquery.vertex import Origin, Vertex


def _item(item_id, name, inner, crate_id=0):
    return {"id": item_id, "crate_id": crate_id, "name": name, "inner": inner, "attrs": []}


def _fn(item_id, name):
    return _item(item_id, name, {"function": {"header": {}}})


FOO_PATH = {"resolved_path": {"name": "Foo", "id": "1"}}


def _make_crate():
    items = [
        _item("0", "demo", {"module": {"items": ["1", "5"], "is_stripped": False}}),
        _item("1", "Foo", {"struct": {"kind": "unit", "impls": ["2", "3"]}}),
        _item(
            "2",
            None,
            {
                "impl": {
                    "trait": None,
                    "for": FOO_PATH,
                    "items": ["4"],
                    "provided_trait_methods": [],
                }
            },
        ),
        _item(
            "3",
            None,
            {
                "impl": {
                    "trait": {"name": "Show", "id": "6"},
                    "for": {
                        "borrowed_ref": {"lifetime": None, "mutable": False, "type": FOO_PATH}
                    },
                    "items": ["7"],
                    "provided_trait_methods": ["describe"],
                }
            },
        ),
        _fn("4", "new"),
        _item("5", None, {"use": {"source": "x"}}),
        _item("6", "Show", {"trait": {"items": ["8", "9"], "is_unsafe": False}}),
        _fn("7", "show"),
        _fn("8", "describe"),
        _fn("9", "show"),
        _item("10", "Foreign", {"struct": {"kind": "unit", "impls": []}}, crate_id=1),
    ]
    index = {item["id"]: item for item in items}
    impl_index = {
        ("1", "new"): [(index["2"], index["4"])],
        ("1", "show"): [(index["3"], index["7"])],
        ("1", "describe"): [(index["3"], index["8"])],
    }
    imports_index = {
        ("demo", "Foo"): [(index["1"], None)],
        ("demo", "Show"): [(index["6"], None)],
    }
    return SimpleNamespace(
        inner={"root": "0", "index": index},
        impl_index=impl_index,
        imports_index=imports_index,
    )


@pytest.fixture
def crate():
    return _make_crate()


@pytest.fixture
def adapter(crate):
    return SimpleNamespace(current_crate=crate, previous_crate=None)


def _ids(outcomes):
    return [[v.as_item()["id"] for v in neighbors] for _, neighbors in outcomes]


def _crate_vertex(crate):
    return Vertex.new_crate(Origin.CURRENT_CRATE, crate)


def _item_vertex(crate, item_id, origin=Origin.CURRENT_CRATE):
    return origin.make_item_vertex(crate.inner["index"][item_id])


def _path_info(requirement):
    return ResolveEdgeInfo(
        edges={"importable_path": ResolveEdgeInfo(properties={"path": requirement})}
    )


# ResolveEdgeInfo


def test_edge_info_lookups():
    inner = ResolveEdgeInfo(properties={"name": ["eq"]})
    info = ResolveEdgeInfo(edges={"method": inner})
    assert info.first_edge("method") is inner
    assert info.first_edge("field") is None
    assert inner.required_property("name") == ["eq"]
    assert inner.required_property("other") is None


# find_impl_owner_id


def test_owner_id_of_resolved_path():
    assert find_impl_owner_id({"for": FOO_PATH}) == "1"


def test_owner_id_through_references_and_pointers():
    ty = {"raw_pointer": {"mutable": True, "type": {"borrowed_ref": {"type": FOO_PATH}}}}
    assert find_impl_owner_id({"for": ty}) == "1"


def test_owner_id_of_other_type_is_none():
    assert find_impl_owner_id({"for": {"primitive": "str"}}) is None


# Crate items


def test_crate_items_slow_path_keeps_own_supported_items(crate, adapter):
    outcomes = list(resolve_crate_items(adapter, [_crate_vertex(crate)], ResolveEdgeInfo()))
    assert len(outcomes) == 1
    ids = _ids(outcomes)[0]
    assert sorted(ids) == sorted(["0", "1", "2", "3", "4", "6", "7", "8", "9"])
    assert "5" not in ids and "10" not in ids


def test_crate_items_by_static_path(crate, adapter):
    info = _path_info([["demo", "Foo"]])
    assert _ids(resolve_crate_items(adapter, [_crate_vertex(crate)], info)) == [["1"]]


def test_crate_items_by_multiple_paths(crate, adapter):
    info = _path_info([["demo", "Foo"], ["demo", "Show"], ["demo", "Missing"]])
    assert _ids(resolve_crate_items(adapter, [_crate_vertex(crate)], info)) == [["1", "6"]]


def test_crate_items_impossible_path(crate, adapter):
    info = _path_info([])
    assert _ids(resolve_crate_items(adapter, [_crate_vertex(crate)], info)) == [[]]


def test_crate_items_by_dynamic_path(crate, adapter):
    ctx = SimpleNamespace(active_vertex=_crate_vertex(crate), wanted=("demo", "Show"))
    info = _path_info(lambda c: [list(c.wanted)])
    outcomes = list(resolve_crate_items(adapter, [ctx], info))
    assert outcomes[0][0] is ctx
    assert [v.as_item()["id"] for v in outcomes[0][1]] == ["6"]


def test_crate_items_dynamic_without_constraint_uses_slow_path(crate, adapter):
    info = _path_info(lambda ctx: None)
    ids = _ids(resolve_crate_items(adapter, [_crate_vertex(crate)], info))[0]
    assert "1" in ids and "10" not in ids


def test_crate_items_context_without_vertex(adapter):
    assert _ids(resolve_crate_items(adapter, [None], ResolveEdgeInfo())) == [[]]


# Owner impls


def test_owner_impl_slow_path(crate, adapter):
    vertex = _item_vertex(crate, "1")
    assert _ids(resolve_owner_impl(adapter, [vertex], "impl", ResolveEdgeInfo())) == [["2", "3"]]
    inherent = resolve_owner_impl(adapter, [vertex], "inherent_impl", ResolveEdgeInfo())
    assert _ids(inherent) == [["2"]]


def test_owner_impl_by_method_name(crate, adapter):
    vertex = _item_vertex(crate, "1")
    info = ResolveEdgeInfo(edges={"method": ResolveEdgeInfo(properties={"name": ["show"]})})
    assert _ids(resolve_owner_impl(adapter, [vertex], "impl", info)) == [["3"]]
    assert _ids(resolve_owner_impl(adapter, [vertex], "inherent_impl", info)) == [[]]


def test_owner_impl_unknown_edge(crate, adapter):
    with pytest.raises(ValueError):
        resolve_owner_impl(adapter, [_item_vertex(crate, "1")], "field", ResolveEdgeInfo())


def test_owner_impl_previous_crate_missing(crate, adapter):
    vertex = _item_vertex(crate, "1", Origin.PREVIOUS_CRATE)
    with pytest.raises(ValueError, match="no previous crate provided"):
        list(_ids(resolve_owner_impl(adapter, [vertex], "impl", ResolveEdgeInfo())))


def test_owner_impl_on_non_owner(crate, adapter):
    with pytest.raises(ValueError):
        _ids(resolve_owner_impl(adapter, [_item_vertex(crate, "4")], "impl", ResolveEdgeInfo()))


# Impl methods


def test_impl_methods_slow_path_includes_provided(crate, adapter):
    vertex = _item_vertex(crate, "3")
    assert _ids(resolve_impl_methods(adapter, [vertex], ResolveEdgeInfo())) == [["8", "7"]]


def test_impl_methods_inherent_slow_path(crate, adapter):
    vertex = _item_vertex(crate, "2")
    assert _ids(resolve_impl_methods(adapter, [vertex], ResolveEdgeInfo())) == [["4"]]


def test_impl_methods_by_name_match_slow_path(crate, adapter):
    vertex = _item_vertex(crate, "3")
    info = ResolveEdgeInfo(properties={"name": ["describe", "show", "new"]})
    fast = _ids(resolve_impl_methods(adapter, [vertex], info))[0]
    slow = _ids(resolve_impl_methods(adapter, [vertex], ResolveEdgeInfo()))[0]
    assert sorted(fast) == sorted(slow)


def test_impl_methods_by_name_filters_to_this_impl(crate, adapter):
    vertex = _item_vertex(crate, "2")
    info = ResolveEdgeInfo(properties={"name": ["show"]})
    assert _ids(resolve_impl_methods(adapter, [vertex], info)) == [[]]


def test_impl_methods_unknown_owner_falls_back(crate, adapter):
    impl_item = crate.inner["index"]["2"]
    impl_item["inner"]["impl"]["for"] = {"primitive": "u8"}
    info = ResolveEdgeInfo(properties={"name": ["nothing"]})
    vertex = _item_vertex(crate, "2")
    assert _ids(resolve_impl_methods(adapter, [vertex], info)) == [["4"]]


def test_impl_methods_non_string_name(crate, adapter):
    info = ResolveEdgeInfo(properties={"name": [42]})
    with pytest.raises(ValueError):
        _ids(resolve_impl_methods(adapter, [_item_vertex(crate, "3")], info))


def test_impl_methods_on_non_impl(crate, adapter):
    with pytest.raises(ValueError):
        _ids(resolve_impl_methods(adapter, [_item_vertex(crate, "1")], ResolveEdgeInfo()))