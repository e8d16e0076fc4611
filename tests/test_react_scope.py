import math

import pytest

from react.react_datatypes import Ref
from react.react_scope import (
    ScopeChain, ScopeLink, LoopLink, IndexOrigin, PathOrigin,
    read_property, invoke, is_truthy, normalize_key,
)


def chain(*scopes):
    return ScopeChain.from_scopes(scopes)

# --- property reads ---

def test_read_property_mapping_sequence_and_object():
    class Obj:
        def __init__(self):
            self.x = 1
            self._hidden = 2

    assert read_property({"a": 1}, "a") == (True, 1)
    assert read_property({"a": 1}, "b") == (False, None)
    assert read_property(["a", "b"], "1") == (True, "b")
    assert read_property(["a", "b"], 5) == (False, None)
    assert read_property(["a", "b"], "length") == (False, None)
    assert read_property(Obj(), "x") == (True, 1)
    assert read_property(Obj(), "_hidden") == (False, None)
    assert read_property(None, "x") == (False, None)


def test_none_values_count_as_undefined():
    assert read_property({"a": None}, "a") == (False, None)


def test_normalize_key_only_converts_for_sequences():
    assert normalize_key([1, 2], "1") == 1
    assert normalize_key([1, 2], "x") == "x"
    assert normalize_key({"1": 2}, "1") == "1"


TRUTHY_CASES = [
    ("none", None, False),
    ("false", False, False),
    ("empty_str", "", False),
    ("zero", 0, False),
    ("zero_float", 0.0, False),
    ("nan", math.nan, False),
    ("true", True, True),
    ("str", "x", True),
    ("one", 1, True),
    ("empty_list", [], True),
    ("empty_dict", {}, True),
]


@pytest.mark.parametrize("test_id, value, expected", TRUTHY_CASES, ids=[t[0] for t in TRUTHY_CASES])
def test_is_truthy(test_id, value, expected):
    assert is_truthy(value) is expected

# --- invocation ---

def test_invoke_zero_arg_and_owner_arg_callables():
    owner = {"bar": "right"}
    assert invoke(lambda: "plain", owner) == "plain"
    assert invoke(lambda this: this["bar"], owner) == "right"
    assert invoke("not callable", owner) == "not callable"


def test_callables_needing_several_arguments_are_not_called():
    def combine(a, b):
        return a + b

    assert invoke(combine, {}) is combine
    assert chain({"combine": combine}).resolve("combine") is combine
    assert chain({"combine": combine}).resolve("combine.missing") is None


def test_invoke_never_instantiates_classes():
    class Thing:
        pass
    assert invoke(Thing, {}) is Thing

# --- resolution ---

def test_resolve_simple_and_dotted():
    c = chain({"key": {"subkey": "content"}})
    assert c.resolve("key.subkey") == "content"
    assert c.resolve(["key", "subkey"]) == "content"


def test_resolve_falls_through_links_nearest_first():
    c = chain({"a": 1}, {"a": 2, "b": 3})
    assert c.resolve("a") == 1
    assert c.resolve("b") == 3
    assert c.resolve("missing") is None


def test_dotted_paths_do_not_fall_back_to_outer_links():
    c = chain({"a": {}, "b": "outer"})
    assert c.resolve("a.b") is None


def test_undefined_local_value_falls_through():
    c = chain({"key": None}, {"key": "content"})
    assert c.resolve("key") == "content"


def test_callables_are_invoked_with_their_owner():
    scope = {"bar": "right", "foo": lambda this: this["bar"]}
    assert chain(scope).resolve("foo") == "right"


def test_namespaced_callables_are_not_run():
    ran = []

    def foo():
        ran.append(True)
        return "wrong"
    foo.bar = lambda: "right"

    assert chain({"foo": foo}).resolve("foo.bar") == "right"
    assert ran == []


def test_callables_midpath_are_invoked():
    assert chain({"make": lambda: {"x": 1}}).resolve("make.x") == 1


def test_resolve_reports_reads():
    inner = {"value": 2}
    outer = {"one": inner}
    reads = []
    chain(outer).resolve("one.value", lambda o, k: reads.append((o, k)))
    assert reads == [(outer, "one"), (inner, "value")]


def test_resolve_reports_miss_against_nearest_scope():
    near, far = {}, {}
    reads = []
    chain(near, far).resolve("nothing", lambda o, k: reads.append((o, k)))
    assert reads == [(near, "nothing")]


def test_resolve_on_empty_chain():
    assert ScopeChain().resolve("x") is None
    assert ScopeChain().head_value is None

# --- links ---

def test_loop_link_binds_item_and_alias():
    items = ["a", "b"]
    c = chain({"item": "outer", "which": "outer"}).push(LoopLink(items, 1, "which", "item"))
    assert c.resolve("item") == "b"
    assert c.resolve("which") == 1
    assert c.head_value == "b"


def test_loop_item_does_not_fall_through_when_undefined():
    c = chain({"item": "outer"}).push(LoopLink([None], 0, None, "item"))
    assert c.resolve("item") is None


def test_loop_item_reads_register_collection_index():
    items = ["a"]
    reads = []
    chain().push(LoopLink(items, 0, "which", "item")).resolve("item", lambda o, k: reads.append((o, k)))
    assert reads == [(items, 0)]


def test_loop_item_functions_get_collection_as_owner():
    items = ["a", lambda this: this[2], "b"]
    c = ScopeChain().push(LoopLink(items, 1, None, "item"))
    assert c.resolve("item") == "b"


def test_within_chain_validity_follows_object_identity():
    foo = {"bar": 1}
    root = {"foo": foo}
    c = chain(root).within(foo, Ref("foo"))
    assert c.resolve("bar") == 1
    assert c.is_current()
    root["foo"] = {"bar": "other"}
    assert not c.is_current()
    root["foo"] = foo
    assert c.is_current()


def test_index_origin_validity():
    items = [{"a": 1}, {"a": 2}]
    link = ScopeLink(items[1], IndexOrigin(items, 1))
    c = ScopeChain([link])
    assert c.is_current()
    items.pop()
    assert not c.is_current()


def test_loop_link_validity_tracks_length():
    items = ["a", "b"]
    c = ScopeChain().push(LoopLink(items, 1, None, "item"))
    assert c.is_current()
    items.pop()
    assert not c.is_current()


def test_push_does_not_mutate_original_chain():
    base = chain({"a": 1})
    pushed = base.push(ScopeLink({"a": 2}))
    assert base.resolve("a") == 1
    assert pushed.resolve("a") == 2
    assert len(base) == 1 and len(pushed) == 2


def test_path_origin_records_ref():
    ref = Ref("a.b")
    assert PathOrigin(ref).ref.segments == ["a", "b"]
