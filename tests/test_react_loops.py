import pytest

from react import Engine, Element, fragment, MalformedLoop, NotIterable


@pytest.fixture
def engine():
    return Engine()


def results(node):
    return node.element_children[1]


def contents(node):
    return [child.inner_html for child in results(node).element_children]


FOR_LOOP = '<div react="for which item"><div react="contain item">stuff</div><div id="container"></div></div>'
WITHIN_EACH = '<div react="withinEach"><div react="contain foo"></div><span></span></div>'


def test_works_with_a_missing_key_alias(engine):
    node = fragment('<div react="for item"><div react="contain item"></div><div></div></div>')
    engine.render(node, ["x", "y"])
    assert contents(node) == ["x", "y"]


def test_requires_a_template_and_a_results_container(engine):
    node = fragment('<div react="for item"><span class="exampleTemplate"></span></div>')
    with pytest.raises(MalformedLoop) as e:
        engine.render(node, [])
    assert e.value.node is node


def test_template_node_is_hidden_after_render(engine):
    node = fragment(FOR_LOOP)
    template = node.element_children[0]
    engine.render(node, ["a", "b", "c"])
    assert template.style["display"] == "none"
    assert all("display" not in child.style for child in results(node).element_children)


def test_instances_restore_the_templates_own_display(engine):
    node = fragment('<div react="for item"><p style="display: flex" react="contain item"></p><div></div></div>')
    engine.render(node, ["a"])
    assert results(node).element_children[0].style["display"] == "flex"


def test_can_loop_across_values_in_an_array(engine):
    node = fragment(FOR_LOOP)
    engine.render(node, ["a", "b", "c"])
    assert contents(node) == ["a", "b", "c"]


def test_can_loop_across_keys_in_an_array(engine):
    node = fragment('<div react="for which item"><div react="contain which"></div><div></div></div>')
    engine.render(node, ["a", "b", "c"])
    assert contents(node) == ["0", "1", "2"]


def test_does_not_operate_on_loop_item_template(engine):
    node = fragment(FOR_LOOP)
    engine.render(node, ["a", "b", "c"])
    assert node.element_children[0].inner_html == "stuff"
    engine.render(node, ["d"])
    assert node.element_children[0].inner_html == "stuff"


def test_does_not_operate_on_template_descendants(engine):
    node = fragment('<div react="for which item"><div><div id="descendant" react="contain item">stuff</div></div>'
                    '<div></div></div>')
    engine.render(node, ["a", "b", "c"])
    assert node.element_children[0].find(id="descendant").inner_html == "stuff"


def test_template_without_directives_is_still_skipped(engine):
    node = fragment('<div react="for val"><li><a class="link" react="attr \'href\' val"></a></li><ul></ul></div>')
    engine.render(node, ["foo"])
    assert node.element_children[0].find(class_name="link").get("href") is None
    assert results(node).find(class_name="link").get("href") == "foo"


def test_functions_bound_at_loop_time_get_the_collection(engine):
    node = fragment('<div react="for which item"><div react="contain item"></div><div></div></div>')
    engine.render(node, ["a", lambda this: this[2], "b"])
    assert contents(node) == ["a", "b", "b"]


def test_results_are_put_in_second_node(engine):
    node = fragment('<div react="for which item"><div react="contain item"></div>'
                    '<div id="intended_destination"></div><div id="decoy"></div></div>')
    engine.render(node, ["a"])
    assert node.find(id="intended_destination").element_children[0].inner_html == "a"
    assert node.find(id="decoy").element_children == []


def test_original_nodes_are_preserved_on_rerender(engine):
    node = fragment('<div react="for which item"><div react="contain item"></div><span></span></div>')
    engine.render(node, ["a", "b", "c"])
    original = results(node).element_children
    engine.render(node, ["d", "e", "f"])
    updated = results(node).element_children
    assert all(o is u for o, u in zip(original, updated))
    assert contents(node) == ["d", "e", "f"]


def test_different_sized_arrays_grow_and_shrink_the_results(engine):
    node = fragment(WITHIN_EACH)
    engine.render(node, [{"foo": "a"}, {"foo": "b"}, {"foo": "c"}])
    assert len(results(node).element_children) == 3
    engine.render(node, [{"foo": "a"}, {"foo": "b"}])
    assert len(results(node).element_children) == 2
    engine.render(node, [{"foo": "a"}, {"foo": "b"}, {"foo": "c"}, {"foo": "d"}])
    assert len(results(node).element_children) == 4


def test_within_each_implies_within_on_items(engine):
    node = fragment(WITHIN_EACH)
    engine.render(node, [{"foo": "a"}, {"foo": "b"}, {"foo": "c"}])
    assert contents(node) == ["a", "b", "c"]


def test_nested_within_eachs(engine):
    node = fragment('<div react="withinEach"><div react="withinEach"><div react="contain foo"></div>'
                    '<span></span></div><span></span></div>')
    engine.render(node, [[{"foo": "a"}]])
    inner_loop = results(node).element_children[0]
    assert results(inner_loop).element_children[0].inner_html == "a"


def test_loop_inside_within(engine):
    node = fragment('<div react="within items, for item"><b react="contain item"></b><i></i></div>')
    engine.render(node, {"items": [1, 2]})
    assert contents(node) == ["1", "2"]


def test_loop_items_do_not_fall_through_when_undefined(engine):
    node = fragment('<div react="within items, for item"><b react="contain item"></b><i></i></div>')
    engine.render(node, {"items": [None, "x"], "item": "outer"})
    assert contents(node) == ["", "x"]


@pytest.mark.parametrize("scope", [{"a": 1}, "abc", 5, None])
def test_looping_over_non_collections_is_rejected(engine, scope):
    node = fragment(WITHIN_EACH)
    with pytest.raises(NotIterable) as e:
        engine.render(node, scope)
    assert e.value.node is node


def test_node_values_inserted_by_loops_are_kept(engine):
    insertion = Element("div", {"class": "insertion"})
    node = fragment('<div react="for item"><div react="contain item"></div><div></div></div>')
    engine.render(node, [insertion])
    assert node.find(class_name="insertion") is insertion
