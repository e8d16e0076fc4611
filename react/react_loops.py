"""
List reconciliation for `for` and `withinEach` loops.

A loop node owns two element children: an inert item template, and a
results container whose children are the rendered instances. Instances are
reused by position; only the tail grows or shrinks.
"""
import weakref
from typing import Any, Callable, List

from react.react_datatypes import MalformedLoop, NotIterable
from react.react_scope import ScopeChain, is_collection


class LoopState:
    """Per loop node: the template, the results container and the live instances.

    Everything here is a child of the loop node and points back at it, so it
    is held weakly to let the loop node be collected.
    """
    def __init__(self, template, results, template_display):
        self._template = weakref.ref(template)
        self._results = weakref.ref(results)
        self.template_display = template_display
        self._instances: List[weakref.ref] = []

    @property
    def template(self):
        return self._template()

    @property
    def results(self):
        return self._results()

    @property
    def instances(self) -> List[Any]:
        return [ref() for ref in self._instances]

    def put(self, index: int, instance):
        ref = weakref.ref(instance)
        if index < len(self._instances):
            self._instances[index] = ref
        else:
            self._instances.append(ref)

    def truncate(self, length: int):
        del self._instances[length:]


class ListReconciler:
    def __init__(self, evaluator):
        self.evaluator = evaluator
        self.adapter = evaluator.adapter
        self._states = weakref.WeakKeyDictionary()
        self._templates = weakref.WeakSet()

    def is_template(self, node) -> bool:
        try:
            return node in self._templates
        except TypeError:
            return False

    def state_for(self, loop_node) -> LoopState:
        state = self._states.get(loop_node)
        if state is not None:
            return state
        children = self.adapter.element_children(loop_node)
        if len(children) < 2:
            raise MalformedLoop(
                "a loop node needs an item template child followed by a results container child",
                loop_node,
            )
        template, results = children[0], children[1]
        display = self.adapter.get_style(template, 'display')
        self.adapter.set_style(template, 'display', 'none')
        self._templates.add(template)
        self.adapter.clear(results)
        state = LoopState(template, results, display)
        self._states[loop_node] = state
        return state

    def _stamp(self, state: LoopState):
        instance = self.adapter.clone(state.template)
        self.adapter.set_style(instance, 'display', state.template_display)
        self.adapter.append_child(state.results, instance)
        return instance

    def reconcile(self, loop_node, collection, chain: ScopeChain, anchor,
                  make_link: Callable[[Any, int], Any]):
        if not is_collection(collection):
            raise NotIterable(collection, loop_node)
        state = self.state_for(loop_node)
        instances = state.instances
        length = len(collection)
        if length != len(instances):
            self.evaluator._dbg("LOOP", f"{len(instances)} -> {length} instances")

        for index in range(length):
            instance = instances[index] if index < len(instances) else None
            if instance is None:
                instance = self._stamp(state)
                state.put(index, instance)
            self.evaluator.render_tree(instance, chain.push(make_link(collection, index)), anchor)

        for instance in instances[length:]:
            if instance is not None:
                self.adapter.remove_child(state.results, instance)
                self.evaluator.registry.forget_subtree(instance, self.adapter)
        state.truncate(length)
