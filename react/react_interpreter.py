"""
The react interpreter: the directive Evaluator and the render walker.
"""
import os
import sys
import weakref
from typing import Any, List, Optional

from react.react_datatypes import (
    Directive, Ref, Literal, Negation, BindingSite,
    UnknownDirective, UnresolvableReference,
)
from react.react_loops import ListReconciler
from react.react_scope import (
    ScopeChain, ScopeLink, LoopLink, IndexOrigin, is_truthy,
)

# Directives whose re-evaluation must carry on through the rest of the node.
SCOPE_SHIFTING = frozenset({'if', 'within', 'anchored', 'for', 'withinEach'})

# name -> (min args, max args)
ARITY = {
    'contain': (1, 1),
    'attr': (2, 2),
    'attrIf': (3, 3),
    'showIf': (1, 1),
    'visIf': (1, 1),
    'classIf': (2, 2),
    'if': (1, 2),
    'within': (1, 1),
    'anchored': (1, 1),
    'for': (1, 2),
    'withinEach': (0, 0),
}


class Step:
    """What a directive did to the walk: a new chain/anchor, and whether to go on."""
    def __init__(self, chain: Optional[ScopeChain] = None, anchor: Any = None,
                 proceed: bool = True, descend: bool = True):
        self.chain = chain
        self.anchor = anchor
        self.proceed = proceed
        self.descend = descend


STOP = Step(proceed=False, descend=False)
NO_DESCENT = Step(descend=False)


class Evaluator:
    """Executes directives against scope chains and walks node subtrees."""

    def __init__(self, engine):
        self.engine = engine
        self.adapter = engine.adapter
        self.registry = engine.registry
        self.printer = engine.printer
        self.loops = ListReconciler(self)
        # node -> {state key -> value} for attributes/classes/display this engine manages
        self._node_state = weakref.WeakKeyDictionary()
        self._handlers = self._create_handlers()

    def _create_handlers(self):
        return {
            'contain': self._contain,
            'attr': self._attr,
            'attrIf': self._attr_if,
            'showIf': self._show_if,
            'visIf': self._vis_if,
            'classIf': self._class_if,
            'if': self._if,
            'within': self._within,
            'anchored': self._anchored,
            'for': self._for,
            'withinEach': self._within_each,
        }

    def _dbg(self, *parts):
        if os.environ.get("REACT_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    # =================================================================
    # Walker
    # =================================================================

    def directives_for(self, node) -> List[Directive]:
        source = self.adapter.get_attribute(node, self.engine.attribute)
        if not source:
            return []
        return self.engine.parser.parse(source)

    def render_tree(self, node, chain: ScopeChain, anchor=None, root: bool = False):
        """Render `node` and its descendants, depth-first in document order."""
        if self.loops.is_template(node):
            return
        if not root:
            anchored = self.registry.anchored_scopes(node)
            if anchored:
                chain = ScopeChain(chain.links)
                for scope in reversed(anchored):
                    chain = chain.push(ScopeLink(scope))
                anchor = node
        self.run_directives(node, self.directives_for(node), 0, chain, anchor)

    def render_children(self, node, chain: ScopeChain, anchor):
        for child in list(self.adapter.element_children(node)):
            self.render_tree(child, chain, anchor)

    def run_directives(self, node, directives: List[Directive], start: int, chain: ScopeChain, anchor):
        descend = True
        for index in range(start, len(directives)):
            step = self.evaluate(node, index, directives[index], chain, anchor)
            if step is None:
                continue
            if step.chain is not None:
                chain = step.chain
            if step.anchor is not None:
                anchor = step.anchor
            if not step.descend:
                descend = False
            if not step.proceed:
                return
        if descend:
            self.render_children(node, chain, anchor)

    def rerun(self, site: BindingSite):
        """Re-evaluate one binding site with its stored chain."""
        node = site.node
        directives = self.directives_for(node)
        if site.index >= len(directives) or directives[site.index] is not site.directive:
            self._dbg("RERUN skipped, directives changed", site)
            self.registry.forget_node(node)
            return
        self._dbg("RERUN", site)
        if site.directive.name in SCOPE_SHIFTING:
            self.run_directives(node, directives, site.index, site.chain, site.anchor)
        else:
            self.evaluate(node, site.index, site.directive, site.chain, site.anchor)

    # =================================================================
    # Directive evaluation
    # =================================================================

    def evaluate(self, node, index: int, directive: Directive, chain: ScopeChain, anchor) -> Optional[Step]:
        handler = self._handlers.get(directive.name)
        if handler is None:
            raise UnknownDirective(directive.name, node)
        lo, hi = ARITY[directive.name]
        argc = len(directive.args)
        if not lo <= argc <= hi:
            expected = str(lo) if lo == hi else f"{lo} or {hi}"
            raise TypeError(f"{directive.name} expects {expected} arguments, got {argc}")

        reads = [] if anchor is not None else None
        on_read = (lambda obj, key: reads.append((obj, key))) if reads is not None else None

        def read(arg):
            if isinstance(arg, Literal):
                return arg.value
            if isinstance(arg, Negation):
                return not is_truthy(read(arg.inner))
            value = chain.resolve(arg.segments, on_read)
            if value is None and self.engine.strict:
                raise UnresolvableReference(arg.text, node)
            return value

        self._dbg("EVAL", directive, "chain", len(chain))
        step = handler(node, index, directive, chain, anchor, read, reads)
        if reads is not None:
            self._dbg("BIND", directive.name, "reads", len(reads))
            self.registry.register(BindingSite(node, index, directive, chain, anchor), reads)
        return step

    def _state(self, node) -> dict:
        state = self._node_state.get(node)
        if state is None:
            state = self._node_state[node] = {}
        return state

    def _contain(self, node, index, directive, chain, anchor, read, reads):
        value = read(directive.args[0])
        if self.adapter.is_node(value):
            self.adapter.set_content(node, value)
            self.render_tree(value, chain, anchor)
        else:
            self.adapter.set_content(node, self.printer.pformat(value))
        # The node's only children are now the ones placed here.
        return NO_DESCENT

    def _set_managed_attribute(self, node, index, name, value):
        state = self._state(node)
        previous = state.get(('attr', index))
        if previous is not None and previous != name:
            self.adapter.remove_attribute(node, previous)
        if name is None:
            state.pop(('attr', index), None)
            return
        self.adapter.set_attribute(node, name, self.printer.pformat(value))
        state[('attr', index)] = name

    def _attr(self, node, index, directive, chain, anchor, read, reads):
        name = self.printer.pformat(read(directive.args[0]))
        self._set_managed_attribute(node, index, name, read(directive.args[1]))

    def _attr_if(self, node, index, directive, chain, anchor, read, reads):
        cond = is_truthy(read(directive.args[0]))
        name = self.printer.pformat(read(directive.args[1]))
        if cond:
            self._set_managed_attribute(node, index, name, read(directive.args[2]))
        else:
            self._set_managed_attribute(node, index, None, None)
            self.adapter.remove_attribute(node, name)

    def _show_if(self, node, index, directive, chain, anchor, read, reads):
        state = self._state(node)
        if is_truthy(read(directive.args[0])):
            if 'display' in state:
                self.adapter.set_style(node, 'display', state.pop('display'))
        else:
            if 'display' not in state:
                state['display'] = self.adapter.get_style(node, 'display')
            self.adapter.set_style(node, 'display', 'none')

    def _vis_if(self, node, index, directive, chain, anchor, read, reads):
        visible = is_truthy(read(directive.args[0]))
        self.adapter.set_style(node, 'visibility', 'visible' if visible else 'hidden')

    def _class_if(self, node, index, directive, chain, anchor, read, reads):
        state = self._state(node)
        cond = is_truthy(read(directive.args[0]))
        name = self.printer.pformat(read(directive.args[1]))
        previous = state.pop(('class', index), None)
        if previous is not None and previous != name:
            self.adapter.remove_class(node, previous)
        if cond and name:
            self.adapter.add_class(node, name)
            state[('class', index)] = name
        elif name:
            self.adapter.remove_class(node, name)

    def _if(self, node, index, directive, chain, anchor, read, reads):
        if not is_truthy(read(directive.args[0])):
            # Bindings behind a closed gate stay silent until it reopens.
            self.registry.forget_node(node, after=index)
            for child in self.adapter.element_children(node):
                self.registry.forget_subtree(child, self.adapter)
            return STOP
        return None

    def _within(self, node, index, directive, chain, anchor, read, reads):
        ref = directive.args[0]
        if not isinstance(ref, Ref):
            raise TypeError("within expects a key, not a literal")
        return Step(chain=chain.within(read(ref), ref))

    def _anchored(self, node, index, directive, chain, anchor, read, reads):
        arg = directive.args[0]
        if isinstance(arg, Ref):
            key = arg.text
            obj = chain.resolve(arg.segments)
        else:
            key = str(arg.value)
            obj = None
        if obj is None:
            obj = self.engine.names.lookup(key)
        if obj is None and self.engine.strict:
            raise UnresolvableReference(key, node)
        return Step(chain=chain.push(ScopeLink(obj)), anchor=node)

    def _loop_source(self, chain, reads):
        collection = chain.head_value
        if reads is not None and collection is not None:
            reads.append((collection, None))
        return collection

    def _for(self, node, index, directive, chain, anchor, read, reads):
        names = directive.args
        for arg in names:
            if not isinstance(arg, Ref):
                raise TypeError("for expects bare names: for [alias] item")
        alias = names[0].text if len(names) == 2 else None
        item_name = names[-1].text
        collection = self._loop_source(chain, reads)
        self.loops.reconcile(
            node, collection, chain, anchor,
            lambda coll, i: LoopLink(coll, i, alias, item_name),
        )
        return NO_DESCENT

    def _within_each(self, node, index, directive, chain, anchor, read, reads):
        collection = self._loop_source(chain, reads)
        self.loops.reconcile(
            node, collection, chain, anchor,
            lambda coll, i: ScopeLink(coll[i], IndexOrigin(coll, i)),
        )
        return NO_DESCENT
