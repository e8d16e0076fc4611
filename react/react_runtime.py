"""
The engine facade: rendering, anchoring, naming, and change notification.
"""
import collections.abc
from typing import Any, Iterable, Optional

from react.react_dom import ElementAdapter, TreeAdapter
from react.react_interpreter import Evaluator
from react.react_printer import Printer
from react.react_registry import AnchorRegistry, NamedScopes, NO_KEY
from react.react_scope import ScopeChain, is_collection, normalize_key
from react.react_transformer import DirectiveParser

_MISSING = object()


class Engine:
    """Renders directive-bearing trees and re-renders the parts that depend on changed data.

    Registries are passed in (or created fresh) so separate engines do not
    share bindings; the module-level functions use one process-wide engine.
    """
    def __init__(self, adapter: Optional[TreeAdapter] = None,
                 registry: Optional[AnchorRegistry] = None,
                 names: Optional[NamedScopes] = None,
                 attribute: str = "react",
                 strict: bool = False):
        self.adapter = adapter if adapter is not None else ElementAdapter()
        self.registry = registry if registry is not None else AnchorRegistry()
        self.names = names if names is not None else NamedScopes()
        self.attribute = attribute
        self.strict = strict
        self.parser = DirectiveParser()
        self.printer = Printer()
        self.evaluator = Evaluator(self)

    # =================================================================
    # Rendering
    # =================================================================

    def render(self, node, scope: Any = _MISSING, *, scopes: Optional[Iterable[Any]] = None,
               anchor: bool = False):
        """Evaluate the directives of `node` and its descendants. Returns `node`.

        `scope` (or `scopes`, nearest first) forms the base chain; `anchor=True`
        additionally remembers the scopes for this node so later notifications
        re-render its bindings. With no scope, a previously anchored one is used.
        """
        if scopes is not None:
            base = list(scopes)
        elif scope is not _MISSING:
            base = [scope]
        else:
            base = None

        if base is not None and anchor:
            self.registry.anchor(node, base)
            base = None

        if base is None:
            anchored = self.registry.anchored_scopes(node)
            if anchored:
                self.evaluator._dbg("RENDER anchored", node)
                self.evaluator.render_tree(node, ScopeChain.from_scopes(anchored), node, root=True)
                return node
            base = []
        self.evaluator._dbg("RENDER", node, "scopes", len(base))
        self.evaluator.render_tree(node, ScopeChain.from_scopes(base), None, root=True)
        return node

    def anchor_node(self, node, *scopes):
        """Associate `node` and its descendants with `scopes` without rendering."""
        self.registry.anchor(node, scopes)
        return node

    # =================================================================
    # Named anchors
    # =================================================================

    def name_object(self, name: str, obj: Any):
        self.names.name(name, obj)
        return obj

    def lookup_named(self, name: str) -> Any:
        return self.names.lookup(name)

    # =================================================================
    # Change propagation
    # =================================================================

    def _is_attached(self, node, root) -> bool:
        current = node
        while current is not None:
            if current is root:
                return True
            current = self.adapter.parent(current)
        return False

    def notify(self, obj: Any, key: Any = NO_KEY):
        """Re-evaluate the bindings that read `obj` (only those reading `key`, when given)."""
        sites = self.registry.sites_for(obj, key)
        self.evaluator._dbg("NOTIFY", type(obj).__name__, "key", None if key is NO_KEY else key,
                            "sites", len(sites))
        for site in sites:
            if not self.registry.is_live(site):
                continue
            node, root = site.node, site.anchor
            if node is None or root is None:
                continue
            if not self._is_attached(node, root):
                self.evaluator._dbg("NOTIFY skip detached", site)
                continue
            if not site.chain.is_current():
                self.evaluator._dbg("NOTIFY skip stale chain", site)
                continue
            self.evaluator.rerun(site)

    def set_property(self, obj: Any, key: Any, value: Any):
        """Assign `obj[key]` (or the attribute) then notify the bindings that read it."""
        if isinstance(obj, collections.abc.MutableMapping):
            obj[key] = value
        elif is_collection(obj):
            index = normalize_key(obj, key)
            if index == len(obj):
                obj.append(value)
            else:
                obj[index] = value
            key = index
        else:
            setattr(obj, key, value)
        self.notify(obj, key)
        return value


_default = Engine()

render = _default.render
anchor_node = _default.anchor_node
name_object = _default.name_object
lookup_named = _default.lookup_named
notify = _default.notify
set_property = _default.set_property
scopes = _default.names
