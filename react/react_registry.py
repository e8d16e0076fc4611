"""
Process-wide bookkeeping for selective re-rendering.

AnchorRegistry maps data objects to the binding sites that read them while
rendering under an anchor; NamedScopes is the name -> object table consulted
by the `anchored` directive.
"""
import weakref
from collections import UserDict
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from react.react_datatypes import BindingSite
from react.react_scope import normalize_key

# Passed as `key` to mean "the object as a whole".
NO_KEY = object()


class AnchorRegistry:
    """Object -> binding sites, with key-level specificity.

    Objects are keyed by identity. Those that support weak references are
    held weakly; plain dicts and lists cannot be, so they are held only while
    a live site reads them. Nodes are held weakly too, and a node's sites are
    forgotten as soon as the node is collected, which releases the objects
    only those sites read.
    """
    def __init__(self):
        # id(obj) -> zero-argument callable returning the object (a weakref where possible)
        self._objects: Dict[int, Callable[[], Any]] = {}
        # id(obj) -> {site key -> (site, keys)}; None in keys means unkeyed.
        self._sites: Dict[int, Dict[Tuple[int, int], Tuple[BindingSite, Set[Any]]]] = {}
        # site key -> ids of objects the site is registered under
        self._site_objects: Dict[Tuple[int, int], Set[int]] = {}
        # site key -> the live site object
        self._live: Dict[Tuple[int, int], BindingSite] = {}
        # id(node) -> site keys, for subtree removal
        self._node_sites: Dict[int, Set[Tuple[int, int]]] = {}
        # id(node) -> weakref whose callback forgets the node's sites
        self._node_refs: Dict[int, weakref.ref] = {}
        self._anchors = weakref.WeakKeyDictionary()
        # Collection callbacks arriving mid-update are queued and applied afterwards.
        self._pending: List[Tuple[str, int, Any]] = []
        self._busy = 0

    # --- anchors ---

    def anchor(self, node, scopes: Iterable[Any]):
        self._anchors[node] = tuple(scopes)

    def anchored_scopes(self, node) -> Optional[Tuple[Any, ...]]:
        try:
            return self._anchors.get(node)
        except TypeError:
            return None

    # --- collection ---

    def _collected(self, kind: str, ident: int, ref):
        self._pending.append((kind, ident, ref))
        if not self._busy:
            self._flush()

    def _flush(self):
        while self._pending:
            kind, ident, ref = self._pending.pop()
            if kind == 'node':
                if self._node_refs.get(ident) is ref:
                    del self._node_refs[ident]
                    self._forget_node_id(ident)
            elif self._objects.get(ident) is ref:
                for site_key in list(self._sites.get(ident, ())):
                    self._drop(ident, site_key)
                    oids = self._site_objects.get(site_key)
                    if oids is not None:
                        oids.discard(ident)
                        if not oids:
                            self._forget(site_key)

    def _begin(self):
        self._busy += 1

    def _end(self):
        self._busy -= 1
        if not self._busy:
            self._flush()

    def _hold(self, obj):
        oid = id(obj)
        if oid in self._objects:
            return oid
        try:
            self._objects[oid] = weakref.ref(obj, lambda ref, oid=oid: self._collected('object', oid, ref))
        except TypeError:
            self._objects[oid] = lambda obj=obj: obj
        return oid

    def _watch_node(self, node):
        nid = id(node)
        if nid not in self._node_refs:
            self._node_refs[nid] = weakref.ref(node, lambda ref, nid=nid: self._collected('node', nid, ref))

    # --- registration ---

    def register(self, site: BindingSite, reads: Iterable[Tuple[Any, Any]]):
        """Record the (object, key) reads of one evaluation, replacing the site's prior entries."""
        self._begin()
        try:
            grouped: Dict[int, Set[Any]] = {}
            for obj, key in reads:
                grouped.setdefault(self._hold(obj), set()).add(key)

            previous = self._site_objects.get(site.key, set())
            for oid in previous - grouped.keys():
                self._drop(oid, site.key)
            for oid, keys in grouped.items():
                self._sites.setdefault(oid, {})[site.key] = (site, keys)
            if grouped:
                node = site.node
                if node is not None:
                    self._watch_node(node)
                self._site_objects[site.key] = set(grouped)
                self._live[site.key] = site
                self._node_sites.setdefault(site.key[0], set()).add(site.key)
            else:
                self._forget(site.key)
        finally:
            self._end()

    def _drop(self, oid: int, site_key):
        entries = self._sites.get(oid)
        if entries is None:
            return
        entries.pop(site_key, None)
        if not entries:
            del self._sites[oid]
            self._objects.pop(oid, None)

    def _forget(self, site_key):
        for oid in self._site_objects.pop(site_key, ()):
            self._drop(oid, site_key)
        self._live.pop(site_key, None)
        keys = self._node_sites.get(site_key[0])
        if keys is not None:
            keys.discard(site_key)
            if not keys:
                del self._node_sites[site_key[0]]

    def _forget_node_id(self, nid: int, after: int = -1):
        for site_key in list(self._node_sites.get(nid, ())):
            if site_key[1] > after:
                self._forget(site_key)

    def forget_node(self, node, after: int = -1):
        """Drop the sites of `node` whose directive index is greater than `after`."""
        self._begin()
        try:
            self._forget_node_id(id(node), after)
        finally:
            self._end()

    def forget_subtree(self, node, adapter):
        """Drop every site of `node` and its element descendants."""
        self.forget_node(node)
        for child in adapter.element_children(node):
            self.forget_subtree(child, adapter)

    # --- lookup ---

    def is_live(self, site: BindingSite) -> bool:
        return self._live.get(site.key) is site

    def sites_for(self, obj, key=NO_KEY) -> List[BindingSite]:
        """Sites registered under `obj`; with a key, only those that read it (plus unkeyed ones)."""
        entries = self._sites.get(id(obj))
        if not entries:
            return []
        if key is not NO_KEY:
            key = normalize_key(obj, key)
        found = []
        dead = []
        self._begin()
        try:
            for site_key, (site, keys) in list(entries.items()):
                if site.node is None or site.anchor is None:
                    dead.append(site_key)
                    continue
                if key is NO_KEY or None in keys or key in keys:
                    found.append(site)
            for site_key in dead:
                self._forget(site_key)
        finally:
            self._end()
        return found

    def __len__(self) -> int:
        return len(self._live)


class NamedScopes(UserDict):
    """Process-wide name -> object table. Last write wins; naming never notifies."""

    def name(self, name: str, obj: Any):
        self.data[name] = obj

    def lookup(self, name: str) -> Any:
        return self.data.get(name)

    def __getattr__(self, name: str):
        d = self.__dict__.get('data')
        if d is not None and name in d:
            return d[name]
        raise AttributeError(name)
