"""
Scope chains and name resolution.

A chain is an immutable sequence of links, nearest first. The first segment
of a path falls through the links until one of them defines it; the
remaining segments are plain property reads on the value found.
"""
import collections.abc
import inspect
import math
from typing import Any, Callable, Iterable, Optional, Tuple

from react.react_datatypes import Ref

OnRead = Optional[Callable[[Any, Any], None]]


def is_collection(value) -> bool:
    return isinstance(value, collections.abc.Sequence) and not isinstance(value, (str, bytes, bytearray))


def normalize_key(obj, key):
    """Sequence keys are integers; digit strings coming from dotted paths are converted."""
    if is_collection(obj) and isinstance(key, str):
        try:
            return int(key)
        except ValueError:
            return key
    return key


def read_property(obj, key) -> Tuple[bool, Any]:
    """Single property read. Returns (found, value); a None value counts as not found."""
    if obj is None:
        return False, None
    if isinstance(obj, collections.abc.Mapping):
        try:
            value = obj[key]
        except (KeyError, TypeError):
            return False, None
    elif is_collection(obj):
        index = normalize_key(obj, key)
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(obj):
            return False, None
        value = obj[index]
    else:
        if not isinstance(key, str) or key.startswith('_'):
            return False, None
        try:
            value = getattr(obj, key)
        except AttributeError:
            return False, None
    if value is None:
        return False, None
    return True, value


def _required_positional(fn) -> int:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return 0
    return sum(
        1 for p in sig.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
    )


def invoke(value, owner):
    """Call a resolved callable, passing the owning object when it takes one argument.

    Callables needing more than one argument are not auto-called; the
    callable itself is the value.
    """
    if not callable(value) or isinstance(value, type):
        return value
    required = _required_positional(value)
    if required == 0:
        return value()
    if required == 1:
        return value(owner)
    return value


def is_truthy(value) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ''
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    return True


# =================================================================
# Links
# =================================================================

class PathOrigin:
    """The link was produced by `within <path>` against the rest of the chain."""
    def __init__(self, ref: Ref):
        self.ref = ref


class IndexOrigin:
    """The link is element `index` of `collection` (implicit per-element iteration)."""
    def __init__(self, collection, index: int):
        self.collection = collection
        self.index = index


class ScopeLink:
    """A plain data object in the chain."""
    def __init__(self, scope, origin=None):
        self.scope = scope
        self.origin = origin

    @property
    def value(self):
        return self.scope

    def lookup(self, name):
        found, value = read_property(self.scope, name)
        return found, value, self.scope, normalize_key(self.scope, name)

    def is_current(self, tail: 'ScopeChain') -> bool:
        origin = self.origin
        if isinstance(origin, PathOrigin):
            return tail.resolve(origin.ref.segments) is self.scope
        if isinstance(origin, IndexOrigin):
            coll = origin.collection
            return 0 <= origin.index < len(coll) and coll[origin.index] is self.scope
        return True

    def __repr__(self) -> str:
        return f"<ScopeLink {type(self.scope).__name__} #{id(self.scope):x}>"


class LoopLink:
    """Per-instance binding of a `for` loop: `item_name` -> collection[index], `alias` -> index."""
    def __init__(self, collection, index: int, alias: Optional[str], item_name: str):
        self.collection = collection
        self.index = index
        self.alias = alias
        self.item_name = item_name

    @property
    def value(self):
        return read_property(self.collection, self.index)[1]

    def lookup(self, name):
        if name == self.item_name:
            # The item name is bound even when the element is None; it never falls through.
            _, value = read_property(self.collection, self.index)
            return True, value, self.collection, self.index
        if self.alias is not None and name == self.alias:
            return True, self.index, None, None
        return False, None, None, None

    def is_current(self, tail: 'ScopeChain') -> bool:
        return self.index < len(self.collection)

    def __repr__(self) -> str:
        return f"<LoopLink {self.alias or ''} {self.item_name}[{self.index}]>"


# =================================================================
# Chain
# =================================================================

class ScopeChain:
    """Ordered, immutable sequence of links used for fallthrough resolution."""
    def __init__(self, links: Iterable[Any] = ()):
        self.links = tuple(links)

    @classmethod
    def from_scopes(cls, scopes: Iterable[Any]) -> 'ScopeChain':
        return cls(ScopeLink(s) for s in scopes)

    def push(self, link) -> 'ScopeChain':
        return ScopeChain((link,) + self.links)

    def within(self, scope, ref: Ref) -> 'ScopeChain':
        return self.push(ScopeLink(scope, PathOrigin(ref)))

    @property
    def head_value(self):
        if not self.links:
            return None
        return self.links[0].value

    def __len__(self) -> int:
        return len(self.links)

    def __repr__(self) -> str:
        return f"ScopeChain({list(self.links)!r})"

    def resolve(self, segments, on_read: OnRead = None):
        """Resolve a path (list of segments or dotted string). Misses yield None, never raise."""
        if isinstance(segments, str):
            segments = segments.split('.')
        first = segments[0]
        for link in self.links:
            found, value, owner, key = link.lookup(first)
            if found:
                break
        else:
            if on_read is not None:
                # Record the miss against the nearest plain scope so a later definition is seen.
                for link in self.links:
                    if isinstance(link, ScopeLink) and link.scope is not None:
                        on_read(link.scope, normalize_key(link.scope, first))
                        break
            return None
        if on_read is not None and owner is not None:
            on_read(owner, key)

        for seg in segments[1:]:
            # Namespacing: attributes hung directly on a callable are used without calling it.
            own = getattr(value, '__dict__', None)
            if callable(value) and isinstance(own, dict) and seg in own:
                owner, value = value, own[seg]
                continue
            value = invoke(value, owner)
            if value is None:
                return None
            if on_read is not None:
                on_read(value, normalize_key(value, seg))
            found, nxt = read_property(value, seg)
            if not found:
                return None
            owner, value = value, nxt
        return invoke(value, owner)

    def is_current(self) -> bool:
        """True while every derived link still resolves to the same object at the same position."""
        for i, link in enumerate(self.links):
            if not link.is_current(ScopeChain(self.links[i + 1:])):
                return False
        return True
