"""
Defines the core data types for the react binding engine.

This module provides the instruction model produced by the directive parser,
the binding-site record kept for selective re-rendering, and the error
taxonomy raised by the evaluator.
"""

import weakref
from typing import Any, List, Optional


# =================================================================
# Errors
# =================================================================

class ReactError(Exception):
    """Base class for every error raised while rendering or notifying."""
    def __init__(self, message: str, node: Any = None):
        super().__init__(message)
        self.node = node


class UnknownDirective(ReactError):
    def __init__(self, name: str, node: Any = None):
        super().__init__(f"unknown directive '{name}'", node)
        self.name = name


class MalformedLoop(ReactError):
    """A loop node needs an item template child followed by a results container child."""
    pass


class NotIterable(ReactError):
    def __init__(self, value: Any, node: Any = None):
        super().__init__(f"cannot loop over a {type(value).__name__}", node)
        self.value = value


class UnresolvableReference(ReactError):
    def __init__(self, key: str, node: Any = None):
        super().__init__(f"'{key}' did not resolve in the scope chain", node)
        self.key = key


class DirectiveSyntaxError(ReactError):
    def __init__(self, source: str, detail: str = ""):
        msg = f"invalid directive list {source!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.source = source


# =================================================================
# Instruction model
# =================================================================

class Ref:
    """A bare identifier or dotted path argument (`key`, `one.two.value`)."""
    def __init__(self, text: str):
        self.text = text
        self.segments: List[str] = text.split('.')

    def __repr__(self) -> str:
        return f"Ref({self.text!r})"

    def __eq__(self, other):
        return isinstance(other, Ref) and self.text == other.text


class Literal:
    """A quoted string or number argument."""
    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, Literal) and self.value == other.value


class Negation:
    """A `!key` argument: the truthiness of `inner` inverted."""
    def __init__(self, inner: Ref):
        self.inner = inner

    def __repr__(self) -> str:
        return f"Negation({self.inner!r})"

    def __eq__(self, other):
        return isinstance(other, Negation) and self.inner == other.inner


class Directive:
    """One instruction of a node's directive list, e.g. `attrIf !open 'hidden' 'hidden'`."""
    def __init__(self, name: str, args: Optional[List[Any]] = None):
        self.name = name
        self.args: List[Any] = list(args or [])

    def __repr__(self) -> str:
        return f"Directive({self.name!r}, {self.args!r})"

    def __eq__(self, other):
        return isinstance(other, Directive) and self.name == other.name and self.args == other.args


# =================================================================
# Binding sites
# =================================================================

class BindingSite:
    """One evaluated directive instance: the node, which directive, and the exact chain used.

    The node and the anchor root are held weakly; a site whose node was
    collected is dead and gets pruned by the registry.
    """
    def __init__(self, node: Any, index: int, directive: Directive, chain: Any, anchor: Any):
        self._node = weakref.ref(node)
        self._anchor = weakref.ref(anchor)
        self.index = index
        self.directive = directive
        self.chain = chain
        self.key = (id(node), index)

    @property
    def node(self):
        return self._node()

    @property
    def anchor(self):
        return self._anchor()

    def __repr__(self) -> str:
        return f"<BindingSite {self.directive.name} #{self.index} node={self.key[0]:#x}>"
