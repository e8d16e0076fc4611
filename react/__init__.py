from react.react_runtime import (
    Engine, render, anchor_node, name_object, lookup_named, notify, set_property, scopes,
)
from react.react_registry import AnchorRegistry, NamedScopes, NO_KEY
from react.react_dom import Element, Text, TreeAdapter, ElementAdapter, parse_html, fragment
from react.react_datatypes import (
    ReactError, UnknownDirective, MalformedLoop, NotIterable,
    UnresolvableReference, DirectiveSyntaxError,
)

__all__ = [
    "Engine", "render", "anchor_node", "name_object", "lookup_named", "notify",
    "set_property", "scopes",
    "AnchorRegistry", "NamedScopes", "NO_KEY",
    "Element", "Text", "TreeAdapter", "ElementAdapter", "parse_html", "fragment",
    "ReactError", "UnknownDirective", "MalformedLoop", "NotIterable",
    "UnresolvableReference", "DirectiveSyntaxError",
]
