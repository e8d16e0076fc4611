"""
The tree-mutation interface the engine depends on, plus a small in-memory
element tree that implements it.

Host applications with their own tree provide a TreeAdapter subclass; the
Element tree is what the command line and the test suite render into.
"""
import html
from abc import ABC, abstractmethod
from html.parser import HTMLParser
from typing import Any, Dict, Iterator, List, Optional

VOID_ELEMENTS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
})


class Node:
    def __init__(self):
        self.parent: Optional['Element'] = None

    def detach(self):
        if self.parent is not None:
            self.parent.remove(self)


class Text(Node):
    def __init__(self, data: str):
        super().__init__()
        self.data = data

    def clone(self) -> 'Text':
        return Text(self.data)

    def to_html(self) -> str:
        return html.escape(self.data, quote=False)

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


def _parse_style(text: str) -> Dict[str, str]:
    style = {}
    for decl in text.split(';'):
        if ':' in decl:
            prop, _, value = decl.partition(':')
            style[prop.strip().lower()] = value.strip()
    return style


class Element(Node):
    """A markup element with attributes, an inline style dictionary and ordered children."""
    def __init__(self, tag: str, attributes: Optional[Dict[str, str]] = None, children=()):
        super().__init__()
        self.tag = tag.lower()
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.style: Dict[str, str] = _parse_style(self.attributes.pop('style', '') or '')
        self.children: List[Node] = []
        for child in children:
            self.append(child)

    # --- structure ---

    def append(self, child: Node) -> Node:
        child.detach()
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: Node):
        self.children.remove(child)
        child.parent = None

    def clear(self):
        for child in self.children:
            child.parent = None
        self.children = []

    @property
    def element_children(self) -> List['Element']:
        return [c for c in self.children if isinstance(c, Element)]

    def clone(self) -> 'Element':
        copy = Element(self.tag, self.attributes)
        copy.style = dict(self.style)
        for child in self.children:
            copy.append(child.clone())
        return copy

    def iter(self) -> Iterator['Element']:
        """Depth-first, document-order walk over this element and its element descendants."""
        yield self
        for child in self.element_children:
            yield from child.iter()

    def find(self, id: Optional[str] = None, class_name: Optional[str] = None) -> Optional['Element']:
        for el in self.find_all(id=id, class_name=class_name):
            return el
        return None

    def find_all(self, id: Optional[str] = None, class_name: Optional[str] = None) -> List['Element']:
        found = []
        for el in self.iter():
            if el is self:
                continue
            if id is not None and el.attributes.get('id') != id:
                continue
            if class_name is not None and not el.has_class(class_name):
                continue
            found.append(el)
        return found

    # --- attributes & classes ---

    def get(self, name: str, default=None):
        if name == 'style':
            return self._style_text() or default
        return self.attributes.get(name, default)

    def set(self, name: str, value: str):
        if name == 'style':
            self.style = _parse_style(value)
        else:
            self.attributes[name] = value

    def remove_attribute(self, name: str):
        if name == 'style':
            self.style = {}
        else:
            self.attributes.pop(name, None)

    @property
    def classes(self) -> List[str]:
        return self.attributes.get('class', '').split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str):
        classes = self.classes
        if name not in classes:
            classes.append(name)
            self.attributes['class'] = ' '.join(classes)

    def remove_class(self, name: str):
        classes = self.classes
        if name in classes:
            classes = [c for c in classes if c != name]
            if classes:
                self.attributes['class'] = ' '.join(classes)
            else:
                self.attributes.pop('class', None)

    # --- content & serialization ---

    @property
    def text(self) -> str:
        parts = []
        for child in self.children:
            parts.append(child.data if isinstance(child, Text) else child.text)
        return ''.join(parts)

    @property
    def inner_html(self) -> str:
        return ''.join(child.to_html() for child in self.children)

    @inner_html.setter
    def inner_html(self, markup: str):
        self.clear()
        for node in parse_html(markup):
            self.append(node)

    def _style_text(self) -> str:
        return '; '.join(f"{k}: {v}" for k, v in self.style.items())

    def to_html(self) -> str:
        attrs = ''.join(f' {k}="{html.escape(v)}"' for k, v in self.attributes.items())
        style = self._style_text()
        if style:
            attrs += f' style="{html.escape(style)}"'
        if self.tag in VOID_ELEMENTS and not self.children:
            return f"<{self.tag}{attrs}>"
        return f"<{self.tag}{attrs}>{self.inner_html}</{self.tag}>"

    def __repr__(self) -> str:
        return f"<Element {self.tag} {self.attributes!r}>"


class _TreeBuilder(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.roots: List[Node] = []
        self.stack: List[Element] = []

    def _add(self, node: Node):
        if self.stack:
            self.stack[-1].append(node)
        else:
            self.roots.append(node)

    def handle_starttag(self, tag, attrs):
        el = Element(tag, {k: (v if v is not None else '') for k, v in attrs})
        self._add(el)
        if el.tag not in VOID_ELEMENTS:
            self.stack.append(el)

    def handle_startendtag(self, tag, attrs):
        self._add(Element(tag, {k: (v if v is not None else '') for k, v in attrs}))

    def handle_endtag(self, tag):
        tag = tag.lower()
        for i in range(len(self.stack) - 1, -1, -1):
            if self.stack[i].tag == tag:
                del self.stack[i:]
                return

    def handle_data(self, data):
        self._add(Text(data))


def parse_html(markup: str) -> List[Node]:
    """Parse a markup fragment into top-level nodes. Comments are dropped."""
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    return builder.roots


def fragment(markup: str) -> Element:
    """Parse markup and return its first top-level element."""
    for node in parse_html(markup):
        if isinstance(node, Element):
            return node
    raise ValueError("markup contains no element")


# =================================================================
# Tree-mutation interface
# =================================================================

class TreeAdapter(ABC):
    """The narrow set of tree operations the engine performs."""

    @abstractmethod
    def is_node(self, value: Any) -> bool: raise NotImplementedError
    @abstractmethod
    def get_attribute(self, node, name: str) -> Optional[str]: raise NotImplementedError
    @abstractmethod
    def set_attribute(self, node, name: str, value: str): raise NotImplementedError
    @abstractmethod
    def remove_attribute(self, node, name: str): raise NotImplementedError
    @abstractmethod
    def add_class(self, node, name: str): raise NotImplementedError
    @abstractmethod
    def remove_class(self, node, name: str): raise NotImplementedError
    @abstractmethod
    def get_style(self, node, prop: str) -> Optional[str]: raise NotImplementedError
    @abstractmethod
    def set_style(self, node, prop: str, value: Optional[str]): raise NotImplementedError
    @abstractmethod
    def parent(self, node): raise NotImplementedError
    @abstractmethod
    def element_children(self, node) -> List[Any]: raise NotImplementedError
    @abstractmethod
    def clone(self, node): raise NotImplementedError
    @abstractmethod
    def append_child(self, parent, child): raise NotImplementedError
    @abstractmethod
    def remove_child(self, parent, child): raise NotImplementedError
    @abstractmethod
    def clear(self, node): raise NotImplementedError
    @abstractmethod
    def set_content(self, node, value): raise NotImplementedError


class ElementAdapter(TreeAdapter):
    """TreeAdapter over the in-memory Element tree."""

    def is_node(self, value):
        return isinstance(value, Node)

    def get_attribute(self, node, name):
        return node.get(name)

    def set_attribute(self, node, name, value):
        node.set(name, value)

    def remove_attribute(self, node, name):
        node.remove_attribute(name)

    def add_class(self, node, name):
        node.add_class(name)

    def remove_class(self, node, name):
        node.remove_class(name)

    def get_style(self, node, prop):
        return node.style.get(prop)

    def set_style(self, node, prop, value):
        if value is None:
            node.style.pop(prop, None)
        else:
            node.style[prop] = value

    def parent(self, node):
        return node.parent

    def element_children(self, node):
        return node.element_children

    def clone(self, node):
        return node.clone()

    def append_child(self, parent, child):
        parent.append(child)

    def remove_child(self, parent, child):
        if child.parent is parent:
            parent.remove(child)

    def clear(self, node):
        node.clear()

    def set_content(self, node, value):
        if isinstance(value, Node):
            if node.children == [value]:
                return
            node.clear()
            node.append(value)
            return
        if len(node.children) == 1 and isinstance(node.children[0], Text) and node.children[0].data == value:
            return
        node.clear()
        if value != '':
            node.append(Text(value))
