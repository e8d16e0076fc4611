"""
Parses directive attribute strings and transforms the raw parser AST into
the instruction model of react_datatypes.
"""
from pathlib import Path
from typing import Dict, List

import yaml
from koine import Parser

from react.react_datatypes import (
    Directive, Ref, Literal, Negation, DirectiveSyntaxError
)

GRAMMAR_PATH = Path(__file__).parent / "react_grammar.yaml"


class DirectiveTransformer:
    def _tagged(self, children):
        """Tagged child nodes in source order, looking through koine's untagged groupings."""
        if isinstance(children, list):
            for n in children:
                yield from self._tagged(n)
            return
        if not isinstance(children, dict):
            return
        if 'tag' in children:
            yield children
            return
        # Named-children dicts and {'ast': ...} wrappers
        for v in children.values():
            yield from self._tagged(v)

    def _text(self, node) -> str:
        text = node.get('text')
        if text is None:
            text = str(node.get('value', ''))
        return text

    def _number(self, text: str):
        if '.' in text:
            return float(text)
        return int(text)

    def transform(self, node: object, source: str = "") -> object:
        # Lists and wrappers: the single tagged node inside is the result
        if not isinstance(node, dict) or 'tag' not in node:
            tagged = list(self._tagged(node))
            if len(tagged) != 1:
                raise DirectiveSyntaxError(source, "expected one directive list")
            return self.transform(tagged[0], source)

        tag = node['tag']
        children = node.get('children', [])

        match tag:
            case 'directive_list':
                directives = [
                    self.transform(c, source) for c in self._tagged(children) if c['tag'] != 'comma'
                ]
                if source.strip() and not directives:
                    raise DirectiveSyntaxError(source, "no directives")
                return directives
            case 'directive':
                parts = list(self._tagged(children))
                if not parts or parts[0]['tag'] != 'name':
                    raise DirectiveSyntaxError(source, "directive without a name")
                return Directive(self._text(parts[0]), [self.transform(p, source) for p in parts[1:]])
            case 'arg':
                inner = list(self._tagged(children))
                if len(inner) != 1:
                    raise DirectiveSyntaxError(source, "malformed argument")
                return self.transform(inner[0], source)
            case 'negation':
                refs = [c for c in self._tagged(children) if c['tag'] == 'path']
                if len(refs) != 1:
                    raise DirectiveSyntaxError(source, "'!' must be followed by a key")
                return Negation(self.transform(refs[0], source))
            case 'path':
                return Ref(self._text(node))
            case 'string':
                return Literal(self._text(node)[1:-1])
            case 'number':
                return Literal(self._number(self._text(node)))
            case _:
                raise DirectiveSyntaxError(source, f"unexpected '{tag}'")


class DirectiveParser:
    """Turns `react` attribute values into directive lists. Results are cached per string."""
    _parser = None       # koine.Parser instance, built once per process

    def __init__(self):
        self.transformer = DirectiveTransformer()
        self._cache: Dict[str, List[Directive]] = {}

    @property
    def parser(self) -> Parser:
        if DirectiveParser._parser is None:
            with GRAMMAR_PATH.open(encoding="utf-8") as f:
                grammar_def = yaml.safe_load(f)
            DirectiveParser._parser = Parser(grammar_def)
        return DirectiveParser._parser

    def parse(self, source: str) -> List[Directive]:
        cached = self._cache.get(source)
        if cached is not None:
            return cached
        if not source.strip():
            directives: List[Directive] = []
        else:
            try:
                parse_out = self.parser.parse(source)
            except Exception as e:
                raise DirectiveSyntaxError(source, str(e)) from e
            if isinstance(parse_out, dict) and parse_out.get('status') not in (None, 'success'):
                raise DirectiveSyntaxError(source, str(parse_out.get('message', '')))
            ast_node = parse_out['ast'] if isinstance(parse_out, dict) and 'ast' in parse_out else parse_out
            directives = self.transformer.transform(ast_node, source)
            if not isinstance(directives, list):
                raise DirectiveSyntaxError(source, "expected a directive list")
        self._cache[source] = directives
        return directives
