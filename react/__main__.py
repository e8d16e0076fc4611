import sys
from pathlib import Path

import yaml

from react.react_datatypes import ReactError
from react.react_dom import Element, parse_html
from react.react_runtime import Engine


def load_scope(file_path: str):
    """Read a YAML (or JSON) scope file."""
    p = Path(file_path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    return yaml.safe_load(text)


def render_file(template_path: str, scope_path: str = None, engine: Engine = None) -> str:
    """Render a template file and return the resulting markup."""
    engine = engine or Engine()
    p = Path(template_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {template_path}", file=sys.stderr)
        raise SystemExit(1)
    scope = load_scope(scope_path) if scope_path else {}
    nodes = parse_html(source)
    for node in nodes:
        if isinstance(node, Element):
            engine.render(node, scope)
    return ''.join(node.to_html() for node in nodes)


def main(argv=None):
    """Render TEMPLATE with the data in SCOPE and print the markup."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0].startswith("-"):
        print("usage: python -m react TEMPLATE.html [SCOPE.yaml]", file=sys.stderr)
        raise SystemExit(2)
    try:
        output = render_file(argv[0], argv[1] if len(argv) > 1 else None)
    except ReactError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    print(output)


if __name__ == "__main__":
    main()
