"""
SVG assembly for the `svg`, `Svg`, `filter` and `svg-pattern` operators.

The mini-syntax is a CSS-like block language:

    viewBox: 0 0 10 10;
    circle { cx, cy: 5; r: 4; fill: #f00 }
    rect { width, height: 100%; fill: defs pattern { ... } }

Properties become attributes, blocks become child elements, `content`
sets the text of an element, and a block used as a property value is placed
under `<defs>` and referenced with `url(#id)`.
"""
import re
from typing import Dict, List, Optional, Union
from urllib.parse import quote
from xml.sax.saxutils import escape

XMLNS = 'http://www.w3.org/2000/svg'


class SvgElement:
    """One element of an SVG document tree."""

    def __init__(self, name: str, attrs: Optional[Dict[str, str]] = None):
        self.name = name
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.children: List[Union['SvgElement', str]] = []

    def append(self, child):
        self.children.append(child)
        return child

    def find(self, name: str) -> Optional['SvgElement']:
        for child in self.children:
            if isinstance(child, SvgElement):
                if child.name == name:
                    return child
                found = child.find(name)
                if found is not None:
                    return found
        return None

    def __repr__(self):
        return f"<SvgElement {self.name} attrs={self.attrs!r} children={len(self.children)}>"


# =================================================================
# Parser
# =================================================================

class _SvgParser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.root = SvgElement('svg')
        self._ids: Dict[str, int] = {}

    def next_id(self, name: str) -> str:
        self._ids[name] = self._ids.get(name, 0) + 1
        return f"{name}-{self._ids[name]}"

    def _read_until(self, stops: str) -> str:
        """Read up to a stop character outside parentheses and quotes."""
        out = []
        depth = 0
        quote_char = None
        text = self.text
        while self.pos < len(text):
            c = text[self.pos]
            if quote_char:
                if c == quote_char:
                    quote_char = None
            elif c in '"\'':
                quote_char = c
            elif c == '(':
                depth += 1
            elif c == ')' and depth:
                depth -= 1
            elif depth == 0 and c in stops:
                break
            out.append(c)
            self.pos += 1
        return ''.join(out)

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def parse_body(self, element: SvgElement):
        while self.pos < len(self.text):
            head = self._read_until(':{;}')
            stop = self._peek()
            self.pos += 1
            if stop == '{':
                inner = self._open_chain(head, element)
                self.parse_body(inner)
            elif stop == ':':
                self._property(head, element)
            elif stop == '}' or stop == '':
                if head.strip():
                    element.append(head.strip())
                return
            elif head.strip():
                element.append(head.strip())

    def _open_chain(self, selector: str, parent: SvgElement) -> SvgElement:
        current = parent
        for part in selector.split():
            name, _, ident = part.partition('#')
            current = current.append(SvgElement(name or 'g'))
            if ident:
                current.attrs['id'] = ident
        return current

    def _property(self, names: str, element: SvgElement):
        value = self._read_until(';{}')
        stop = self._peek()
        if stop == '{':
            self.pos += 1
            defs = self.root.find('defs') or self.root.append(SvgElement('defs'))
            chain = [p for p in value.split() if p != 'defs']
            target = self._open_chain(' '.join(chain) or 'g', defs)
            self.parse_body(target)
            ident = target.attrs.get('id') or self.next_id(target.name)
            target.attrs['id'] = ident
            value = f"url(#{ident})"
            # The rest of the statement after the block is ignored.
            self._read_until(';}')
        if self._peek() == ';':
            self.pos += 1
        value = value.strip()
        for name in (n.strip() for n in names.split(',')):
            if not name:
                continue
            if name == 'content':
                element.append(_unquote(value))
            else:
                element.attrs[name] = value


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in '"\'':
        return value[1:-1]
    return value


def parse_svg(text, type: Optional[str] = None, name: Optional[str] = None) -> SvgElement:
    """Parse the block mini-syntax into a document rooted at `<svg>`.

    With `type='block'` the whole text is the body of a `name` element
    placed under the root, e.g. `parse_svg(body, type='block', name='filter')`.
    """
    parser = _SvgParser(str(text or ''))
    target = parser.root
    if type == 'block' and name:
        target = parser.root.append(SvgElement(name))
    parser.parse_body(target)
    return parser.root


# =================================================================
# Generator
# =================================================================

def _escape_attr(value) -> str:
    return escape(str(value), {'"': '&quot;'})


class SvgGenerator:
    """Serializes an SvgElement tree to markup."""

    def __init__(self):
        self._handlers = {
            SvgElement: self._generate_element,
            str: self._generate_text,
        }

    def generate(self, node) -> str:
        handler = self._handlers.get(type(node), self._generate_text)
        return handler(node)

    def _generate_text(self, node) -> str:
        return escape(str(node))

    def _generate_element(self, node: SvgElement) -> str:
        attrs = dict(node.attrs)
        if node.name == 'svg' and 'xmlns' not in attrs:
            attrs = {'xmlns': XMLNS, **attrs}
        attr_text = ''.join(f' {k}="{_escape_attr(v)}"' for k, v in attrs.items())
        if not node.children:
            return f"<{node.name}{attr_text}/>"
        inner = ''.join(self.generate(c) for c in node.children)
        return f"<{node.name}{attr_text}>{inner}</{node.name}>"


def generate_svg(tree: SvgElement) -> str:
    return SvgGenerator().generate(tree)


def normalize_svg(markup: str) -> str:
    """Wrap bare fragments in `<svg>` and make sure the namespace is declared."""
    markup = str(markup or '').strip()
    if '<svg' not in markup:
        markup = f'<svg xmlns="{XMLNS}">{markup}</svg>'
    if 'xmlns' not in markup:
        markup = re.sub(r'<svg([\s>/])', f'<svg xmlns="{XMLNS}"\\1', markup, count=1)
    return markup


def create_svg_url(markup: str, id: Optional[str] = None) -> str:
    encoded = quote(markup, safe="-_.!~*'()")
    if id:
        encoded += f"#{id}"
    return f'url("data:image/svg+xml;utf8,{encoded}")'
