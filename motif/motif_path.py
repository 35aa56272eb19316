"""
SVG path-command parsing and the path transforms behind `invert`, `flipH`,
`flipV`, `flip` and `reverse`.

Transforms return an `Outcome`; input that does not parse as a path comes
back unchanged with `fallback=True`.
"""
import re
from typing import Callable, List, NamedTuple, Union

from motif.motif_datatypes import Outcome
from motif.motif_values import format_number, to_number

_TOKEN = re.compile(r'\s*(?:([MmLlHhVvCcSsQqTtAaZz])|([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)|(,))')


class PathCommand(NamedTuple):
    name: str
    value: List[Union[int, float]]

    def __str__(self):
        return self.name + ' '.join(format_number(v) for v in self.value)


class PathParse(NamedTuple):
    valid: bool
    commands: List[PathCommand]


def parse_svg_path(text) -> PathParse:
    """Parse `M0 0 h10 v-5 z` into commands; any stray character invalidates."""
    text = str(text if text is not None else '').strip()
    commands: List[PathCommand] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN.match(text, pos)
        if not m or m.end() == pos:
            if text[pos:].strip() == '':
                break
            return PathParse(False, [])
        name, number, _ = m.groups()
        if name:
            commands.append(PathCommand(name, []))
        elif number:
            if not commands:
                return PathParse(False, [])
            commands[-1].value.append(to_number(number))
        pos = m.end()
    return PathParse(bool(commands), commands)


def _negate(n):
    return -n if n != 0 else 0


def _map_commands(text, fn: Callable[[PathCommand], PathCommand]) -> Outcome:
    parsed = parse_svg_path(text)
    if not parsed.valid:
        return Outcome(text, fallback=True)
    return Outcome(' '.join(str(fn(c)) for c in parsed.commands))


_SWAP = {'v': 'h', 'V': 'H', 'h': 'v', 'H': 'V'}


def invert(text) -> Outcome:
    """Swap horizontal and vertical line commands."""
    return _map_commands(text, lambda c: PathCommand(_SWAP.get(c.name, c.name), c.value))


def flip_h(text) -> Outcome:
    return _map_commands(text, lambda c: PathCommand(c.name, [_negate(v) for v in c.value]) if c.name in 'hH' else c)


def flip_v(text) -> Outcome:
    return _map_commands(text, lambda c: PathCommand(c.name, [_negate(v) for v in c.value]) if c.name in 'vV' else c)


def flip(text) -> Outcome:
    h = flip_h(text)
    if h.fallback:
        return h
    return flip_v(h.value)


def reverse(items: List[str]) -> Outcome:
    """Reverse path commands; anything else is reversed as a plain list."""
    parsed = parse_svg_path(','.join(items))
    if parsed.valid:
        return Outcome(' '.join(str(c) for c in reversed(parsed.commands)))
    return Outcome(list(reversed(items)), fallback=True)
