"""
The operator table and the Python implementations of every template operator.

Each operator is a method of `Operators` marked with `@template_operator`.
An `Operators` object is built per Context; calling an operator method
returns the value producer the upstream evaluator invokes with the
operator's arguments. Lazy operators receive thunks instead of values.
"""
import collections.abc
import functools
import inspect
import math
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, NamedTuple, Optional

import pystache
import yaml

from motif import motif_path
from motif.motif_calc import calc
from motif.motif_datatypes import Context, OperatorTableError, StateKey, UnknownOperator
from motif.motif_noise import Noise
from motif.motif_shapes import create_shape_points, parse_shape_commands, shapes
from motif.motif_svg import create_svg_url, generate_svg, normalize_svg, parse_svg
from motif.motif_values import (
    by_charcode, by_unit, cell_id, clamp, expand, finite, format_number, get_named_arguments,
    get_value, is_empty, is_letter, lerp, parse_value_group, remainder, sequence,
    to_number, to_text
)

RESOURCE_PATH = Path(__file__).parent / "resources" / "operators.yaml"

_PREFIX_OP = re.compile(r'^[-+*/%][\d.\s]')
_SUFFIX_OP = re.compile(r'[-+*/%]$')
_INT_PREFIX = re.compile(r'\s*([-+]?0[xX][0-9a-fA-F]+|[-+]?\d+)')

FILTER_TEMPLATE = """
x: -20%;
y: -20%;
width: 140%;
height: 140%;
{{#has_dilate}}
feMorphology { operator: dilate; radius: {{dilate}}; }
{{/has_dilate}}
{{#has_erode}}
feMorphology { operator: erode; radius: {{erode}}; }
{{/has_erode}}
{{#has_blur}}
feGaussianBlur { stdDeviation: {{blur}}; }
{{/has_blur}}
{{#has_frequency}}
feTurbulence {
  type: fractalNoise;
  baseFrequency: {{bx}} {{by}};
  seed: {{seed}};
  {{#has_octave}}numOctaves: {{octave}};{{/has_octave}}
}
feDisplacementMap { in: SourceGraphic; scale: {{scale}}; }
{{/has_frequency}}
"""

PATTERN_TEMPLATE = """
viewBox: 0 0 1 1;
preserveAspectRatio: xMidYMid slice;
rect {
  width, height: 100%;
  fill: defs pattern { {{body}} }
}
"""


@functools.lru_cache(maxsize=None)
def load_config(path: str = str(RESOURCE_PATH)) -> dict:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _render(template: str, view: dict) -> str:
    return pystache.Renderer(escape=lambda u: u).render(template, view)


def template_operator(name: Optional[str] = None, lazy: bool = False):
    """Mark an `Operators` method as a template operator named `name`."""
    def decorator(func):
        func._is_operator = True
        func._operator_name = name or func.__name__.replace('_', '-')
        func._operator_lazy = lazy
        return func
    return decorator


def calc_with(base):
    """Combine `base` with arithmetic text: `+3` is base + 3, `3+` is 3 + base."""
    def apply(v=None):
        v = get_value(v)
        if is_empty(v) or is_empty(base):
            return base
        text = str(v)
        if _PREFIX_OP.match(text):
            op, num, left = text[0], to_number(text[1:].strip()), True
        elif _SUFFIX_OP.search(text):
            op, num, left = text[-1], to_number(text[:-1].strip()), False
        else:
            return base + to_number(text)
        a, b = (base, num) if left else (num, base)
        if op == '+':
            return a + b
        if op == '-':
            return a - b
        if op == '*':
            return a * b
        if b == 0:
            return base
        if op == '/':
            return a / b
        return remainder(a, b)
    return apply


def map2d(value, low, high, amp=1):
    if amp == 0:
        return 0
    v = math.sqrt(2 / 4) * amp
    return lerp((value + v) / (2 * v), low * amp, high * amp)


@functools.lru_cache(maxsize=512)
def shape_polygon(type='', *args) -> str:
    """`polygon()` for a built-in shape name or generic shape commands."""
    type = str(type).strip()
    points = []
    if type:
        if type in shapes:
            points = shapes[type](args)
        else:
            commands = type
            rest = ','.join(args)
            if rest:
                commands = f"{type},{rest}"
            points = create_shape_points(parse_shape_commands(commands), min=3, max=3600)
    return f"polygon({','.join(points)})"


class Operators:
    """Python implementations of every template operator, bound to one Context."""

    def __init__(self, context: Context):
        self.context = context
        self.state = context.state

    # --- Context arithmetic ---
    @template_operator('i')
    def index(self):
        return calc_with(self.context.count)

    @template_operator('x')
    def col(self):
        return calc_with(self.context.x)

    @template_operator('y')
    def row(self):
        return calc_with(self.context.y)

    @template_operator('z')
    def depth(self):
        return calc_with(self.context.z)

    @template_operator('I')
    def size(self):
        return calc_with(self.context.grid.count)

    @template_operator('X')
    def size_x(self):
        return calc_with(self.context.grid.x)

    @template_operator('Y')
    def size_y(self):
        return calc_with(self.context.grid.y)

    @template_operator('Z')
    def size_z(self):
        return calc_with(self.context.grid.z)

    @template_operator('id')
    def cell_id(self):
        ctx = self.context
        return lambda *_: cell_id(ctx.x, ctx.y, ctx.z)

    def _loop_value(self, field: str, literal: str):
        frame = self.context.frame
        if frame is None:
            return lambda *_: literal
        return calc_with(getattr(frame, field))

    @template_operator('n')
    def loop_index(self):
        return self._loop_value('index', '@n')

    @template_operator('nx')
    def loop_x(self):
        return self._loop_value('x', '@nx')

    @template_operator('ny')
    def loop_y(self):
        return self._loop_value('y', '@ny')

    @template_operator('N')
    def loop_total(self):
        return self._loop_value('total', '@N')

    # --- Sequences ---
    def _sequence(self, separator: str):
        ctx = self.context

        def run(count=None, *actions):
            if count is None or not actions:
                return ''
            text = to_text(get_value(count)).strip()
            evaluated = text
            if re.search(r'\D', text) and not re.search(r'\d+[x-]\d+', text):
                evaluated = calc(text)
                if evaluated == 0:
                    evaluated = text
            signature = ctx.rand()

            def repeat(index, x, y, total, size_x, size_y):
                return ','.join(
                    to_text(action(index, x, y, total, size_x, size_y, signature))
                    for action in actions
                )
            return separator.join(sequence(evaluated, repeat))
        return run

    @template_operator('m', lazy=True)
    def multiple(self):
        return self._sequence(',')

    @template_operator('M', lazy=True)
    def multiple_spaced(self):
        return self._sequence(' ')

    @template_operator('µ', lazy=True)
    def repeat(self):
        return self._sequence('')

    # --- Selection ---
    @template_operator('p')
    def pick(self):
        ctx, state = self.context, self.state

        def run(*args):
            candidates = list(args) or list(state.last_pick_args)
            picked = ctx.pick(candidates)
            state.last_pick_args = candidates
            return state.push('last_pick', picked)
        return expand(run)

    @template_operator('P')
    def pick_excluding_repeat(self):
        ctx, state = self.context, self.state
        key = ctx.key('P')

        def run(*args):
            bound = bool(args)
            if bound:
                candidates = list(args)
                last = state.get(key)
            else:
                candidates = list(state.last_pick_args)
                last = state.last('last_pick')
            state.last_pick_args = list(candidates)
            if len(candidates) > 1 and last in candidates:
                candidates.remove(last)
            picked = ctx.pick(candidates)
            if bound:
                state[key] = picked
            return state.push('last_pick', picked)
        return expand(run)

    def _by_turn(self, operator: str, choose: Callable[[list, int], Any]):
        ctx, state = self.context, self.state
        key = ctx.key(operator)
        frame = ctx.frame

        def run(*args):
            counter = state.tick(key)
            if not args:
                return state.push('last_pick', '')
            idx = frame.index if frame is not None else counter
            pos = (idx - 1) % len(args)
            return state.push('last_pick', choose(list(args), pos))
        return expand(run)

    @template_operator('pl')
    def pick_by_turn(self):
        return self._by_turn('pl', lambda items, pos: items[pos])

    @template_operator('pr')
    def pick_reverse_by_turn(self):
        return self._by_turn('pr', lambda items, pos: items[len(items) - pos - 1])

    @template_operator('pd')
    def pick_shuffled(self):
        ctx, state = self.context, self.state
        values_key = ctx.key('pd-values')

        def choose(items, pos):
            shuffled = state.setdefault(values_key, lambda: ctx.shuffle(items))
            return shuffled[pos] if pos < len(shuffled) else ''
        return self._by_turn('pd', choose)

    @template_operator('lp')
    def last_pick(self):
        state = self.state
        return lambda n=1: state.last('last_pick', int(to_number(get_value(n), 1)))

    # --- Random & noise ---
    @template_operator('r')
    def random(self):
        ctx, state = self.context, self.state

        def run(*args):
            values = [get_value(a) for a in args]
            transform = by_charcode if values and all(is_letter(v) for v in values) else by_unit
            return state.push('last_rand', transform(ctx.rand)(*values))
        return run

    @template_operator('lr')
    def last_random(self):
        state = self.state
        return lambda n=1: state.last('last_rand', int(to_number(get_value(n), 1)))

    @template_operator('rn')
    def noise_2d(self):
        ctx, state = self.context, self.state
        key = StateKey('rn', ctx.position)
        frame = ctx.frame

        def run(*args):
            named = get_named_arguments(args, ['from', 'to', 'frequency', 'amplitude'])
            start = named.get('from', 0)
            end = named.get('to', start)
            if len(args) == 1:
                start, end = 0, start
            field = state.setdefault(key, lambda: Noise(ctx.shuffle))
            frequency = finite(clamp(to_number(named.get('frequency', 1), 1), 0, math.inf))
            amplitude = finite(clamp(to_number(named.get('amplitude', 1), 1), 0, math.inf))
            if frame is not None and frame.index and frame.total:
                u = (frame.x - 1) / (frame.size_x or 1)
                v = (frame.y - 1) / (frame.size_y or 1)
            else:
                u = (ctx.x - 1) / ctx.grid.x
                v = (ctx.y - 1) / ctx.grid.y
            t = field.noise(u * frequency, v * frequency, 0)
            transform = by_charcode if all(is_letter(n) for n in (start, end)) else by_unit
            value = transform(lambda a, b: map2d(t * amplitude, a, b, amplitude))(start, end)
            return state.push('last_rand', value)
        return run

    @template_operator('noise')
    def noise(self):
        ctx, state = self.context, self.state
        key = StateKey('noise', ctx.position)
        env = {
            'i': ctx.count, 'I': ctx.grid.count,
            'x': ctx.x, 'X': ctx.grid.x,
            'y': ctx.y, 'Y': ctx.grid.y,
            'z': ctx.z, 'Z': ctx.grid.z,
        }

        def run(x=0, y=0, z=0):
            field = state.setdefault(key, lambda: Noise(ctx.shuffle))
            return field.noise(*(
                finite(calc(get_value(c), env)) for c in (x, y, z)
            ))
        return run

    # --- Values ---
    @template_operator('stripe')
    def stripe(self):
        def run(*input):
            colors = [to_text(get_value(c)) for c in input]
            total = len(colors)
            if not total:
                return ''
            groups = [parse_value_group(c) for c in colors]
            sizes = [g[1] for g in groups if len(g) > 1]
            if not sizes:
                return ','.join(
                    f"{c} 0 {format_number(100 / total * (i + 1))}%" for i, c in enumerate(colors)
                )
            default_size = f"(100% - {' - '.join(sizes)}) / {total - len(sizes)}"
            stops = []
            prev = ''
            for group in groups:
                color = group[0] if group else ''
                size = group[1] if len(group) > 1 else default_size
                prev = f"{prev} + {size}" if prev else size
                stops.append(f"{color} 0 calc({prev})")
            return ','.join(stops)
        return run

    @template_operator('calc')
    def calc(self):
        return lambda value='': calc(get_value(value))

    @template_operator('hex')
    def hex(self):
        def run(value=''):
            m = _INT_PREFIX.match(str(get_value(value)))
            if not m:
                return '0'
            digits = m.group(1)
            n = int(digits, 16) if 'x' in digits.lower() else int(digits)
            return format(n, 'x')
        return run

    @template_operator('var')
    def var(self):
        return lambda value='': f"var({get_value(value)})"

    def _uniform(self, name: str):
        uniform = load_config().get('uniforms', {}).get(name, name)
        return lambda *_: f"var(--{uniform})"

    @template_operator('ut')
    def uniform_time(self):
        return self._uniform('time')

    @template_operator('uw')
    def uniform_width(self):
        return self._uniform('width')

    @template_operator('uh')
    def uniform_height(self):
        return self._uniform('height')

    @template_operator('ux')
    def uniform_mousex(self):
        return self._uniform('mousex')

    @template_operator('uy')
    def uniform_mousey(self):
        return self._uniform('mousey')

    # Pass-through values consumed by upstream renderers.
    @template_operator('doodle')
    def doodle(self):
        return lambda value='': get_value(value)

    @template_operator('shaders')
    def shaders(self):
        return lambda value='': get_value(value)

    @template_operator('canvas')
    def canvas(self):
        return lambda value='': get_value(value)

    @template_operator('pattern')
    def pattern(self):
        return lambda value='': get_value(value)

    # --- SVG ---
    @staticmethod
    def _joined(args) -> str:
        return ','.join(to_text(get_value(a)) for a in args)

    @staticmethod
    def _markup(value: str) -> str:
        if not value.startswith('<'):
            value = generate_svg(parse_svg(value))
        return normalize_svg(value)

    @template_operator('svg', lazy=True)
    def svg(self):
        return lambda *args: create_svg_url(self._markup(self._joined(args)))

    @template_operator('Svg', lazy=True)
    def svg_markup(self):
        return lambda *args: self._markup(self._joined(args))

    @template_operator('filter', lazy=True)
    def filter(self):
        ctx, state = self.context, self.state

        def run(*args):
            values = [to_text(get_value(a)) for a in args]
            value = ','.join(values)
            ident = state.unique_id('filter-')
            if values and all(_is_shorthand(v) for v in values):
                value = _filter_shorthand(values, ctx.seed)
            if not value.startswith('<'):
                value = generate_svg(parse_svg(value, type='block', name='filter'))
            markup = re.sub(r'<filter([\s>/])', f'<filter id="{ident}"\\1', normalize_svg(value), count=1)
            return create_svg_url(markup, ident)
        return run

    @template_operator('svg-pattern', lazy=True)
    def svg_pattern(self):
        def run(*args):
            body = _render(PATTERN_TEMPLATE, {'body': self._joined(args)})
            return create_svg_url(generate_svg(parse_svg(body)))
        return run

    # --- Geometry ---
    @template_operator('shape')
    def shape(self):
        return lambda type='', *args: shape_polygon(
            to_text(get_value(type)), *(to_text(get_value(a)) for a in args)
        )

    def _plot(self, operator: str, unit: Optional[str] = None):
        ctx, state = self.context, self.state
        key = StateKey(operator, ctx.position)
        frame = ctx.frame

        def run(commands=''):
            commands = to_text(get_value(commands))
            if frame is not None:
                idx, total = frame.index, frame.total
            else:
                idx, total = ctx.count, ctx.grid.count
            points = state.get(key)
            if points is None:
                if not commands.strip():
                    return ''
                config = parse_shape_commands(commands)
                for directive in ('fill', 'fill-rule', 'frame'):
                    config.pop(directive, None)
                config['points'] = total
                if unit and not config.get('unit'):
                    config['unit'] = unit
                points = state[key] = create_shape_points(config, min=1, max=65536)
            return points[idx - 1] if 0 < idx <= len(points) else ''
        return run

    @template_operator('plot')
    def plot(self):
        return self._plot('plot')

    @template_operator('Plot')
    def plot_unitless(self):
        return self._plot('Plot', unit='none')

    # --- Path & list transforms ---
    @template_operator('invert')
    def invert(self):
        return lambda commands='': motif_path.invert(get_value(commands)).value

    @template_operator('flipH')
    def flip_h(self):
        return lambda commands='': motif_path.flip_h(get_value(commands)).value

    @template_operator('flipV')
    def flip_v(self):
        return lambda commands='': motif_path.flip_v(get_value(commands)).value

    @template_operator('flip')
    def flip(self):
        return lambda commands='': motif_path.flip(get_value(commands)).value

    @template_operator('reverse')
    def reverse(self):
        return lambda *args: motif_path.reverse([to_text(get_value(a)) for a in args]).value

    @template_operator('cycle')
    def cycle(self):
        def run(*args):
            if len(args) == 1:
                separator = ' '
                items = parse_value_group(to_text(get_value(args[0])), symbol=separator)
            else:
                separator = ','
                items = parse_value_group(self._joined(args), symbol=separator)
            return [separator.join(items[i:] + items[:i]) for i in range(len(items))]
        return run

    @template_operator('mirror')
    def mirror(self):
        return lambda *args: list(args) + list(reversed(args))

    @template_operator('Mirror')
    def mirror_extend(self):
        return lambda *args: list(args) + list(reversed(args[:-1]))

    @template_operator('unicode')
    def unicode(self):
        def run(*args):
            out = []
            for code in args:
                n = to_number(get_value(code), None)
                out.append(chr(int(n)) if n is not None and 0 <= n < 0x110000 else get_value(code))
            return out
        return run


def _is_shorthand(value: str) -> bool:
    return bool(re.match(r'^[\d.]', value) or (re.match(r'^\w+', value) and not re.search(r'[{}<>]', value)))


def _filter_shorthand(values, default_seed) -> str:
    named = get_named_arguments(values, ['frequency', 'scale', 'octave', 'seed', 'blur', 'erode', 'dilate'])
    view: Dict[str, Any] = {
        'scale': named.get('scale', 1),
        'seed': named.get('seed', default_seed if default_seed is not None else 0),
        'octave': named.get('octave', ''),
        'has_octave': bool(named.get('octave')),
    }
    for name in ('dilate', 'erode', 'blur'):
        if name in named:
            view[f'has_{name}'] = True
            view[name] = named[name]
    if 'frequency' in named:
        bx, *rest = parse_value_group(named['frequency']) or ['0']
        view.update(has_frequency=True, bx=bx, by=rest[0] if rest else bx)
    return _render(FILTER_TEMPLATE, view)


# =================================================================
# Operator Table
# =================================================================

class OperatorEntry(NamedTuple):
    name: str
    factory: Callable[[Operators], Callable]
    lazy: bool = False

    def bind(self, context: Context) -> Callable:
        """Return the value producer of this operator for `context`."""
        return self.factory(Operators(context))


class OperatorTable(collections.abc.Mapping):
    """Read-only mapping from operator names and aliases to entries."""

    _default: Optional['OperatorTable'] = None

    def __init__(self, entries: Dict[str, OperatorEntry]):
        self._entries = MappingProxyType(dict(entries))

    @classmethod
    def build(cls, aliases: Optional[Dict[str, Any]] = None) -> 'OperatorTable':
        """Scan `Operators` for marked methods and attach the aliases.

        Alias misconfiguration is a programming error and raises
        `OperatorTableError` immediately.
        """
        if aliases is None:
            aliases = load_config().get('aliases', {})
        canonical: Dict[str, OperatorEntry] = {}
        for _, member in inspect.getmembers(Operators, inspect.isfunction):
            if not getattr(member, '_is_operator', False):
                continue
            name = member._operator_name
            if name in canonical:
                raise OperatorTableError(f"Operator defined twice: {name}")
            canonical[name] = OperatorEntry(name, member, member._operator_lazy)

        entries = dict(canonical)
        for target, names in (aliases or {}).items():
            target = str(target)
            if target not in canonical:
                raise OperatorTableError(f"Alias target is not an operator: {target}")
            for alias in names or []:
                alias = str(alias)
                if alias in canonical:
                    raise OperatorTableError(f"Alias shadows an operator: {alias}")
                if alias in entries:
                    raise OperatorTableError(
                        f"Alias defined twice: {alias} -> {entries[alias].name}, {target}"
                    )
                entries[alias] = canonical[target]
        return cls(entries)

    @classmethod
    def default(cls) -> 'OperatorTable':
        if cls._default is None:
            cls._default = cls.build()
        return cls._default

    def resolve(self, name: str) -> OperatorEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise UnknownOperator(name) from None

    def bind(self, name: str, context: Context) -> Callable:
        return self.resolve(name).bind(context)

    def canonical_names(self):
        return sorted({entry.name for entry in self._entries.values()})

    def __getitem__(self, name: str) -> OperatorEntry:
        return self._entries[name]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
