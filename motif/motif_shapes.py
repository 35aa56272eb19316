"""
Shape commands and point sampling.

A shape is described by commands such as `points: 5; r: cos(5t); rotate: 30`
and sampled into CSS point strings (`"50% 0%"`) for `polygon()` and `plot`.
"""
import math
from typing import Any, Callable, Dict, List

from motif.motif_calc import calc
from motif.motif_values import (
    clamp, format_number, is_empty, parse_value_group, to_number
)

_POINT_KEYS = ('points', 'vertices', 'split')
DEFAULT_POINTS = 180


def _split_statements(text: str) -> List[str]:
    statements = []
    for line in str(text).replace('\n', ';').split(';'):
        parts = parse_value_group(line, symbol=',')
        # `x: cos(t), y: sin(t)` holds two statements; `scale: 1, 2` holds one.
        merged: List[str] = []
        for part in parts:
            if ':' in part or not merged:
                merged.append(part)
            else:
                merged[-1] = f"{merged[-1]}, {part}"
        statements.extend(merged)
    return statements


def parse_shape_commands(text) -> Dict[str, str]:
    """Parse `key: value` shape commands into a config dict (keys lowercased)."""
    config: Dict[str, str] = {}
    for statement in _split_statements(text or ''):
        if ':' not in statement:
            continue
        key, value = statement.split(':', 1)
        key = key.strip().lower()
        value = value.strip()
        if key:
            config[key] = value
    return config


def _pair(value, default):
    items = [calc(v) for v in parse_value_group(str(value).replace(',', ' '))]
    if not items:
        return default, default
    if len(items) == 1:
        return items[0], items[0]
    return items[0], items[1]


def _fmt(v) -> str:
    v = round(v, 6)
    return format_number(0 if v == 0 else v)


def create_shape_points(config: Dict[str, Any], min: int = 3, max: int = 3600) -> List[str]:
    """Sample the point list described by a parsed shape config."""
    count = next((config[k] for k in _POINT_KEYS if not is_empty(config.get(k))), DEFAULT_POINTS)
    split = int(clamp(int(to_number(count) or 0), min, max))
    px = config.get('x')
    py = config.get('y')
    pr = config.get('r')
    turn = to_number(calc(config['turn'])) if not is_empty(config.get('turn')) else 1
    rotate = calc(config.get('rotate') or config.get('degree') or 0)
    sx, sy = _pair(config.get('scale', ''), 1)
    mx, my = _pair(config.get('move', ''), 0)
    unit = config.get('unit') or '%'

    angle = math.radians(rotate)
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    step = math.pi * 2 * turn / split
    points = []
    for i in range(split):
        t = step * i
        env = {'t': t, 'θ': t, 'i': i + 1, 'n': split}
        if not is_empty(pr):
            env['r'] = calc(pr, env)
            x = env['r'] * math.cos(t)
            y = env['r'] * math.sin(t)
        else:
            x, y = math.cos(t), math.sin(t)
        if not is_empty(px):
            x = calc(px, env)
        env['x'] = x
        if not is_empty(py):
            y = calc(py, env)
        x, y = x * cos_a - y * sin_a, x * sin_a + y * cos_a
        x, y = x * sx + mx, y * sy + my
        points.append(_format_point(x, y, unit))
    return points


def _format_point(x, y, unit: str) -> str:
    if unit == '%':
        return f"{_fmt(x * 50 + 50)}% {_fmt(y * 50 + 50)}%"
    if unit == 'none':
        return f"{_fmt(x)} {_fmt(y)}"
    return f"{_fmt(x)}{unit} {_fmt(y)}{unit}"


# --------------------------
# Built-in shapes
# --------------------------

def _hypocycloid(k=3):
    k = to_number(k, 3) or 3
    return (f"points: 180; scale: {format_number(1 / k)}; "
            f"x: ({k} - 1)cos(t) + cos(({k} - 1)t); "
            f"y: ({k} - 1)sin(t) - sin(({k} - 1)t)")


def _clover(k=3):
    k = to_number(k, 3) or 3
    return f"points: 240; r: cos({k}t); scale: .98"


def _bud(k=3):
    k = to_number(k, 3) or 3
    return f"points: 240; r: 1 + .2cos({k}t); scale: .8"


SHAPE_COMMANDS: Dict[str, Callable[..., str]] = {
    'circle': lambda *a: 'points: 180; scale: .99',
    'triangle': lambda *a: 'points: 3; rotate: -90; move: 0 .25',
    'rhombus': lambda *a: 'points: 4; rotate: -90',
    'diamond': lambda *a: 'points: 4; rotate: -90',
    'pentagon': lambda *a: 'points: 5; rotate: -90',
    'hexagon': lambda *a: 'points: 6; scale: .98',
    'heptagon': lambda *a: 'points: 7; rotate: -90',
    'octagon': lambda *a: 'points: 8; rotate: 22.5; scale: .99',
    'star': lambda *a: 'points: 10; r: .38 + (i % 2) * .62; rotate: -90',
    'infinity': lambda *a: 'points: 180; scale: .99; x: cos(t) / (sin(t)^2 + 1); y: x * sin(t)',
    'heart': lambda *a: ('points: 180; scale: .9; x: sin(t)^3; '
                         'y: -(13cos(t) - 5cos(2t) - 2cos(3t) - cos(4t)) / 16'),
    'hypocycloid': _hypocycloid,
    'astroid': lambda *a: _hypocycloid(4),
    'clover': _clover,
    'bud': _bud,
}


def built_in_shape(name: str, args=()) -> List[str]:
    config = parse_shape_commands(SHAPE_COMMANDS[name](*args))
    return create_shape_points(config, min=3, max=3600)


shapes: Dict[str, Callable[..., List[str]]] = {
    name: (lambda args=(), _name=name: built_in_shape(_name, args)) for name in SHAPE_COMMANDS
}
