"""
Value helpers shared by the operators: coercion, formatting, value groups,
named arguments, unit and character-code interpolation, sequences.
"""
import math
import re
from typing import Any, Callable, Iterable, List, Optional

_UNIT = re.compile(r'(%|cm|fr|rem|em|ex|in|mm|pc|pt|px|vh|vw|vmax|vmin|deg|ms|grad|rad|turn|s)$')
_NUMBER = re.compile(r'^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$')
_RANGE_ITEM = re.compile(r'(\d+|\w)-(\d+|\w)|(\w)')

_OPEN = {'(': ')', '[': ']', '{': '}'}
_QUOTES = ('"', "'")


def get_value(v):
    """Resolve a lazy argument (a zero-argument thunk) to its value."""
    return v() if callable(v) else v


def is_nil(v) -> bool:
    return v is None


def is_empty(v) -> bool:
    return v is None or v == ''


def is_letter(v) -> bool:
    return isinstance(v, str) and len(v) == 1 and v.isascii() and v.isalpha()


def to_number(v, default=0):
    """Coerce to int/float; anything unreadable becomes `default`."""
    if isinstance(v, bool):
        return int(v)
    if isinstance(v, (int, float)):
        return v
    text = str(v if v is not None else '').strip()
    if not text:
        return default
    if _NUMBER.match(text):
        if re.match(r'^[-+]?\d+$', text):
            return int(text)
        return float(text)
    if text.lower().startswith(('0x', '-0x')):
        try:
            return int(text, 16)
        except ValueError:
            return default
    return default


def format_number(n) -> str:
    if isinstance(n, bool):
        return str(int(n))
    if isinstance(n, float):
        if math.isnan(n):
            return 'NaN'
        if math.isinf(n):
            return 'Infinity' if n > 0 else '-Infinity'
        if n.is_integer() and abs(n) < 1e21:
            return str(int(n))
        return repr(n)
    return str(n)


def to_text(value) -> str:
    """Flatten an operator result into template text."""
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return ','.join(to_text(v) for v in value)
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def finite(n, default=0):
    """`n`, or `default` when it is NaN or infinite."""
    return n if math.isfinite(n) else default


def lerp(t, a, b):
    return a + t * (b - a)


def clamp(n, lo, hi):
    return max(lo, min(hi, n))


def remainder(a, b):
    """Remainder carrying the sign of the dividend."""
    result = math.fmod(a, b)
    if isinstance(a, int) and isinstance(b, int):
        return int(result)
    return result


def cell_id(x, y, z) -> str:
    return f"c-{x}-{y}-{z}"


# --------------------------
# Value groups
# --------------------------

def parse_value_group(text, symbol: str = ' ') -> List[str]:
    """Split `text` on `symbol` outside brackets and quotes.

    A space symbol splits on any run of whitespace. Empty tokens are dropped.
    """
    text = str(text if text is not None else '')
    tokens: List[str] = []
    current: List[str] = []
    stack: List[str] = []
    quote: Optional[str] = None

    def flush():
        token = ''.join(current).strip()
        if token:
            tokens.append(token)
        current.clear()

    for c in text:
        if quote:
            current.append(c)
            if c == quote:
                quote = None
            continue
        if c in _QUOTES:
            quote = c
            current.append(c)
            continue
        if c in _OPEN:
            stack.append(_OPEN[c])
        elif stack and c == stack[-1]:
            stack.pop()
        if not stack and ((symbol == ' ' and c.isspace()) or (symbol != ' ' and c == symbol)):
            flush()
            continue
        current.append(c)
    flush()
    return tokens


def get_named_arguments(args: Iterable[Any], names: List[str]) -> dict:
    """Read `name=value` and positional arguments in `names` order.

    Positional arguments stop counting once a named argument is seen.
    """
    result = {}
    in_order = True
    for i, arg in enumerate(args):
        text = str(get_value(arg)).strip()
        if '=' in text:
            name, value = (part.strip() for part in text.split('=', 1))
            if name in names:
                result[name] = value
            in_order = False
        elif in_order and i < len(names):
            result[names[i]] = text
    return result


# --------------------------
# Ranges
# --------------------------

def expand_ranges(args: Iterable[Any]) -> List[Any]:
    """Expand bracketed ranges: `[a-e]`, `[1-5]`, `[a-c1-3]`."""
    out = []
    for arg in args:
        value = get_value(arg)
        if isinstance(value, str) and len(value) > 2 and value[0] == '[' and value[-1] == ']':
            out.extend(_build_range(value[1:-1]))
        else:
            out.append(value)
    return out


def _build_range(body: str) -> List[str]:
    items: List[str] = []
    for m in _RANGE_ITEM.finditer(body):
        start, end, single = m.groups()
        if single is not None:
            items.append(single)
        elif start.isdigit() and end.isdigit():
            a, b = int(start), int(end)
            step = 1 if b >= a else -1
            items.extend(str(n) for n in range(a, b + step, step))
        elif len(start) == 1 and len(end) == 1:
            a, b = ord(start), ord(end)
            step = 1 if b >= a else -1
            items.extend(chr(n) for n in range(a, b + step, step))
        else:
            items.extend([start, end])
    return items


def expand(fn: Callable) -> Callable:
    """Wrap a variadic operator so its arguments have ranges expanded."""
    def wrapper(*args):
        return fn(*expand_ranges(args))
    return wrapper


# --------------------------
# Interpolation transforms
# --------------------------

def get_unit(v) -> str:
    if v is None:
        return ''
    m = _UNIT.search(str(v).strip())
    return m.group(0) if m else ''


def remove_unit(v):
    unit = get_unit(v)
    text = str(v).strip()
    if unit:
        text = text[:-len(unit)]
    return to_number(text)


def by_unit(fn: Callable) -> Callable:
    """Apply a numeric function to unit-carrying values, keeping the unit."""
    def wrapper(*args):
        units = [get_unit(a) for a in args]
        values = [remove_unit(a) for a in args]
        result = fn(*values)
        unit = next((u for u in units if u), '')
        return f"{format_number(result)}{unit}" if unit else result
    return wrapper


def by_charcode(fn: Callable) -> Callable:
    """Apply a numeric function to letters through their character codes."""
    def wrapper(*args):
        codes = [ord(str(a)[0]) for a in args]
        code = finite(fn(*codes))
        # codes wrap to 16 bits
        return chr(int(round(code)) % 0x10000)
    return wrapper


# --------------------------
# Sequences
# --------------------------

MAX_SEQUENCE = 65536


def sequence(count, fn: Callable) -> list:
    """Call `fn(index, x, y, total, size_x, size_y)` over a count like `5`, `3x4`, `2-3`."""
    parts = re.split(r'[x-]', str(count).strip(), maxsplit=1)
    try:
        cx = math.ceil(float(parts[0]))
        cy = math.ceil(float(parts[1])) if len(parts) > 1 else 1
    except (ValueError, OverflowError):
        return []
    if cx <= 0 or cy <= 0:
        return []
    total = min(cx * cy, MAX_SEQUENCE)
    out = []
    for index in range(1, total + 1):
        y, x = divmod(index - 1, cx)
        out.append(fn(index, x + 1, y + 1, total, cx, cy))
    return out


# --------------------------
# Seeded randomness
# --------------------------

def make_rand(rng) -> Callable[..., float]:
    """Build `rand()`, `rand(end)`, `rand(start, end)` over a `random.Random`."""
    def rand(*args):
        if not args:
            start, end = 0, 1
        elif len(args) == 1:
            start, end = 0, args[0]
        else:
            start, end = args[0], args[1]
        return lerp(rng.random(), start, end)
    return rand


def make_shuffle(rng) -> Callable[[list], list]:
    def shuffle(items):
        items = list(items)
        rng.shuffle(items)
        return items
    return shuffle
