"""
Defines the core data types for the motif expression runtime.

This module provides the per-cell evaluation Context, the per-pass State
Store with its history stacks, and the small value types shared by the
operators (grid totals, nested-loop frames, fail-soft outcomes).
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple


class OperatorTableError(Exception):
    """Raised when the operator table itself is misconfigured."""


class UnknownOperator(KeyError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


# =================================================================
# Value Types
# =================================================================

class Grid(NamedTuple):
    """Grid totals: columns, rows, depth and the number of cells."""
    x: int = 1
    y: int = 1
    z: int = 1
    count: int = 1

    @classmethod
    def of(cls, x: int, y: int = 1, z: int = 1) -> 'Grid':
        return cls(x, y, z, x * y * z)


class LoopFrame(NamedTuple):
    """The innermost active sequence expansion, as seen by nested operators."""
    index: int
    x: int
    y: int
    total: int
    size_x: int = 0
    size_y: int = 0
    signature: Any = None


class StateKey(NamedTuple):
    """Scopes per-call-site state: (operator, call site, loop signature)."""
    operator: str
    site: Any
    signature: Any = None


class Outcome(NamedTuple):
    """Result of a fail-soft transform; `fallback` marks the unparsed path."""
    value: Any
    fallback: bool = False


# =================================================================
# History & State
# =================================================================

class HistoryStack:
    """Append-only record of produced values, queried by recency."""

    def __init__(self):
        self.items: List[Any] = []

    def push(self, value):
        self.items.append(value)
        return value

    def last(self, n: int = 1):
        """Return the value `n` positions from the top (1 = most recent), or ''."""
        if n < 1 or n > len(self.items):
            return ''
        return self.items[-n]

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self):
        return f"<HistoryStack depth={len(self.items)}>"


class StateStore:
    """Mutable state shared by every operator call of one rendering pass.

    Per-call-site values (counters, shuffled lists, noise fields, cached
    points) live under structured `StateKey`s. Named history stacks
    (`last_pick`, `last_rand`) are shared by all call sites.
    """

    def __init__(self):
        self.slots: Dict[StateKey, Any] = {}
        self.stacks: Dict[str, HistoryStack] = {}
        self.last_pick_args: List[Any] = []
        self._ids = 0

    def __getitem__(self, key: StateKey):
        return self.slots[key]

    def __setitem__(self, key: StateKey, value):
        if not isinstance(key, StateKey):
            raise TypeError(f"State key must be a StateKey, not {type(key)}")
        self.slots[key] = value

    def __contains__(self, key) -> bool:
        return key in self.slots

    def get(self, key: StateKey, default=None):
        return self.slots.get(key, default)

    def setdefault(self, key: StateKey, factory: Callable[[], Any]):
        """Create the value on first touch; it is kept for the rest of the pass."""
        if key not in self.slots:
            self[key] = factory()
        return self.slots[key]

    def tick(self, key: StateKey) -> int:
        """Increment and return the counter stored under `key`."""
        value = self.slots.get(key, 0) + 1
        self.slots[key] = value
        return value

    def history(self, name: str) -> HistoryStack:
        stack = self.stacks.get(name)
        if stack is None:
            stack = self.stacks[name] = HistoryStack()
        return stack

    def push(self, name: str, value):
        return self.history(name).push(value)

    def last(self, name: str, n: int = 1):
        stack = self.stacks.get(name)
        return stack.last(n) if stack is not None else ''

    def unique_id(self, prefix: str = '') -> str:
        self._ids += 1
        return f"{prefix}{self._ids}"


# =================================================================
# Evaluation Context
# =================================================================

@dataclass(frozen=True)
class Context:
    """Everything an operator factory may read for one cell evaluation."""
    x: int = 1
    y: int = 1
    z: int = 1
    count: int = 1
    grid: Grid = Grid()
    extra: Tuple[LoopFrame, ...] = ()
    position: Any = None
    rand: Optional[Callable[..., float]] = None
    shuffle: Optional[Callable[[List[Any]], List[Any]]] = None
    seed: Any = None
    state: StateStore = field(default_factory=StateStore)

    @property
    def frame(self) -> Optional[LoopFrame]:
        """The innermost nested-loop frame, if any."""
        return self.extra[-1] if self.extra else None

    @property
    def signature(self):
        frame = self.frame
        return frame.signature if frame is not None else None

    def key(self, operator: str) -> StateKey:
        return StateKey(operator, self.position, self.signature)

    def pick(self, items):
        items = list(items)
        if not items:
            return ''
        return items[int(self.rand() * len(items))]

    def at_site(self, position) -> 'Context':
        return replace(self, position=position)

    def nested(self, frame: LoopFrame) -> 'Context':
        return replace(self, extra=self.extra + (frame,))
