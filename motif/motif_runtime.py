"""
The render pass: evaluates an operator-invocation tree over every grid cell.

Building the tree from template text is the job of an upstream parser; the
pass only needs `Call` nodes whose arguments are text or nested calls.
"""
import os
import random
import sys
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Literal, Optional, Sequence, Tuple, Union

from motif.motif_datatypes import Context, Grid, LoopFrame, StateStore, UnknownOperator
from motif.motif_operators import OperatorTable
from motif.motif_values import make_rand, make_shuffle, to_text


def _dbg(*parts):
    if os.environ.get("MOTIF_DEBUG"):
        try:
            print("[DBG]", *parts, file=sys.stderr)
        except Exception:
            pass


class Call:
    """One operator invocation; `site` identifies its template position."""

    def __init__(self, name: str, args: Sequence[Union[str, 'Call']] = (), site: Any = None):
        self.name = name
        self.args = list(args)
        self.site = site if site is not None else id(self)

    def __repr__(self):
        return f"<Call {self.name} args={len(self.args)} site={self.site!r}>"


@dataclass
class RenderResult:
    """The structured result of a render pass."""
    status: Literal['success', 'error']
    value: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    def format_error(self) -> str:
        if self.status != 'error':
            return ""
        return str(self.error_message or "Unknown error")


class RenderPass:
    """Evaluates templates over a grid with one shared State Store per pass.

    Cells are visited depth first, then rows, then columns. `render()` starts
    from a fresh store and a fresh RNG seeded with `seed`, so repeated renders
    of the same tree produce the same cells.
    """

    def __init__(self, grid: Union[Grid, Tuple[int, ...]] = (1, 1, 1), seed: Any = None,
                 table: Optional[OperatorTable] = None):
        self.grid = grid if isinstance(grid, Grid) else Grid.of(*grid)
        self.seed = seed
        self.table = table or OperatorTable.default()
        self.reset()

    def reset(self):
        self.state = StateStore()
        self.rng = random.Random(self.seed)
        self.rand = make_rand(self.rng)
        self.shuffle = make_shuffle(self.rng)

    def context(self, x: int = 1, y: int = 1, z: int = 1) -> Context:
        g = self.grid
        count = x + (y - 1) * g.x + (z - 1) * g.x * g.y
        return Context(
            x=x, y=y, z=z, count=count, grid=g,
            rand=self.rand, shuffle=self.shuffle, seed=self.seed, state=self.state,
        )

    def cells(self) -> Iterator[Context]:
        g = self.grid
        for z in range(1, g.z + 1):
            for y in range(1, g.y + 1):
                for x in range(1, g.x + 1):
                    yield self.context(x, y, z)

    def evaluate(self, node: Any, context: Context) -> Any:
        if not isinstance(node, Call):
            return node
        entry = self.table.resolve(node.name)
        ctx = context.at_site(node.site)
        fn = entry.bind(ctx)
        if entry.lazy:
            args = [self._thunk(arg, ctx) for arg in node.args]
        else:
            args = [to_text(self.evaluate(arg, ctx)) for arg in node.args]
        _dbg("CALL", node.name, "->", entry.name, "argc", len(args), "cell", ctx.count)
        return fn(*args)

    def _thunk(self, node: Any, context: Context):
        def thunk(*frame):
            ctx = context.nested(LoopFrame(*frame)) if frame else context
            return to_text(self.evaluate(node, ctx))
        return thunk

    def render(self, node: Any) -> RenderResult:
        """Evaluate `node` once per cell and collect the text of every cell."""
        self.reset()
        try:
            cells = [to_text(self.evaluate(node, ctx)) for ctx in self.cells()]
        except UnknownOperator as e:
            return RenderResult('error', error_message=f"UnknownOperator: {e.name}")
        except Exception as e:
            _dbg("ERROR", type(e).__name__, e)
            return RenderResult('error', error_message=f"InternalError: {e}")
        return RenderResult('success', cells)

    def render_cell(self, node: Any, x: int = 1, y: int = 1, z: int = 1) -> str:
        """Evaluate `node` for one cell against the current store."""
        return to_text(self.evaluate(node, self.context(x, y, z)))
