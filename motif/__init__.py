from motif.motif_datatypes import (
    Context, Grid, LoopFrame, StateKey, StateStore, HistoryStack, Outcome,
    OperatorTableError, UnknownOperator,
)
from motif.motif_calc import calc
from motif.motif_operators import OperatorTable, OperatorEntry, Operators
from motif.motif_runtime import Call, RenderPass, RenderResult

__all__ = [
    "Context", "Grid", "LoopFrame", "StateKey", "StateStore", "HistoryStack", "Outcome",
    "OperatorTableError", "UnknownOperator",
    "calc", "OperatorTable", "OperatorEntry", "Operators",
    "Call", "RenderPass", "RenderResult",
]
