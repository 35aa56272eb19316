import pytest
from motif import Call, RenderPass
from motif.motif_operators import OperatorEntry, OperatorTable


def _render(node, grid=(1, 1), seed=1):
    result = RenderPass(grid, seed=seed).render(node)
    assert result.status == "success", result.format_error()
    return result.value


def test_cells_visit_columns_then_rows_then_depth():
    assert _render(Call("i"), grid=(2, 2)) == ["1", "2", "3", "4"]
    assert _render(Call("id"), grid=(2, 2)) == ["c-1-1-1", "c-2-1-1", "c-1-2-1", "c-2-2-1"]
    assert _render(Call("z"), grid=(1, 1, 2)) == ["1", "2"]


def test_nested_calls_receive_text():
    assert _render(Call("calc", [Call("i", ["*2"])]), grid=(3, 1)) == ["2", "4", "6"]


def test_list_results_are_joined():
    assert _render(Call("cycle", ["a", "b"])) == ["a,b,b,a"]


def test_render_is_deterministic_per_seed():
    tree = Call("m", ["5", Call("p", ["a", "b", "c"])])
    render = RenderPass((3, 3), seed=7)
    first = render.render(tree).value
    assert render.render(tree).value == first
    assert RenderPass((3, 3), seed=7).render(tree).value == first


def test_render_starts_from_a_fresh_store():
    render = RenderPass((3, 1), seed=1)
    tree = Call("pl", ["a", "b", "c"], site="s")
    assert render.render(tree).value == ["a", "b", "c"]
    assert render.render(tree).value == ["a", "b", "c"]


def test_pick_by_turn_counts_across_cells():
    assert _render(Call("pl", ["a", "b"], site="s"), grid=(3, 1)) == ["a", "b", "a"]


def test_sequence_bodies_see_the_loop():
    assert _render(Call("m", ["3", Call("n")])) == ["1,2,3"]
    assert _render(Call("µ", ["2x2", Call("nx")])) == ["1212"]
    assert _render(Call("M", ["3", Call("i", ["+1"])])) == ["2 2 2"]


def test_pick_by_turn_inside_a_sequence_uses_the_loop_index():
    assert _render(Call("m", ["4", Call("pl", ["a", "b"])])) == ["a,b,a,b"]


def test_sequence_count_expression():
    assert _render(Call("m", ["1 + 2", Call("n")])) == ["1,2,3"]


def test_sequence_count_falls_back_to_dimensions():
    assert _render(Call("m", ["2 x 3", Call("n")])) == ["1,2,3,4,5,6"]


def test_nested_sequences_use_the_innermost_loop():
    inner = Call("m", ["2", Call("n")])
    assert _render(Call("M", ["2", inner])) == ["1,2 1,2"]


def test_render_cell_shares_the_store():
    render = RenderPass((1, 1), seed=1)
    tree = Call("pl", ["a", "b"], site="s")
    assert render.render_cell(tree) == "a"
    assert render.render_cell(tree) == "b"


def test_unknown_operator_is_an_error_result():
    result = RenderPass().render(Call("nope"))
    assert result.status == "error"
    assert result.value == []
    assert result.format_error() == "UnknownOperator: nope"


def test_unknown_operator_inside_a_sequence():
    result = RenderPass().render(Call("m", ["2", Call("nope")]))
    assert result.format_error() == "UnknownOperator: nope"


def test_internal_errors_are_reported():
    table = OperatorTable({"boom": OperatorEntry("boom", lambda ops: (lambda *a: 1 / 0))})
    result = RenderPass(table=table).render(Call("boom"))
    assert result.status == "error"
    assert result.format_error() == "InternalError: division by zero"


def test_success_has_no_error_text():
    result = RenderPass().render(Call("i"))
    assert result.format_error() == ""


def test_debug_logging(monkeypatch, capsys):
    monkeypatch.setenv("MOTIF_DEBUG", "1")
    RenderPass().render(Call("i"))
    err = capsys.readouterr().err
    assert "[DBG] CALL i -> i argc 0 cell 1" in err


def test_debug_logging_is_off_by_default(monkeypatch, capsys):
    monkeypatch.delenv("MOTIF_DEBUG", raising=False)
    RenderPass().render(Call("i"))
    assert capsys.readouterr().err == ""


@pytest.mark.parametrize("node", [
    Call("m", ["0x100000000", Call("n")]),
    Call("rn", ["a", "c", "amplitude=20000"]),
    Call("noise", ["1e400", "0"]),
])
def test_out_of_range_arguments_do_not_abort_the_render(node):
    result = RenderPass((2, 2), seed=1).render(node)
    assert result.status == "success"
    assert len(result.value) == 4
