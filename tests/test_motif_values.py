import random

import pytest
from motif.motif_values import (
    by_charcode, by_unit, expand_ranges, format_number, get_named_arguments,
    get_unit, lerp, make_rand, make_shuffle, parse_value_group, remainder,
    sequence, to_number, to_text,
)


@pytest.mark.parametrize("text, symbol, expected", [
    ("a b  c", " ", ["a", "b", "c"]),
    ("red 10px, blue", ",", ["red 10px", "blue"]),
    ("rgb(1, 2, 3), blue", ",", ["rgb(1, 2, 3)", "blue"]),
    ("a [b c] d", " ", ["a", "[b c]", "d"]),
    ("'x, y', z", ",", ["'x, y'", "z"]),
    ("", " ", []),
])
def test_parse_value_group(text, symbol, expected):
    assert parse_value_group(text, symbol=symbol) == expected


def test_named_arguments_mix_positional_and_named():
    named = get_named_arguments(["0", "to=10", "5"], ["from", "to", "frequency"])
    assert named == {"from": "0", "to": "10"}


def test_named_arguments_positional_order():
    named = get_named_arguments(["1", "2"], ["from", "to", "frequency"])
    assert named == {"from": "1", "to": "2"}


@pytest.mark.parametrize("args, expected", [
    (["[a-e]"], ["a", "b", "c", "d", "e"]),
    (["[1-3]"], ["1", "2", "3"]),
    (["[3-1]"], ["3", "2", "1"]),
    (["[a-c1-3]"], ["a", "b", "c", "1", "2", "3"]),
    (["[xyz]"], ["x", "y", "z"]),
    (["x", "[]"], ["x", "[]"]),
])
def test_expand_ranges(args, expected):
    assert expand_ranges(args) == expected


@pytest.mark.parametrize("value, expected", [
    ("3", 3), ("-2.5", -2.5), (".5", 0.5), ("0x1f", 31),
    ("abc", 0), ("", 0), (None, 0), (7, 7),
])
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_to_number_default():
    assert to_number("nope", None) is None


@pytest.mark.parametrize("value, expected", [
    (3.0, "3"), (2.5, "2.5"), (-0.0, "0"), (7, "7"),
    (float("nan"), "NaN"), (float("inf"), "Infinity"),
])
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_to_text_flattens_lists():
    assert to_text(["a", 1, 2.0]) == "a,1,2"
    assert to_text(None) == ""


def test_remainder_keeps_dividend_sign():
    assert remainder(7, 3) == 1
    assert remainder(-7, 3) == -1
    assert remainder(7.5, 2) == 1.5


def test_lerp():
    assert lerp(0.5, 10, 20) == 15


@pytest.mark.parametrize("value, unit", [
    ("10px", "px"), ("50%", "%"), ("1.5turn", "turn"), ("2", ""),
])
def test_get_unit(value, unit):
    assert get_unit(value) == unit


def test_by_unit_keeps_unit():
    mid = by_unit(lambda a, b: lerp(0.5, a, b))
    assert mid("10px", "20px") == "15px"
    assert mid("10", "20px") == "15px"
    assert mid(10, 20) == 15


def test_by_charcode_interpolates_letters():
    mid = by_charcode(lambda a, b: lerp(0.5, a, b))
    assert mid("a", "c") == "b"


@pytest.mark.parametrize("count, expected", [
    ("3", [(1, 1, 1), (2, 2, 1), (3, 3, 1)]),
    ("2x2", [(1, 1, 1), (2, 2, 1), (3, 1, 2), (4, 2, 2)]),
    ("2-2", [(1, 1, 1), (2, 2, 1), (3, 1, 2), (4, 2, 2)]),
    (2.2, [(1, 1, 1), (2, 2, 1), (3, 3, 1)]),
    ("0", []),
    ("abc", []),
])
def test_sequence(count, expected):
    assert sequence(count, lambda i, x, y, total, cx, cy: (i, x, y)) == expected


def test_sequence_reports_totals():
    seen = sequence("3x2", lambda i, x, y, total, cx, cy: (total, cx, cy))
    assert set(seen) == {(6, 3, 2)}


def test_make_rand_ranges():
    rand = make_rand(random.Random(0))
    for _ in range(50):
        assert 0 <= rand() < 1
        assert 0 <= rand(10) <= 10
        assert 5 <= rand(5, 6) <= 6


def test_make_rand_is_seeded():
    a = make_rand(random.Random("seed"))
    b = make_rand(random.Random("seed"))
    assert [a() for _ in range(5)] == [b() for _ in range(5)]


def test_make_shuffle_copies():
    items = [1, 2, 3, 4]
    shuffled = make_shuffle(random.Random(3))(items)
    assert items == [1, 2, 3, 4]
    assert sorted(shuffled) == items


@pytest.mark.parametrize("count", ["0x100000000", "100000000x0", "2x-3"])
def test_sequence_with_an_empty_side_is_empty(count):
    assert sequence(count, lambda *f: f) == []


def test_sequence_total_is_capped():
    seen = sequence("2x100000", lambda i, x, y, total, cx, cy: (i, x, y, total))
    assert len(seen) == 65536
    assert seen[-1] == (65536, 2, 32768, 65536)


def test_by_charcode_wraps_out_of_range_codes():
    assert by_charcode(lambda a: a + 0x10000)("a") == "a"
    assert by_charcode(lambda a: -1)("a") == "\uffff"
    assert by_charcode(lambda a: float("inf"))("a") == "\x00"
