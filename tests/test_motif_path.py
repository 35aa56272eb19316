import pytest
from motif.motif_path import flip, flip_h, flip_v, invert, parse_svg_path, reverse


def test_parse_svg_path_commands():
    parsed = parse_svg_path("M0 0 h10 v-5.5 z")
    assert parsed.valid
    assert [c.name for c in parsed.commands] == ["M", "h", "v", "z"]
    assert parsed.commands[2].value == [-5.5]


@pytest.mark.parametrize("text", ["", "not a path", "10 20", "M0 0 #"])
def test_parse_svg_path_invalid(text):
    assert not parse_svg_path(text).valid


@pytest.mark.parametrize("fn, text, expected", [
    (invert, "M0 0 h10 v20", "M0 0 v10 h20"),
    (invert, "M0 0 H10 V20", "M0 0 V10 H20"),
    (flip_h, "M0 0 h10 v20", "M0 0 h-10 v20"),
    (flip_v, "M0 0 h10 v20", "M0 0 h10 v-20"),
    (flip, "M0 0 h10 v20", "M0 0 h-10 v-20"),
])
def test_path_transforms(fn, text, expected):
    outcome = fn(text)
    assert not outcome.fallback
    assert outcome.value == expected


@pytest.mark.parametrize("fn", [invert, flip_h, flip_v, flip])
def test_path_transforms_fall_back_to_input(fn):
    outcome = fn("red blue")
    assert outcome.fallback
    assert outcome.value == "red blue"


def test_reverse_path_commands():
    outcome = reverse(["M0 0", "L10 10", "h5"])
    assert not outcome.fallback
    assert outcome.value == "h5 L10 10 M0 0"


def test_reverse_plain_values():
    outcome = reverse(["x", "y", "z"])
    assert outcome.fallback
    assert outcome.value == ["z", "y", "x"]
