import pytest
from motif.motif_shapes import (
    SHAPE_COMMANDS, create_shape_points, parse_shape_commands, shapes,
)


def test_parse_shape_commands():
    config = parse_shape_commands("Points: 5; r: cos(5t)\nrotate: 30")
    assert config == {"points": "5", "r": "cos(5t)", "rotate": "30"}


def test_parse_shape_commands_comma_statements():
    config = parse_shape_commands("x: cos(t), y: sin(t); scale: 1, 2")
    assert config == {"x": "cos(t)", "y": "sin(t)", "scale": "1, 2"}


def test_square_points_in_percent():
    points = create_shape_points(parse_shape_commands("points: 4"))
    assert points == ["100% 50%", "50% 100%", "0% 50%", "50% 0%"]


def test_unitless_points():
    points = create_shape_points({"points": "4", "unit": "none"})
    assert points == ["1 0", "0 1", "-1 0", "0 -1"]


def test_other_units_are_appended():
    points = create_shape_points({"points": "4", "unit": "px"})
    assert points[0] == "1px 0px"


def test_point_count_is_clamped():
    assert len(create_shape_points({"points": "1"})) == 3
    assert len(create_shape_points({"points": "1"}, min=1)) == 1
    assert len(create_shape_points({"points": "99999"})) == 3600


def test_default_point_count():
    assert len(create_shape_points({})) == 180


def test_scale_and_move():
    points = create_shape_points({"points": "4", "unit": "none", "scale": "2", "move": "1 1"})
    assert points[0] == "3 1"


@pytest.mark.parametrize("name", sorted(SHAPE_COMMANDS))
def test_built_in_shapes_produce_points(name):
    points = shapes[name]()
    assert len(points) >= 3
    assert all(p.endswith("%") for p in points)


def test_built_in_shape_point_counts():
    assert len(shapes["triangle"]()) == 3
    assert len(shapes["hexagon"]()) == 6
    assert len(shapes["star"]()) == 10
