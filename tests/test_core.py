"""
Shared helpers: points, geometry/statistics, parameter specs.
"""

import math
import pytest

from algorithms.core import (
    InsufficientDataError, InvalidInputError, ParameterSpec, Point, distance, gini, mean, to_numpy, to_points,
)


def test_point_from_raw_variants():
    assert Point.from_raw({"x": 1, "y": 2}) == Point(1.0, 2.0)
    assert Point.from_raw({"x": 1, "y": 2, "label": "1"}) == Point(1.0, 2.0, 1)
    assert Point.from_raw((3, 4)) == Point(3.0, 4.0)
    assert Point.from_raw([3, 4, 0]).label == 0
    p = Point(5, 6)
    assert Point.from_raw(p) is p


def test_point_from_raw_rejects_bad_input():
    with pytest.raises(ValueError):
        Point.from_raw({"x": 1})
    with pytest.raises(ValueError):
        Point.from_raw((1, 2, 3, 4))


def test_point_to_dict_omits_missing_label():
    assert Point(1, 2).to_dict() == {"x": 1, "y": 2}
    assert Point(1, 2, 0).to_dict() == {"x": 1, "y": 2, "label": 0}


def test_points_are_immutable():
    p = Point(1, 2)
    with pytest.raises(AttributeError):
        p.x = 3


def test_to_numpy_shapes():
    assert to_numpy([]).shape == (0, 2)
    X = to_numpy(to_points([(1, 2), (3, 4)]))
    assert X.tolist() == [[1.0, 2.0], [3.0, 4.0]]


def test_mean_and_distance():
    assert mean([]) == 0.0
    assert mean([1, 2, 3, 6]) == 3.0
    assert distance(Point(0, 0), Point(3, 4)) == 5.0
    assert distance((1, 1), (4, 5)) == 5.0
    assert math.isclose(distance(Point(0, 0), (1, 1)), math.sqrt(2))


def test_gini():
    assert gini([]) == 0.0
    assert gini([1, 1, 1]) == 0.0
    assert gini([0, 1]) == pytest.approx(0.5)
    assert gini([0, 0, 1, 2]) == pytest.approx(1 - (0.25 + 0.0625 + 0.0625))


def test_insufficient_data_error_message():
    err = InsufficientDataError("linear-regression", 2, 1)
    assert isinstance(err, ValueError)
    assert err.required == 2 and err.actual == 1
    assert "at least 2 points" in str(err)


def test_parameter_spec_coercion_and_range():
    spec = ParameterSpec(id="k-clusters", name="K", attr="k", min=2, max=7, step=1, default=3)
    assert spec.coerce("4") == 4
    assert isinstance(spec.coerce(5.0), int)
    with pytest.raises(ValueError):
        spec.coerce(9)
    with pytest.raises(ValueError):
        spec.coerce("abc")

    flag = ParameterSpec(id="show", name="Show", attr="show", type="checkbox", default=True)
    assert flag.coerce("false") is False
    assert flag.coerce(1) is True
    assert "min" not in flag.to_dict()


@pytest.mark.parametrize("raw", [
    {"x": "nan", "y": 1},
    {"x": 1, "y": float("inf")},
    (float("-inf"), 2),
    {"x": 1, "y": 2, "label": "a"},
    {"x": 1, "y": 2, "label": float("inf")},
])
def test_point_from_raw_rejects_non_finite_or_bad_label(raw):
    with pytest.raises(InvalidInputError):
        Point.from_raw(raw)


def test_parameter_spec_rejects_nan():
    spec = ParameterSpec(id="max-depth", name="Depth", attr="max_depth", min=1, max=5, step=1, default=3)
    with pytest.raises(InvalidInputError):
        spec.coerce("nan")
