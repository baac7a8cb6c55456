import pytest

from algorithms.core import Point


@pytest.fixture
def diagonal_points():
    return [Point(0, 0), Point(1, 1), Point(2, 2)]


@pytest.fixture
def two_groups():
    # two well separated groups of three; indices 0 and 3 seed one centroid each
    return [Point(100, 100), Point(110, 105), Point(95, 110),
            Point(500, 400), Point(510, 390), Point(490, 410)]


@pytest.fixture
def labelled_points():
    return [Point(100, 150, 0), Point(120, 200, 0), Point(80, 250, 0), Point(150, 180, 0),
            Point(130, 300, 0), Point(500, 150, 1), Point(550, 200, 1), Point(480, 250, 1),
            Point(520, 180, 1), Point(540, 300, 1), Point(300, 420, 1), Point(320, 60, 0)]
