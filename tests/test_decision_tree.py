"""
Decision tree: Gini splits, pure construction, derived layout and step replay.
"""

import itertools
import pytest

from algorithms.core import InsufficientDataError, Point
from algorithms.decision_tree import Bounds, DecisionTree, derive_layout, majority_class
from rendering.surface import CommandCanvas


def built(points, **params):
    model = DecisionTree(**params)
    model.init(points)
    model.run()
    return model


def overlap(a, b):
    w = min(a.max_x, b.max_x) - max(a.min_x, b.min_x)
    h = min(a.max_y, b.max_y) - max(a.min_y, b.min_y)
    return max(w, 0) * max(h, 0)


def test_gini_of_point_sets():
    assert DecisionTree.gini([]) == 0.0
    assert DecisionTree.gini([Point(0, 0, 1), Point(1, 1, 1)]) == 0.0
    assert DecisionTree.gini([Point(0, 0, 0), Point(1, 1, 1)]) == pytest.approx(0.5)


def test_majority_class_ties_and_empty():
    assert majority_class([]) == 0
    assert majority_class([Point(0, 0, 1), Point(0, 0, 0)]) == 0
    assert majority_class([Point(0, 0, 1), Point(0, 0, 1), Point(0, 0, 0)]) == 1


def test_missing_labels_are_backfilled_by_x():
    model = DecisionTree()
    model.init([Point(100, 100), Point(400, 100), Point(500, 50, 0)])
    assert [p.label for p in model.points] == [0, 1, 0]


def test_expected_tree_on_labelled_points(labelled_points):
    model = built(labelled_points)
    root = model.tree
    assert not root.is_leaf
    assert (root.feature, root.threshold) == ("x", 225.0)
    assert root.left.is_leaf and root.left.label == 0
    assert (root.right.feature, root.right.threshold) == ("y", 105.0)
    assert model.depth() == 2
    assert len(model.boundaries) == 2
    assert len(model.regions) == 3


def test_x_split_wins_ties_against_y():
    model = built([Point(0, 0, 0), Point(10, 10, 1)])
    assert model.tree.feature == "x"
    assert model.tree.threshold == 5.0


def test_pure_set_is_a_single_leaf():
    model = built([Point(10, 10, 1), Point(20, 30, 1), Point(600, 400, 1)])
    assert model.tree.is_leaf
    assert model.tree.label == 1
    assert model.boundaries == []
    assert len(model.regions) == 1


def test_find_best_split_respects_min_samples(labelled_points):
    model = DecisionTree(min_samples=20)
    assert model.find_best_split(labelled_points) is None


@pytest.mark.parametrize("max_depth", [1, 2, 3])
def test_max_depth_is_respected(labelled_points, max_depth):
    model = built(labelled_points, max_depth=max_depth)
    assert model.depth() <= max_depth
    assert all(b.depth < max_depth for b in model.boundaries)


def test_leaf_regions_tile_the_canvas(labelled_points):
    model = built(labelled_points, max_depth=5, min_samples=1)
    root = model.root_bounds
    assert sum(r.bounds.area for r in model.regions) == pytest.approx(root.area)
    for a, b in itertools.combinations(model.regions, 2):
        assert overlap(a.bounds, b.bounds) == 0


def test_predict_matches_containing_region(labelled_points):
    model = built(labelled_points)
    for p in labelled_points:
        assert model.predict(p.x, p.y) == p.label
    for x, y in [(10, 10), (250, 50), (650, 480), (224.9, 300), (225, 104.9)]:
        containing = [r for r in model.regions if r.bounds.contains(x, y)]
        assert len(containing) == 1
        assert model.predict(x, y) == containing[0].label


def test_layout_is_derived_from_tree_alone(labelled_points):
    model = built(labelled_points)
    boundaries, regions = derive_layout(model.tree, model.root_bounds)
    assert boundaries == model.boundaries
    assert regions == model.regions
    assert derive_layout(None, model.root_bounds) == ([], [])


def test_bounds_split():
    left, right = Bounds(0, 700, 0, 500).split("y", 200)
    assert left == Bounds(0, 700, 0, 200)
    assert right == Bounds(0, 700, 200, 500)


def test_run_needs_two_points():
    model = DecisionTree()
    model.init([Point(1, 1, 0)])
    with pytest.raises(InsufficientDataError):
        model.run()


def test_step_replays_one_boundary_at_a_time(labelled_points):
    model = DecisionTree()
    model.init(labelled_points)

    first = model.step()
    assert first.title == "Split on X"
    assert model.current_step == 1

    canvas = CommandCanvas()
    model.visualize(canvas)
    dashed = [c for c in canvas.commands if c["op"] == "line" and c["dashed"]]
    assert len(dashed) == 1

    second = model.step()
    assert second.title == "Split on Y"
    assert "Depth: 1" in second.description

    done = model.step()
    assert done.title == "Tree Built"
    assert model.current_step == 3
    assert model.step().title == "Tree Built"
    assert model.current_step == 3


def test_reset_drops_tree_keeps_points(labelled_points):
    model = built(labelled_points)
    model.reset()
    assert model.tree is None and model.boundaries == [] and model.current_step == 0
    assert len(model.points) == len(labelled_points)


def test_visualize_draws_regions_and_points(labelled_points):
    model = built(labelled_points)
    canvas = CommandCanvas()
    model.visualize(canvas)
    ops = canvas.ops()
    assert ops.count("rect") == 3
    assert ops.count("point") == len(labelled_points)
    assert all(c["radius"] == 10 for c in canvas.commands if c["op"] == "point")


def test_impure_leaf_predicts_its_majority_label(labelled_points):
    model = built(labelled_points, max_depth=1)
    assert model.depth() == 1
    mismatches = 0
    for p in labelled_points:
        leaf = model.leaf_for(p.x, p.y)
        assert model.predict(p.x, p.y) == leaf.label
        mismatches += leaf.label != p.label
    assert mismatches >= 1
    # (320, 60) is the lone class-0 point in the class-1 majority leaf
    assert model.predict(320, 60) == 1
