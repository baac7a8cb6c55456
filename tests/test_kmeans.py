"""
K-Means: centroid seeding, Lloyd iterations, convergence and manual stepping.
"""

import numpy as np
import pytest

from algorithms.core import InsufficientDataError, Point
from algorithms.kmeans import UNASSIGNED, KMeans
from dataset_loader import load_dataset
from rendering.surface import CommandCanvas


def test_k_is_clamped_to_dataset_size():
    model = KMeans(k=3)
    model.init([Point(0, 0), Point(10, 10)])
    assert model.k == 2
    assert model.requested_k == 3

    # a bigger dataset restores the requested k
    model.init(load_dataset("sample2"))
    assert model.k == 3


def test_init_clears_assignments():
    model = KMeans(k=2)
    model.init([Point(0, 0), Point(1, 1), Point(5, 5)])
    assert model.assignments.tolist() == [UNASSIGNED] * 3
    assert len(model.centroids) == 0
    assert model.iteration == 0 and not model.is_converged


def test_two_groups_converge(two_groups):
    model = KMeans(k=2)
    model.init(two_groups)
    result = model.run(seed_indices=[0, 3])

    assert result["converged"] is True
    assert result["iterations"] == 2
    assert result["assignments"] == [0, 0, 0, 1, 1, 1]
    assert model.cluster_sizes() == [3, 3]
    np.testing.assert_allclose(result["centroids"][0], [305 / 3, 315 / 3])
    np.testing.assert_allclose(result["centroids"][1], [500, 400])


def test_run_reports_one_assignment_per_point():
    points = load_dataset("sample2")
    model = KMeans(k=3, random_state=1)
    model.init(points)
    result = model.run()
    assert len(result["assignments"]) == len(points)
    assert all(0 <= a < 3 for a in result["assignments"])
    assert sum(model.cluster_sizes()) == len(points)


def test_seeded_runs_are_reproducible():
    points = load_dataset("sample2")
    results = []
    for _ in range(2):
        model = KMeans(k=3, random_state=42)
        model.init(points)
        results.append(model.run())
    assert results[0]["centroids"] == results[1]["centroids"]
    assert results[0]["assignments"] == results[1]["assignments"]


@pytest.mark.parametrize("seed", [0, 3, 11])
def test_wcss_never_increases(seed):
    model = KMeans(k=3, random_state=seed)
    model.init(load_dataset("sample2"))
    model.run()
    wcss = [h["wcss"] for h in model.history]
    assert len(wcss) == model.iteration
    for before, after in zip(wcss, wcss[1:]):
        assert after <= before + 1e-9


def test_converged_state_is_a_fixed_point(two_groups):
    model = KMeans(k=2)
    model.init(two_groups)
    model.run(seed_indices=[0, 3])
    centroids = model.centroids.copy()

    assert model.assign_points() is False
    np.testing.assert_allclose(model.update_centroids(), centroids)


def test_empty_cluster_keeps_its_centroid():
    model = KMeans(k=2)
    model.init([Point(0, 0), Point(2, 0), Point(0, 2)])
    model.centroids = np.array([[1.0, 1.0], [1000.0, 1000.0]])
    model.assign_points()
    assert model.cluster_sizes() == [3, 0]
    model.update_centroids()
    np.testing.assert_allclose(model.centroids[1], [1000.0, 1000.0])


def test_distance_ties_go_to_lowest_index():
    model = KMeans(k=2)
    model.init([Point(5, 0), Point(100, 0)])
    model.centroids = np.array([[0.0, 0.0], [10.0, 0.0]])
    model.assign_points()
    assert model.assignments.tolist() == [0, 1]


def test_explicit_seed_indices_are_validated(two_groups):
    model = KMeans(k=2)
    model.init(two_groups)
    with pytest.raises(ValueError):
        model.initialize_centroids([1, 1])
    with pytest.raises(ValueError):
        model.initialize_centroids([0, 99])


def test_random_seeds_are_distinct_points(two_groups):
    model = KMeans(k=3, random_state=5)
    model.init(two_groups)
    centroids = model.initialize_centroids()
    as_tuples = {tuple(c) for c in centroids.tolist()}
    assert len(as_tuples) == 3
    assert as_tuples <= {(p.x, p.y) for p in two_groups}


def test_run_without_points_raises():
    model = KMeans()
    model.init([])
    with pytest.raises(InsufficientDataError):
        model.run()
    with pytest.raises(InsufficientDataError):
        model.step()


def test_step_cycle(two_groups):
    model = KMeans(k=2, random_state=0)
    model.init(two_groups)

    titles = [model.step().title for _ in range(3)]
    assert titles == ["Initialize Centroids", "Assign Points to Clusters", "Update Centroids"]
    assert model.iteration == 1
    assert len(model.history) == 1

    for _ in range(60):
        info = model.step()
        if model.is_converged:
            break
    assert model.is_converged
    assert info.title == "Converged!"
    # further steps are idempotent
    iteration = model.iteration
    assert model.step().title == "Converged!"
    assert model.iteration == iteration


def test_step_stops_at_max_iterations(two_groups):
    model = KMeans(k=2, max_iterations=10, random_state=0)
    model.init(two_groups)
    model.iteration = 10
    model.centroids = np.array([[0.0, 0.0], [1.0, 1.0]])
    assert model.step().title == "Stopped"


def test_reset_keeps_points(two_groups):
    model = KMeans(k=2)
    model.init(two_groups)
    model.run(seed_indices=[0, 3])
    model.reset()
    assert len(model.points) == 6
    assert model.iteration == 0 and model.history == []
    assert model.assignments.tolist() == [UNASSIGNED] * 6


def test_visualize_and_stats(two_groups):
    model = KMeans(k=2)
    model.init(two_groups)
    model.run(seed_indices=[0, 3])

    canvas = CommandCanvas()
    model.visualize(canvas)
    labels = [c["label"] for c in canvas.commands if c["op"] == "centroid"]
    assert labels == ["C1", "C2"]
    texts = [c["text"] for c in canvas.commands if c["op"] == "text"]
    assert "Iteration: 2" in texts

    stats = model.get_stats()
    assert stats["Converged"] == "Yes ✓"
    assert stats["Cluster 1 Size"] == 3 and stats["Cluster 2 Size"] == 3
