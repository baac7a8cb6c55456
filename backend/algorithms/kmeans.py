"""
K-Means clustering (Lloyd's algorithm) with a manual single-step mode.

Initial centroids are k distinct data points drawn uniformly without
replacement, so unseeded runs differ from one another. Ties on distance go to
the lowest centroid index. A centroid with no assigned points stays where it is.
"""

from typing import Any, Dict, List, Optional, Sequence
import logging
import numpy as np

from algorithms.core import BaseAlgorithm, InsufficientDataError, ParameterSpec, StepInfo, to_numpy, to_points

logger = logging.getLogger(__name__)

UNASSIGNED = -1


class KMeans(BaseAlgorithm):
    name = "k-means"
    title = "K-Means Clustering"
    parameters = (
        ParameterSpec(id="k-clusters", name="Number of Clusters (K)", attr="k",
                      min=2, max=7, step=1, default=3, reinitialize=True,
                      description="How many groups to create"),
        ParameterSpec(id="max-iterations", name="Max Iterations", attr="max_iterations",
                      min=10, max=100, step=10, default=50,
                      description="Maximum steps before stopping"),
    )

    def __init__(self, k: int = 3, max_iterations: int = 50, random_state: Optional[int] = None):
        super().__init__()
        self.k = k
        self.max_iterations = max_iterations
        self.random_state = random_state
        self._rng = np.random.default_rng(random_state)
        self._X = np.zeros((0, 2))
        self._clear_clusters()

    @property
    def k(self) -> int:
        return self._k

    @k.setter
    def k(self, value: int):
        # the slider value; init() clamps the effective k to the dataset size
        self.requested_k = int(value)
        self._k = int(value)

    def _clear_clusters(self):
        self.centroids = np.zeros((0, 2))
        self.assignments = np.full(len(self.points), UNASSIGNED, dtype=int)
        self.previous_assignments = self.assignments.copy()
        self.current_step = 0
        self.iteration = 0
        self.is_converged = False
        self.history: List[Dict[str, Any]] = []

    def init(self, points, k: Optional[int] = None, **params):
        for attr, value in params.items():
            setattr(self, attr, value)
        self.points = to_points(points)
        self._X = to_numpy(self.points)
        requested = self.requested_k if k is None else int(k)
        self.requested_k = requested
        # can't have more clusters than points
        self._k = min(requested, len(self.points))
        self._clear_clusters()
        logger.info(f"K-Means initialized with {len(self.points)} points, K = {self.k}")

    # ---- algorithm pieces ----

    def initialize_centroids(self, indices: Optional[Sequence[int]] = None) -> np.ndarray:
        """Seed centroids from k distinct points; ``indices`` overrides the random draw."""
        n = len(self.points)
        if indices is None:
            indices = self._rng.choice(n, size=self.k, replace=False)
        indices = [int(i) for i in indices]
        if len(indices) != self.k or len(set(indices)) != self.k:
            raise ValueError(f"need {self.k} distinct seed indices, got {indices}")
        if any(i < 0 or i >= n for i in indices):
            raise ValueError(f"seed indices out of range for {n} points: {indices}")
        self.centroids = self._X[indices].copy()
        logger.debug(f"Initialized {self.k} centroids from points {indices}")
        return self.centroids

    def assign_points(self) -> bool:
        """
        Move every point to its nearest centroid; True if any assignment changed.

        Same Euclidean metric as core.distance, computed for all point/centroid pairs at once.
        """
        self.previous_assignments = self.assignments.copy()
        if len(self.points) == 0 or len(self.centroids) == 0:
            return False
        dists = np.linalg.norm(self._X[:, None, :] - self.centroids[None, :, :], axis=2)
        # argmin returns the first minimum, i.e. the lowest centroid index on ties
        labels = np.argmin(dists, axis=1)
        changed = bool(np.any(labels != self.assignments))
        self.assignments = labels.astype(int)
        return changed

    def update_centroids(self) -> np.ndarray:
        new_centroids = self.centroids.copy()
        for i in range(len(self.centroids)):
            members = self._X[self.assignments == i]
            if len(members) > 0:
                new_centroids[i] = members.mean(axis=0)
        self.centroids = new_centroids
        return self.centroids

    def calculate_wcss(self) -> float:
        assigned = self.assignments >= 0
        if len(self.centroids) == 0 or not np.any(assigned):
            return 0.0
        diffs = self._X[assigned] - self.centroids[self.assignments[assigned]]
        return float(np.sum(diffs ** 2))

    def cluster_sizes(self) -> List[int]:
        sizes = [0] * self.k
        for a in self.assignments:
            if 0 <= a < self.k:
                sizes[a] += 1
        return sizes

    def _record(self):
        self.history.append({"iteration": self.iteration,
                             "centroids": self.centroids.tolist(),
                             "assignments": self.assignments.tolist(),
                             "wcss": self.calculate_wcss()})

    # ---- contract ----

    def run(self, seed_indices: Optional[Sequence[int]] = None) -> Dict[str, Any]:
        n = len(self.points)
        if n == 0 or n < self.k:
            logger.warning(f"Not enough points for {self.k} clusters")
            raise InsufficientDataError(self.name, max(self.k, 1), n)

        self._clear_clusters()
        self.initialize_centroids(seed_indices)
        for i in range(self.max_iterations):
            changed = self.assign_points()
            self.update_centroids()
            self.iteration = i + 1
            self._record()
            if not changed:
                self.is_converged = True
                break

        self.current_step = 3
        wcss = self.calculate_wcss()
        logger.info(f"K-Means finished after {self.iteration} iterations "
                    f"(converged={self.is_converged}, wcss={wcss:.2f})")
        return {"centroids": self.centroids.tolist(), "assignments": self.assignments.tolist(),
                "iterations": self.iteration, "converged": self.is_converged, "wcss": wcss}

    def step(self) -> StepInfo:
        if self.is_converged:
            return self._converged_info()
        if self.iteration >= self.max_iterations:
            return StepInfo("Done", "Stopped",
                            f"Reached the maximum of {self.max_iterations} iterations.", "complete")

        phase = self.current_step % 3
        if phase == 0:
            if self.iteration == 0:
                if len(self.points) == 0 or len(self.points) < self.k:
                    raise InsufficientDataError(self.name, max(self.k, 1), len(self.points))
                self.initialize_centroids()
                info = StepInfo(1, "Initialize Centroids",
                                f"Placed {self.k} random centroids.\nThese are the initial cluster centers.",
                                "centroids")
            else:
                if not self.assign_points():
                    self.is_converged = True
                    logger.info(f"K-Means converged after {self.iteration} iterations")
                    return self._converged_info()
                info = StepInfo(f"Iteration {self.iteration + 1} - Assign", "Assign Points to Clusters",
                                "Each point assigned to nearest centroid.\n"
                                "Points can change clusters between iterations.",
                                "assignments")
        elif phase == 1:
            self.assign_points()
            info = StepInfo(f"Iteration {self.iteration + 1} - Assign", "Assign Points to Clusters",
                            "Each point assigned to its nearest centroid based on Euclidean distance.",
                            "assignments")
        else:
            self.update_centroids()
            self.iteration += 1
            self._record()
            info = StepInfo(f"Iteration {self.iteration} - Update", "Update Centroids",
                            "Centroids moved to the mean position of their cluster points.\n"
                            f"WCSS: {self.calculate_wcss():.2f}",
                            "centroids")

        self.current_step += 1
        logger.debug(f"K-Means step {self.current_step}: {info.title}")
        return info

    def _converged_info(self) -> StepInfo:
        return StepInfo("Done", "Converged!",
                        f"Algorithm converged after {self.iteration} iterations.\nNo points changed clusters.",
                        "complete")

    def reset(self):
        self._clear_clusters()

    def visualize(self, surface):
        surface.clear()
        surface.draw_grid()
        palette = surface.colors["cluster"]

        if len(self.centroids) > 0 and np.any(self.assignments >= 0):
            surface.draw_cluster_connections(self.points, self.centroids, self.assignments)

        for p, a in zip(self.points, self.assignments):
            color = palette[a % len(palette)] if a >= 0 else surface.colors["point"]
            surface.draw_point(p.x, p.y, color, 8)

        for i, (cx, cy) in enumerate(self.centroids):
            surface.draw_centroid(cx, cy, palette[i % len(palette)], f"C{i + 1}")

        if self.iteration > 0:
            surface.draw_text(f"Iteration: {self.iteration}", 10, 20, surface.colors["centroid"], "bold 14px Poppins")
            if self.is_converged:
                surface.draw_text("✓ Converged", 10, 40, surface.colors["mean"], "bold 14px Poppins")

    def get_stats(self) -> Dict[str, Any]:
        stats = {
            "Points": len(self.points),
            "Clusters (K)": self.k,
            "Iteration": self.iteration,
            "WCSS": f"{self.calculate_wcss():.2f}",
            "Converged": "Yes ✓" if self.is_converged else "No",
        }
        for i, size in enumerate(self.cluster_sizes()):
            stats[f"Cluster {i + 1} Size"] = size
        return stats

    def get_state(self) -> Dict[str, Any]:
        return {"k": self.k, "max_iterations": self.max_iterations,
                "centroids": self.centroids.tolist(), "assignments": self.assignments.tolist(),
                "iteration": self.iteration, "converged": self.is_converged,
                "wcss": self.calculate_wcss(), "history_length": len(self.history),
                "current_step": self.current_step}
