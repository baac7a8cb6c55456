import copy
import numpy as np
from sklearn.datasets import make_blobs
import logging

from algorithms.core import InvalidInputError, Point

logger = logging.getLogger(__name__)

PADDING = 50
PATTERNS = ("random", "linear", "clusters", "blobs")
CLUSTER_CENTERS = [(150, 150), (550, 150), (350, 400)]

PRESETS = {
    # linear trend, good for regression
    "sample1": [
        Point(50, 400), Point(80, 380), Point(120, 350), Point(150, 320), Point(180, 290),
        Point(220, 270), Point(260, 250), Point(300, 220), Point(350, 200), Point(400, 170),
        Point(450, 150), Point(500, 120), Point(550, 100), Point(600, 80), Point(650, 50),
    ],
    # three clusters, good for k-means
    "sample2": [
        Point(100, 100), Point(120, 80), Point(80, 120), Point(110, 130), Point(90, 90),
        Point(550, 100), Point(580, 120), Point(530, 80), Point(560, 140), Point(540, 110),
        Point(350, 400), Point(320, 420), Point(380, 380), Point(340, 440), Point(370, 410),
    ],
    # two labelled classes, good for decision trees
    "sample3": [
        Point(100, 150, 0), Point(120, 200, 0), Point(80, 250, 0), Point(150, 180, 0), Point(130, 300, 0),
        Point(500, 150, 1), Point(550, 200, 1), Point(480, 250, 1), Point(520, 180, 1), Point(540, 300, 1),
    ],
    "custom": [],
}


def list_datasets():
    return [{"name": name, "points": len(points)} for name, points in PRESETS.items()]


def load_dataset(dataset_name):
    """
    加载预设数据集，返回独立副本 (list[Point])
    """
    if dataset_name not in PRESETS:
        raise InvalidInputError(f"Unknown dataset: {dataset_name}. Valid: {list(PRESETS)}")
    points = copy.deepcopy(PRESETS[dataset_name])
    logger.info(f"Loaded dataset: {dataset_name} with {len(points)} points")
    return points


def generate_random(count=20, width=700, height=500, pattern="random", random_state=None):
    """
    Random point set inside the canvas.

    random   - uniform scatter inside the padded canvas
    linear   - descending (on screen: rising) trend with ±50px vertical noise
    clusters - round-robin over three fixed centers, ±50px uniform jitter
    blobs    - gaussian blobs from sklearn around the same three centers
    """
    if pattern not in PATTERNS:
        raise InvalidInputError(f"Unknown pattern: {pattern}. Valid: {list(PATTERNS)}")
    try:
        count = int(count)
    except (TypeError, ValueError):
        raise InvalidInputError(f"count must be an integer, got {count!r}")
    if count < 0:
        raise InvalidInputError(f"count must be >= 0, got {count}")
    rng = np.random.default_rng(random_state)

    if pattern == "linear":
        t = np.arange(count) / max(count, 1)
        xs = PADDING + t * (width - 2 * PADDING)
        noise = (rng.random(count) - 0.5) * 100
        ys = height - PADDING - t * (height - 2 * PADDING) + noise
    elif pattern == "clusters":
        centers = np.array([CLUSTER_CENTERS[i % len(CLUSTER_CENTERS)] for i in range(count)], dtype=float)
        jitter = (rng.random((count, 2)) - 0.5) * 100
        xs, ys = (centers + jitter).T if count else (np.zeros(0), np.zeros(0))
    elif pattern == "blobs":
        if count == 0:
            return []
        seed = int(rng.integers(0, 2 ** 31 - 1))
        X, _ = make_blobs(n_samples=count, centers=CLUSTER_CENTERS, cluster_std=30.0, random_state=seed)
        xs = np.clip(X[:, 0], PADDING, width - PADDING)
        ys = np.clip(X[:, 1], PADDING, height - PADDING)
    else:
        xs = PADDING + rng.random(count) * (width - 2 * PADDING)
        ys = PADDING + rng.random(count) * (height - 2 * PADDING)

    points = [Point(float(x), float(y)) for x, y in zip(xs, ys)]
    logger.info(f"Generated {len(points)} '{pattern}' points")
    return points
