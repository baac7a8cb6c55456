"""
Depth-limited binary classification tree over (x, y) points, split by Gini impurity.

Tree construction is pure: build_tree() returns Leaf / Internal nodes and
nothing else. The split lines and leaf rectangles shown on the canvas are
derived afterwards by derive_layout(), so the display state is a function of
the tree alone.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging
import numpy as np

from algorithms.core import BaseAlgorithm, ParameterSpec, Point, StepInfo, gini as gini_impurity, to_points

logger = logging.getLogger(__name__)

# Demo rule for points that arrive without a class label.
DEMO_LABEL_SPLIT_X = 350


@dataclass(frozen=True)
class Bounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def area(self) -> float:
        return (self.max_x - self.min_x) * (self.max_y - self.min_y)

    def split(self, feature: str, threshold: float) -> Tuple["Bounds", "Bounds"]:
        if feature == "x":
            return replace(self, max_x=threshold), replace(self, min_x=threshold)
        return replace(self, max_y=threshold), replace(self, min_y=threshold)

    def contains(self, x: float, y: float) -> bool:
        # half-open on the max side, matching the "< threshold goes left" rule
        return self.min_x <= x < self.max_x and self.min_y <= y < self.max_y

    def to_dict(self) -> Dict[str, float]:
        return {"min_x": self.min_x, "max_x": self.max_x, "min_y": self.min_y, "max_y": self.max_y}


@dataclass(frozen=True)
class Leaf:
    label: int
    count: int
    bounds: Bounds

    is_leaf = True

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "leaf", "label": self.label, "count": self.count, "bounds": self.bounds.to_dict()}


@dataclass(frozen=True)
class Internal:
    feature: str
    threshold: float
    left: "TreeNode"
    right: "TreeNode"
    gini: float = 0.0

    is_leaf = False

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "node", "feature": self.feature, "threshold": self.threshold, "gini": self.gini,
                "left": self.left.to_dict(), "right": self.right.to_dict()}


TreeNode = Union[Leaf, Internal]


@dataclass(frozen=True)
class Split:
    feature: str
    threshold: float
    gini: float
    left: List[Point]
    right: List[Point]


@dataclass(frozen=True)
class Boundary:
    feature: str
    threshold: float
    bounds: Bounds
    depth: int

    def to_dict(self) -> Dict[str, Any]:
        return {"feature": self.feature, "threshold": self.threshold,
                "bounds": self.bounds.to_dict(), "depth": self.depth}


@dataclass(frozen=True)
class Region:
    bounds: Bounds
    label: int

    def to_dict(self) -> Dict[str, Any]:
        return {"bounds": self.bounds.to_dict(), "label": self.label}


def derive_layout(tree: Optional[TreeNode], root_bounds: Bounds) -> Tuple[List[Boundary], List[Region]]:
    """Split lines in pre-order and leaf regions left to right."""
    boundaries: List[Boundary] = []
    regions: List[Region] = []

    def walk(node: TreeNode, bounds: Bounds, depth: int):
        if node.is_leaf:
            regions.append(Region(bounds, node.label))
            return
        boundaries.append(Boundary(node.feature, node.threshold, bounds, depth))
        left_bounds, right_bounds = bounds.split(node.feature, node.threshold)
        walk(node.left, left_bounds, depth + 1)
        walk(node.right, right_bounds, depth + 1)

    if tree is not None:
        walk(tree, root_bounds, 0)
    return boundaries, regions


def majority_class(points: Sequence[Point]) -> int:
    """Most frequent label; ties go to the lowest label, empty sets to 0."""
    counts = Counter(p.label for p in points)
    if not counts:
        return 0
    return min(counts, key=lambda label: (-counts[label], label))


class DecisionTree(BaseAlgorithm):
    name = "decision-tree"
    title = "Decision Tree"
    parameters = (
        ParameterSpec(id="max-depth", name="Max Depth", attr="max_depth",
                      min=1, max=5, step=1, default=3,
                      description="Maximum tree depth (more = complex)"),
        ParameterSpec(id="min-samples", name="Min Samples", attr="min_samples",
                      min=1, max=10, step=1, default=2,
                      description="Minimum points needed to split"),
    )

    def __init__(self, max_depth: int = 3, min_samples: int = 2,
                 width: float = 700, height: float = 500):
        super().__init__()
        self.max_depth = max_depth
        self.min_samples = min_samples
        self.root_bounds = Bounds(0, width, 0, height)
        self._clear_tree()

    def _clear_tree(self):
        self.tree: Optional[TreeNode] = None
        self.boundaries: List[Boundary] = []
        self.regions: List[Region] = []
        self.current_step = 0

    def init(self, points, **params):
        for attr, value in params.items():
            setattr(self, attr, value)
        self.points = [p if p.label is not None else p.with_label(0 if p.x < DEMO_LABEL_SPLIT_X else 1)
                       for p in to_points(points)]
        self._clear_tree()
        logger.info(f"Decision Tree initialized with {len(self.points)} points")

    # ---- tree construction ----

    @staticmethod
    def gini(points: Sequence[Point]) -> float:
        return gini_impurity(p.label for p in points)

    def find_best_split(self, points: Sequence[Point]) -> Optional[Split]:
        """Exhaustive search over midpoints of sorted distinct x, then y, values."""
        if len(points) < self.min_samples:
            return None

        n = len(points)
        coords = {"x": np.array([p.x for p in points], dtype=float),
                  "y": np.array([p.y for p in points], dtype=float)}
        best: Optional[Split] = None
        best_gini = float("inf")

        for feature in ("x", "y"):
            values = coords[feature]
            distinct = np.unique(values)
            for lo, hi in zip(distinct[:-1], distinct[1:]):
                threshold = float((lo + hi) / 2)
                mask = values < threshold
                left = [p for p, m in zip(points, mask) if m]
                right = [p for p, m in zip(points, mask) if not m]
                if not left or not right:
                    continue
                g = (len(left) * self.gini(left) + len(right) * self.gini(right)) / n
                if g < best_gini:
                    best_gini = g
                    best = Split(feature, threshold, g, left, right)
        return best

    def build_tree(self, points: Sequence[Point], depth: int = 0, bounds: Optional[Bounds] = None) -> TreeNode:
        if bounds is None:
            bounds = self.root_bounds
        impurity = self.gini(points)
        if depth >= self.max_depth or len(points) < self.min_samples or impurity == 0:
            return Leaf(majority_class(points), len(points), bounds)

        split = self.find_best_split(points)
        if split is None:
            return Leaf(majority_class(points), len(points), bounds)

        left_bounds, right_bounds = bounds.split(split.feature, split.threshold)
        return Internal(feature=split.feature, threshold=split.threshold,
                        left=self.build_tree(split.left, depth + 1, left_bounds),
                        right=self.build_tree(split.right, depth + 1, right_bounds),
                        gini=impurity)

    def predict(self, x: float, y: float) -> int:
        leaf = self.leaf_for(x, y)
        return leaf.label if leaf is not None else 0

    def leaf_for(self, x: float, y: float) -> Optional[Leaf]:
        node = self.tree
        while node is not None and not node.is_leaf:
            value = x if node.feature == "x" else y
            node = node.left if value < node.threshold else node.right
        return node

    def depth(self, node: Optional[TreeNode] = None) -> int:
        node = self.tree if node is None else node
        if node is None or node.is_leaf:
            return 0
        return 1 + max(self.depth(node.left), self.depth(node.right))

    def _fit(self):
        self._require_points(2)
        self.tree = self.build_tree(self.points, 0, self.root_bounds)
        self.boundaries, self.regions = derive_layout(self.tree, self.root_bounds)
        logger.info(f"Decision Tree built: {len(self.boundaries)} splits, {len(self.regions)} regions")

    # ---- contract ----

    def run(self) -> Dict[str, Any]:
        self._fit()
        self.current_step = len(self.boundaries) + 1
        return {"tree": self.tree.to_dict(), "boundaries": len(self.boundaries), "regions": len(self.regions)}

    def step(self) -> StepInfo:
        if self.tree is None:
            self._fit()
            self.current_step = 0

        if self.current_step < len(self.boundaries):
            self.current_step += 1
            b = self.boundaries[self.current_step - 1]
            logger.debug(f"Decision Tree step {self.current_step}: split on {b.feature} at {b.threshold:.1f}")
            return StepInfo(self.current_step, f"Split on {b.feature.upper()}",
                            f"Creating split at {b.feature} = {b.threshold:.0f}\nDepth: {b.depth}",
                            "boundary")

        self.current_step = len(self.boundaries) + 1
        return StepInfo("Complete", "Tree Built",
                        f"Tree complete with {len(self.boundaries)} splits and {len(self.regions)} regions.",
                        "complete")

    def reset(self):
        self._clear_tree()

    def visualize(self, surface):
        surface.clear()
        surface.draw_grid()
        palette = surface.colors["classes"]

        for region in self.regions:
            b = region.bounds
            surface.draw_rect(b.min_x, b.min_y, b.max_x - b.min_x, b.max_y - b.min_y,
                              palette[region.label % len(palette)], 0.15)

        for b in self.boundaries[:min(self.current_step, len(self.boundaries))]:
            surface.draw_decision_boundary(b.feature, b.threshold, b.bounds)

        for p in self.points:
            surface.draw_point(p.x, p.y, palette[p.label % len(palette)], 10)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "Points": len(self.points),
            "Max Depth": self.max_depth,
            "Splits": len(self.boundaries),
            "Regions": len(self.regions),
            "Step": self.current_step,
        }

    def get_state(self) -> Dict[str, Any]:
        return {"max_depth": self.max_depth, "min_samples": self.min_samples,
                "tree": self.tree.to_dict() if self.tree is not None else None,
                "boundaries": [b.to_dict() for b in self.boundaries],
                "regions": [r.to_dict() for r in self.regions],
                "current_step": self.current_step}
