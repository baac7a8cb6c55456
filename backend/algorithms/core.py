"""
core.py — shared pieces of the step-by-step algorithm contract.

Every simulator algorithm (linear regression, k-means, decision tree) is an
explicit instance of BaseAlgorithm and exposes the same capability set:

    init(points, **params)   load a dataset and clear computed state
    run()                    compute everything at once
    step() -> StepInfo       advance one teaching stage
    reset()                  drop computed state, keep the points
    visualize(surface)       paint the current state onto a DrawingSurface
    get_stats() -> dict      key/value pairs for the statistics panel
    get_state() -> dict      JSON-serializable snapshot for the browser

Points live in canvas pixel space (origin top-left, y grows downwards).
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
import logging
import math
import numpy as np

logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when an algorithm is asked to run on too few points."""

    def __init__(self, algorithm: str, required: int, actual: int):
        self.algorithm = algorithm
        self.required = required
        self.actual = actual
        super().__init__(f"{algorithm} needs at least {required} points, got {actual}")


class InvalidInputError(ValueError):
    """Raised for a malformed event field, name or value coming from the UI."""


def to_finite(name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return number


def to_label(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInputError(f"label must be an integer, got {value!r}")


# ------------ Points ------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float
    label: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: Union["Point", Dict[str, Any], Sequence[Any]]) -> "Point":
        if isinstance(raw, Point):
            return raw
        if isinstance(raw, dict):
            if "x" not in raw or "y" not in raw:
                raise InvalidInputError(f"point needs x and y: {raw!r}")
            return cls(to_finite("x", raw["x"]), to_finite("y", raw["y"]), to_label(raw.get("label")))
        if len(raw) not in (2, 3):
            raise InvalidInputError(f"point must be (x, y) or (x, y, label): {raw!r}")
        label = raw[2] if len(raw) == 3 else None
        return cls(to_finite("x", raw[0]), to_finite("y", raw[1]), to_label(label))

    def with_label(self, label: int) -> "Point":
        return Point(self.x, self.y, int(label))

    def to_dict(self) -> Dict[str, Any]:
        d = {"x": self.x, "y": self.y}
        if self.label is not None:
            d["label"] = self.label
        return d


def to_points(raw_points: Optional[Iterable[Any]]) -> List[Point]:
    if raw_points is None:
        return []
    return [Point.from_raw(p) for p in raw_points]


def to_numpy(points: Sequence[Point]) -> np.ndarray:
    """(n, 2) float array of the point coordinates."""
    if len(points) == 0:
        return np.zeros((0, 2), dtype=float)
    return np.array([[p.x, p.y] for p in points], dtype=float)


# ------------ Geometry / stats ------------

def mean(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return float(sum(values) / len(values))


def distance(p1: Union[Point, Sequence[float]], p2: Union[Point, Sequence[float]]) -> float:
    """Euclidean distance between two points (Point or (x, y))."""
    x1, y1 = (p1.x, p1.y) if isinstance(p1, Point) else (p1[0], p1[1])
    x2, y2 = (p2.x, p2.y) if isinstance(p2, Point) else (p2[0], p2[1])
    return math.hypot(x1 - x2, y1 - y2)


def gini(labels: Iterable[Any]) -> float:
    """Gini impurity 1 - sum(p_i^2) over label frequencies; 0 for an empty set."""
    labels = list(labels)
    m = len(labels)
    if m == 0:
        return 0.0
    _, counts = np.unique(np.asarray(labels), return_counts=True)
    p = counts / m
    return float(1.0 - np.sum(p ** 2))


# ------------ Step / parameter records ------------

@dataclass
class StepInfo:
    step: Union[int, str]
    title: str
    description: str
    highlight: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParameterSpec:
    """A UI slider (or checkbox) bound to one tunable attribute of an algorithm."""
    id: str
    name: str
    attr: str
    default: Any
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    description: str = ""
    type: str = "range"
    reinitialize: bool = False

    def coerce(self, value: Any) -> Any:
        if self.type == "checkbox":
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        number = to_finite(f"parameter '{self.id}'", value)
        if self.min is not None and number < self.min:
            raise InvalidInputError(f"parameter '{self.id}' must be >= {self.min}, got {number}")
        if self.max is not None and number > self.max:
            raise InvalidInputError(f"parameter '{self.id}' must be <= {self.max}, got {number}")
        if isinstance(self.default, int) and not isinstance(self.default, bool):
            return int(round(number))
        return number

    def to_dict(self) -> Dict[str, Any]:
        d = {"id": self.id, "name": self.name, "type": self.type,
             "default": self.default, "description": self.description}
        if self.type != "checkbox":
            d.update({"min": self.min, "max": self.max, "step": self.step})
        return d


# ------------ Base Class ------------

class BaseAlgorithm:
    name: str = "base"
    title: str = "Base"
    parameters: Tuple[ParameterSpec, ...] = ()

    def __init__(self):
        self.points: List[Point] = []
        self.current_step: int = 0

    def init(self, points, **params): raise NotImplementedError
    def run(self) -> Dict[str, Any]: raise NotImplementedError
    def step(self) -> StepInfo: raise NotImplementedError
    def reset(self): raise NotImplementedError
    def visualize(self, surface): raise NotImplementedError
    def get_stats(self) -> Dict[str, Any]: return {"Points": len(self.points)}
    def get_state(self) -> Dict[str, Any]: return {}

    @classmethod
    def parameter(cls, param_id: str) -> ParameterSpec:
        for spec in cls.parameters:
            if spec.id == param_id:
                return spec
        valid = [spec.id for spec in cls.parameters]
        raise InvalidInputError(f"Unknown parameter '{param_id}' for {cls.name}. Valid: {valid}")

    @classmethod
    def default_params(cls) -> Dict[str, Any]:
        return {spec.attr: spec.default for spec in cls.parameters}

    def get_params(self) -> Dict[str, Any]:
        return {spec.attr: getattr(self, spec.attr) for spec in self.parameters}

    def set_param(self, param_id: str, value: Any) -> ParameterSpec:
        """Validate and apply one slider value; returns the spec that was applied."""
        spec = self.parameter(param_id)
        setattr(self, spec.attr, spec.coerce(value))
        logger.debug(f"{self.name}: {spec.attr} = {getattr(self, spec.attr)!r}")
        return spec

    def _require_points(self, required: int):
        if len(self.points) < required:
            logger.warning(f"{self.name}: need at least {required} points, have {len(self.points)}")
            raise InsufficientDataError(self.name, required, len(self.points))
