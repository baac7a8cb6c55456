"""
Registry of the simulator algorithms, keyed by AlgorithmKind.
"""

from enum import Enum
from typing import Any, Dict, Optional, Type, Union

from algorithms.core import BaseAlgorithm, InvalidInputError
from algorithms.decision_tree import DecisionTree
from algorithms.kmeans import KMeans
from algorithms.linear_regression import LinearRegression


class AlgorithmKind(str, Enum):
    LINEAR_REGRESSION = "linear-regression"
    K_MEANS = "k-means"
    DECISION_TREE = "decision-tree"

    @classmethod
    def parse(cls, value: Union[str, "AlgorithmKind"]) -> "AlgorithmKind":
        try:
            return cls(value)
        except ValueError:
            raise InvalidInputError(f"Unknown algorithm '{value}'. Valid: {[k.value for k in cls]}")


ALGORITHMS: Dict[AlgorithmKind, Type[BaseAlgorithm]] = {
    AlgorithmKind.LINEAR_REGRESSION: LinearRegression,
    AlgorithmKind.K_MEANS: KMeans,
    AlgorithmKind.DECISION_TREE: DecisionTree,
}


def algorithm_class(kind: Union[str, AlgorithmKind]) -> Type[BaseAlgorithm]:
    return ALGORITHMS[AlgorithmKind.parse(kind)]


def build_algorithm(kind: Union[str, AlgorithmKind], params: Optional[Dict[str, Any]] = None) -> BaseAlgorithm:
    cls = algorithm_class(kind)
    return cls(**(params or {}))


def describe_algorithms() -> list:
    return [{"id": kind.value, "title": cls.title,
             "parameters": [spec.to_dict() for spec in cls.parameters]}
            for kind, cls in ALGORITHMS.items()]
