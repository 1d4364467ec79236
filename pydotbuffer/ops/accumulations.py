"""
Reference kernels for accumulation (reduction) operations.

Each kernel takes the primary input x and the secondary operand y (None
when not bound) and returns a scalar.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pydotbuffer.exceptions import InvalidArgumentError
from pydotbuffer.ops.registry import accumulation
from pydotbuffer.validators import validate_same_length


def _pair(name: str, x: NDArray[Any], y: NDArray[Any] | None) -> tuple[NDArray[Any], NDArray[Any]]:
    if y is None:
        raise InvalidArgumentError(f"Operation '{name}' requires two operands")
    validate_same_length(f"Operation '{name}'", len(x), y)
    return x.astype(np.float64), y.astype(np.float64)


@accumulation("sum")
def sum_(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    return np.sum(x)


@accumulation("max")
def max_(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    if len(x) == 0:
        return -np.inf
    return np.max(x)


@accumulation("min")
def min_(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    if len(x) == 0:
        return np.inf
    return np.min(x)


@accumulation("norm1")
def norm1(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    return np.sum(np.abs(x.astype(np.float64)))


@accumulation("norm2")
def norm2(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    return np.sqrt(np.sum(np.square(x.astype(np.float64))))


@accumulation("prod")
def prod(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    return np.prod(x)


@accumulation("std")
def std(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    """Sample standard deviation."""
    if len(x) < 2:
        return np.nan
    return np.std(x.astype(np.float64), ddof=1)


@accumulation("var")
def var(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    """Sample variance."""
    if len(x) < 2:
        return np.nan
    return np.var(x.astype(np.float64), ddof=1)


@accumulation("euclidean", pairwise=True)
def euclidean(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    a, b = _pair("euclidean", x, y)
    return np.sqrt(np.sum(np.square(a - b)))


@accumulation("cosine", pairwise=True)
def cosine(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    """Cosine similarity; nan when either operand has zero norm."""
    a, b = _pair("cosine", x, y)
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return np.nan
    return np.dot(a, b) / denominator


@accumulation("manhattan", pairwise=True)
def manhattan(x: NDArray[Any], y: NDArray[Any] | None = None) -> Any:
    a, b = _pair("manhattan", x, y)
    return np.sum(np.abs(a - b))
