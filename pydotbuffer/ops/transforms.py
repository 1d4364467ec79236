"""
Reference kernels for transform (elementwise) operations.

Each kernel maps an input array to an output array of the same length.
Integer inputs are computed in float64 and converted back by the output
buffer.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pydotbuffer.ops.registry import transform

# Smallest normal single-precision value and its log
REAL_MIN = 1.1755e-38
CUT_OFF = float(np.log(REAL_MIN))


def _float(x: NDArray[Any]) -> NDArray[Any]:
    return x if np.issubdtype(x.dtype, np.floating) else x.astype(np.float64)


@transform("relu", threshold=0)
def relu(x: NDArray[Any], threshold: float = 0) -> NDArray[Any]:
    """Zero every element below the threshold."""
    return np.where(x < threshold, 0, x).astype(x.dtype)


@transform("abs")
def abs_(x: NDArray[Any]) -> NDArray[Any]:
    return np.abs(x)


@transform("acos")
def acos(x: NDArray[Any]) -> NDArray[Any]:
    return np.arccos(_float(x))


@transform("asin")
def asin(x: NDArray[Any]) -> NDArray[Any]:
    return np.arcsin(_float(x))


@transform("atan")
def atan(x: NDArray[Any]) -> NDArray[Any]:
    return np.arctan(_float(x))


@transform("ceil")
def ceil(x: NDArray[Any]) -> NDArray[Any]:
    return np.ceil(_float(x))


@transform("cos")
def cos(x: NDArray[Any]) -> NDArray[Any]:
    return np.cos(_float(x))


@transform("exp")
def exp(x: NDArray[Any]) -> NDArray[Any]:
    return np.exp(_float(x))


@transform("floor")
def floor(x: NDArray[Any]) -> NDArray[Any]:
    return np.floor(_float(x))


@transform("hardtanh")
def hardtanh(x: NDArray[Any]) -> NDArray[Any]:
    return np.clip(x, -1, 1)


@transform("identity")
def identity(x: NDArray[Any]) -> NDArray[Any]:
    return x.copy()


@transform("log")
def log(x: NDArray[Any]) -> NDArray[Any]:
    return np.log(_float(x))


@transform("maxout")
def maxout(x: NDArray[Any]) -> NDArray[Any]:
    """Replace every element with the maximum of the input."""
    if len(x) == 0:
        return x.copy()
    return np.full_like(x, np.max(x))


@transform("negative")
def negative(x: NDArray[Any]) -> NDArray[Any]:
    return np.negative(x)


@transform("pow", exponent=2)
def pow_(x: NDArray[Any], exponent: float = 2) -> NDArray[Any]:
    return np.power(_float(x), exponent)


@transform("round")
def round_(x: NDArray[Any]) -> NDArray[Any]:
    """Round half up."""
    return np.floor(_float(x) + 0.5)


@transform("sigmoid")
def sigmoid(x: NDArray[Any]) -> NDArray[Any]:
    return 1.0 / (1.0 + np.exp(-_float(x)))


@transform("sign")
def sign(x: NDArray[Any]) -> NDArray[Any]:
    return np.sign(x)


@transform("sin")
def sin(x: NDArray[Any]) -> NDArray[Any]:
    return np.sin(_float(x))


@transform("sqrt")
def sqrt(x: NDArray[Any]) -> NDArray[Any]:
    return np.sqrt(_float(x))


@transform("stabilize", bound=1)
def stabilize(x: NDArray[Any], bound: float = 1) -> NDArray[Any]:
    """
    Clamp x so that exp(x * bound) stays within single-precision range.

    Elements with x * bound above -log(REAL_MIN) become -log(REAL_MIN) / bound;
    elements below log(REAL_MIN) become log(REAL_MIN) / bound.
    """
    values = _float(x)
    scaled = values * bound
    result = np.where(scaled > -CUT_OFF, -CUT_OFF / bound, values)
    return np.where(scaled < CUT_OFF, CUT_OFF / bound, result)


@transform("tanh")
def tanh(x: NDArray[Any]) -> NDArray[Any]:
    return np.tanh(_float(x))


@transform("softmax")
def softmax(x: NDArray[Any]) -> NDArray[Any]:
    if len(x) == 0:
        return _float(x).copy()
    shifted = np.exp(_float(x) - np.max(x))
    return shifted / np.sum(shifted)
