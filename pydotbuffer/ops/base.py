"""
Operation value objects.

An Operation binds a named kernel to its operands. It carries no state
beyond those bindings and is created fresh for every request.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import numpy as np

from pydotbuffer.core.data_buffer import DataBuffer
from pydotbuffer.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from numpy.typing import NDArray


class OpFamily(Enum):
    """Family of an operation."""

    ACCUMULATION = "accumulation"
    TRANSFORM = "transform"
    LOSS = "loss"

    @classmethod
    def of(cls, value: OpFamily | str) -> OpFamily:
        """
        Resolve a family from an enum member or a name.

        "reduction" and "elementwise" are accepted as aliases.

        Raises:
            InvalidArgumentError: If the name is unknown.
        """
        if isinstance(value, OpFamily):
            return value
        name = _FAMILY_ALIASES.get(value, value)
        try:
            return cls(name)
        except ValueError:
            raise InvalidArgumentError(f"Illegal operation family {value!r}") from None


_FAMILY_ALIASES = {"reduction": "accumulation", "elementwise": "transform"}


class Arity(Enum):
    """Operand binding shape of an operation."""

    UNARY_IN_PLACE = "unary_in_place"
    UNARY_WITH_OUTPUT = "unary_with_output"
    BINARY = "binary"
    BINARY_WITH_OUTPUT_AND_LENGTH = "binary_with_output_and_length"


Kernel = Callable[..., Any]


@dataclass(frozen=True, eq=False)
class Operation:
    """
    A named operation bound to its operands.

    Attributes:
        name: Symbolic name used to select the operation.
        family: Operation family.
        arity: Operand binding shape.
        x: Primary input.
        y: Output (unary-with-output transforms) or secondary operand.
        z: Explicit output (three-operand form).
        n: Explicit element count, or None for the whole input.
        params: Auxiliary parameters passed to the kernel (read-only).

    Operations compare and hash by identity.
    """

    name: str
    family: OpFamily
    arity: Arity
    x: Any
    y: Any = None
    z: Any = None
    n: int | None = None
    params: Mapping[str, Any] = field(default_factory=dict)
    kernel: Kernel | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def output(self) -> Any:
        """Get the operand results are written to."""
        if self.arity == Arity.BINARY_WITH_OUTPUT_AND_LENGTH:
            return self.z
        if self.family == OpFamily.TRANSFORM:
            if self.arity == Arity.UNARY_WITH_OUTPUT:
                return self.y
            return self.x
        return None

    def execute(self) -> Any:
        """
        Run the operation's reference kernel on the host.

        Accumulations return a Python scalar, also stored at index 0 of the
        explicit output when one is bound. Transforms write their result
        into the output operand and return it as an array.

        Raises:
            InvalidArgumentError: If no kernel is bound or operands are missing.
        """
        if self.kernel is None:
            raise InvalidArgumentError(f"Operation '{self.name}' has no kernel")

        x = _values(self.x, self.n)
        if self.family == OpFamily.ACCUMULATION:
            y = None if self.y is None else _values(self.y, self.n)
            with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
                result = self.kernel(x, y, **self.params)
            result = result.item() if isinstance(result, np.generic) else result
            if self.z is not None:
                _write(self.z, np.asarray([result]), offset=0)
            return result

        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            result = np.asarray(self.kernel(x, **self.params))
        _write(self.output, result, offset=0)
        return result


def operand_length(operand: Any) -> int:
    """Get the element count of an operand."""
    if isinstance(operand, DataBuffer):
        return operand.length
    return int(np.asarray(operand).size)


def _values(operand: Any, n: int | None) -> NDArray[Any]:
    if operand is None:
        raise InvalidArgumentError("Missing operand")
    if isinstance(operand, DataBuffer):
        values = operand.as_type(operand.data_type)
    else:
        values = np.asarray(operand).reshape(-1)
    return values if n is None else values[:n]


def _write(target: Any, values: NDArray[Any], offset: int) -> None:
    if isinstance(target, DataBuffer):
        target.assign(list(range(offset, offset + len(values))), values)
    elif isinstance(target, np.ndarray):
        if not target.flags.c_contiguous:
            raise InvalidArgumentError("Output array must be contiguous")
        flat = target.reshape(-1)
        flat[offset : offset + len(values)] = values
    else:
        raise InvalidArgumentError(f"Cannot write results to {type(target).__name__}")
