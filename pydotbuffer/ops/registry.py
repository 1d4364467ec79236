"""
Operation registry.

Maps symbolic operation names to kernels, per family, and builds
Operation objects bound to the operands a caller supplies. The set of
valid names is fixed at import time by the built-in kernels and can be
extended at runtime with register().
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pydotbuffer.exceptions import InvalidArgumentError, OperationNotImplementedError
from pydotbuffer.ops.base import Arity, Kernel, OpFamily, Operation, operand_length

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class OpSpec:
    """Registered kernel and its default parameters."""

    name: str
    family: OpFamily
    kernel: Kernel
    defaults: dict[str, Any] = field(default_factory=dict)
    pairwise: bool = False


class OpRegistry:
    """
    Registry of operation kernels.

    Provides registration and name-based resolution of operations.

    Example:
        >>> registry = get_op_registry()
        >>> op = registry.resolve("transform", "pow", x)
        >>> op.params["exponent"]
        2
    """

    _instance: OpRegistry | None = None

    def __new__(cls) -> OpRegistry:
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._specs = {family: {} for family in OpFamily}
        return cls._instance

    _specs: dict[OpFamily, dict[str, OpSpec]]

    def register(
        self,
        family: OpFamily | str,
        name: str,
        kernel: Kernel,
        *,
        overwrite: bool = False,
        pairwise: bool = False,
        **defaults: Any,
    ) -> None:
        """
        Register a kernel under a name.

        Args:
            family: Operation family.
            name: Unique name within the family.
            kernel: Accumulation kernels are called as kernel(x, y, **params),
                transform kernels as kernel(x, **params).
            overwrite: Whether to replace an existing registration.
            pairwise: Whether the accumulation compares two operands.
            **defaults: Default auxiliary parameters.

        Raises:
            InvalidArgumentError: If the name is taken or the family has no kernels.
        """
        family = OpFamily.of(family)
        if family == OpFamily.LOSS:
            raise OperationNotImplementedError(family.value, name)

        specs = self._specs[family]
        if name in specs and not overwrite:
            raise InvalidArgumentError(f"Operation '{name}' is already registered")

        specs[name] = OpSpec(name, family, kernel, dict(defaults), pairwise)
        logger.debug(f"Registered {family.value} operation '{name}'")

    def unregister(self, family: OpFamily | str, name: str) -> bool:
        """
        Remove a registration.

        Returns:
            True if the name was registered.
        """
        return self._specs[OpFamily.of(family)].pop(name, None) is not None

    def names(self, family: OpFamily | str) -> list[str]:
        """List the registered names of a family."""
        return sorted(self._specs[OpFamily.of(family)])

    def get(self, family: OpFamily | str, name: str) -> OpSpec:
        """
        Look up a registration.

        Raises:
            InvalidArgumentError: If the name is not registered (exact match only).
        """
        spec = self._specs[OpFamily.of(family)].get(name)
        if spec is None:
            raise InvalidArgumentError(f"Illegal name {name}")
        return spec

    def resolve(
        self,
        family: OpFamily | str,
        name: str,
        x: Any,
        y: Any = None,
        z: Any = None,
        **params: Any,
    ) -> Operation:
        """
        Build an operation bound to the supplied operands.

        The arity follows from the operands: (x) is unary in place; (x, y)
        is unary-with-output for transforms and binary for accumulations;
        (x, y, z) is binary with explicit output and element count len(x).

        Args:
            family: Operation family (enum or name; "reduction" and
                "elementwise" are aliases).
            name: Operation name.
            x: Primary input.
            y: Output or secondary operand.
            z: Explicit output.
            **params: Overrides for the operation's auxiliary parameters.

        Returns:
            New Operation.

        Raises:
            InvalidArgumentError: If the name or a parameter is unknown, or
                z is given without y.
            OperationNotImplementedError: For the loss family.
        """
        family = OpFamily.of(family)
        if family == OpFamily.LOSS:
            return self.create_loss_function(name, x, y)

        spec = self.get(family, name)

        unknown = set(params) - set(spec.defaults)
        if unknown:
            raise InvalidArgumentError(
                f"Operation '{name}' does not accept parameters {sorted(unknown)}"
            )

        if x is None:
            raise InvalidArgumentError(f"Operation '{name}' requires an input operand")
        if z is not None and y is None:
            raise InvalidArgumentError(f"Operation '{name}' requires y when z is given")

        n: int | None = None
        if z is not None:
            arity = Arity.BINARY_WITH_OUTPUT_AND_LENGTH
            n = operand_length(x)
        elif y is not None:
            if family == OpFamily.TRANSFORM:
                arity = Arity.UNARY_WITH_OUTPUT
            else:
                arity = Arity.BINARY
                if spec.pairwise:
                    n = operand_length(x)
        else:
            arity = Arity.UNARY_IN_PLACE

        operation = Operation(
            name=name,
            family=family,
            arity=arity,
            x=x,
            y=y,
            z=z,
            n=n,
            params={**spec.defaults, **params},
            kernel=spec.kernel,
        )
        logger.debug(f"Resolved {family.value} '{name}' as {arity.value}")
        return operation

    def create_accumulation(self, name: str, x: Any, y: Any = None, z: Any = None) -> Operation:
        """Resolve an accumulation (reduction) operation."""
        return self.resolve(OpFamily.ACCUMULATION, name, x, y, z)

    def create_transform(self, name: str, x: Any, y: Any = None, z: Any = None) -> Operation:
        """Resolve a transform (elementwise) operation."""
        return self.resolve(OpFamily.TRANSFORM, name, x, y, z)

    def create_loss_function(self, name: str, x: Any, y: Any = None) -> Operation:
        """
        Resolve a loss function.

        Raises:
            OperationNotImplementedError: Always; no loss functions exist.
        """
        raise OperationNotImplementedError(OpFamily.LOSS.value, name)


def get_op_registry() -> OpRegistry:
    """Get the global operation registry with the built-in kernels loaded."""
    from pydotbuffer.ops import accumulations, transforms  # noqa: F401

    return OpRegistry()


def accumulation(name: str, *, pairwise: bool = False, **defaults: Any) -> Callable[[F], F]:
    """Decorator registering an accumulation kernel in the global registry."""

    def decorator(kernel: F) -> F:
        OpRegistry().register(
            OpFamily.ACCUMULATION, name, kernel, pairwise=pairwise, **defaults
        )
        return kernel

    return decorator


def transform(name: str, **defaults: Any) -> Callable[[F], F]:
    """Decorator registering a transform kernel in the global registry."""

    def decorator(kernel: F) -> F:
        OpRegistry().register(OpFamily.TRANSFORM, name, kernel, **defaults)
        return kernel

    return decorator


def resolve(
    family: OpFamily | str,
    name: str,
    x: Any,
    y: Any = None,
    z: Any = None,
    **params: Any,
) -> Operation:
    """Resolve an operation in the global registry."""
    return get_op_registry().resolve(family, name, x, y, z, **params)
