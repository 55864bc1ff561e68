"""Scalar type aliases shared across the package.

Extended Summary
----------------
Aliases that accept either a plain Python number or a zero-dimensional
JAX array, so that functions decorated with
``@jaxtyped(typechecker=beartype)`` can be called from both traced and
untraced code.

Routine Listings
----------------
ScalarFloat : TypeAlias
    Python float or 0-d floating JAX array.
ScalarInteger : TypeAlias
    Python int or 0-d integer JAX array.
"""

from beartype.typing import TypeAlias, Union
from jaxtyping import Array, Float, Int

ScalarFloat: TypeAlias = Union[float, Float[Array, " "]]
ScalarInteger: TypeAlias = Union[int, Int[Array, " "]]
