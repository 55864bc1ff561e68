"""Host callback contract and the finite-difference base host.

Extended Summary
----------------
The Levenberg-Marquardt engine never touches the problem domain. It
drives a *host* through five callbacks:

- ``perform_residuals()`` evaluates residuals at the current parameters
  and returns the sum-of-squares, or ``FAILED_SOS``.
- ``nudge(delta)`` adds ``delta`` to the parameters, re-evaluates and
  returns the new sum-of-squares, or ``FAILED_SOS``.
- ``build_jacobian()`` rebuilds the Jacobian, returning False on failure.
- ``fetch_jacobian(i, j)`` and ``fetch_residual(i)`` read single entries.

The engine only sends deltas, so the host alone remembers the current
parameter values.

Routine Listings
----------------
LMHost : Protocol
    The five-callback contract consumed by the engine.
FiniteDifferenceHost : class
    Abstract host that builds its Jacobian by central differences.
"""

import math
from abc import ABC, abstractmethod

import jax.numpy as jnp
from beartype.typing import Protocol, runtime_checkable
from jaxtyping import Array, Float

from opticfit.utils.logging import get_logger

logger = get_logger(__name__)


def is_failed(sos: float) -> bool:
    """Whether a sum-of-squares signals a failed evaluation.

    ``FAILED_SOS`` is +inf; NaN and overflow are treated the same way
    because no legitimate sum-of-squares is non-finite.
    """
    return not math.isfinite(sos)


@runtime_checkable
class LMHost(Protocol):
    """Callbacks the iteration engine needs from its host."""

    def perform_residuals(self) -> float: ...

    def nudge(self, delta: Float[Array, " n"]) -> float: ...

    def build_jacobian(self) -> bool: ...

    def fetch_jacobian(self, i: int, j: int) -> float: ...

    def fetch_residual(self, i: int) -> float: ...


class FiniteDifferenceHost(ABC):
    """Host whose Jacobian is estimated by central differences.

    Subclasses supply the domain: how to apply a delta vector to their
    parameter store, how to evaluate the residuals, and where the latest
    residuals live.

    Parameters
    ----------
    steps : Float[Array, " n"]
        Finite-difference step for each parameter.
    n_points : int
        Number of residuals produced by each evaluation.
    """

    def __init__(self, steps: Float[Array, " n"], n_points: int) -> None:
        self.steps: Float[Array, " n"] = jnp.asarray(steps, dtype=jnp.float64)
        self.n_params: int = int(self.steps.shape[0])
        self.n_points: int = int(n_points)
        self.jacobian: Float[Array, " m n"] = jnp.zeros(
            (self.n_points, self.n_params), dtype=jnp.float64
        )

    @abstractmethod
    def apply_delta(self, delta: Float[Array, " n"]) -> None:
        """Add ``delta`` to the parameter store without evaluating."""

    @abstractmethod
    def perform_residuals(self) -> float:
        """Evaluate residuals; return sum-of-squares or FAILED_SOS."""

    @property
    @abstractmethod
    def residuals(self) -> Float[Array, " m"]:
        """Residuals from the most recent evaluation."""

    def nudge(self, delta: Float[Array, " n"]) -> float:
        """Apply ``delta`` and return the new sum-of-squares."""
        self.apply_delta(jnp.asarray(delta, dtype=jnp.float64))
        return self.perform_residuals()

    def build_jacobian(self) -> bool:
        """Rebuild the Jacobian column by column.

        Each column j moves parameter j by +step, records the residuals,
        moves it by -2 step, records again, and finally moves it back by
        +step. That costs three evaluations per parameter.

        Returns
        -------
        bool
            False if any evaluation failed. The parameters are returned
            to their starting values either way.
        """
        jacobian = jnp.zeros((self.n_points, self.n_params), dtype=jnp.float64)
        for j in range(self.n_params):
            step = self.steps[j]
            delta = jnp.zeros((self.n_params,), dtype=jnp.float64).at[j].set(
                step
            )
            if is_failed(self.nudge(delta)):
                logger.debug("Jacobian column %d failed at +step", j)
                self.apply_delta(-delta)
                return False
            plus: Float[Array, " m"] = self.residuals
            if is_failed(self.nudge(-2.0 * delta)):
                logger.debug("Jacobian column %d failed at -step", j)
                self.apply_delta(delta)
                return False
            jacobian = jacobian.at[:, j].set(
                (plus - self.residuals) / (2.0 * step)
            )
            if is_failed(self.nudge(delta)):
                logger.debug("Jacobian column %d failed on restore", j)
                return False
        self.jacobian = jacobian
        return True

    def fetch_jacobian(self, i: int, j: int) -> float:
        """One Jacobian entry; i indexes residuals, j parameters."""
        return float(self.jacobian[i, j])

    def fetch_residual(self, i: int) -> float:
        """One residual from the most recent evaluation."""
        return float(self.residuals[i])

