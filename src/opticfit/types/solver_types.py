"""Configuration, state and status types for damped least squares.

Extended Summary
----------------
This module provides the immutable records that describe one
Levenberg-Marquardt solve: the configuration fixed at setup, the small
state carried from one outer iteration to the next, and the status
returned to the driver after each iteration.

The solver only ever sees vectors, a Jacobian and a host; everything it
needs to know about the problem size and the damping schedule lives in
:class:`LMConfig`, which replaces process-wide size and mode flags.

Routine Listings
----------------
IterStatus : IntEnum
    Outcome of one outer iteration.
LMConfig : NamedTuple
    Sizes, tolerance and damping schedule for one solve.
LMState : NamedTuple
    Damping and counters carried between outer iterations.
make_lm_config : function
    Factory function to create a validated LMConfig.
make_lm_state : function
    Factory function to create the initial LMState for a config.
ADJUST_DAMPING : tuple
    (initial, maximum) damping for the multi-parameter adjustment.
RAY_DAMPING : tuple
    (initial, maximum) damping for single-ray steering.
FAILED_SOS : float
    Reserved sum-of-squares value signalling an evaluation failure.

Notes
-----
The damped normal equations solved on every trial are

    (alpha + λI) δ = beta

with alpha = J^T J and beta = -J^T r. Large λ behaves like a short
gradient-descent step, small λ like a Gauss-Newton step.
"""

import math
from enum import IntEnum

from beartype import beartype
from beartype.typing import NamedTuple, Tuple
from jaxtyping import jaxtyped

from .common_types import ScalarFloat, ScalarInteger

FAILED_SOS: float = math.inf

ADJUST_DAMPING: Tuple[float, float] = (100.0, 1e6)
RAY_DAMPING: Tuple[float, float] = (1e-3, 1e3)

DAMPING_BOOST: float = 2.0
DAMPING_SHRINK: float = 0.1


class IterStatus(IntEnum):
    """Outcome of one outer iteration.

    Attributes
    ----------
    DOWN
        Sum-of-squares improved by more than the tolerance; call again.
    LEVEL
        Improvement fell within the tolerance; the solve has converged.
    MAX
        The driver reached its iteration cap. Never returned by the
        engine itself.
    BAD
        Evaluation failed or damping was exhausted; stop and report.
    """

    DOWN = 0
    LEVEL = 1
    MAX = 2
    BAD = 3

    @property
    def is_terminal(self) -> bool:
        """Whether a driver should stop calling after this status."""
        return self is not IterStatus.DOWN


class LMConfig(NamedTuple):
    """Fixed settings for one Levenberg-Marquardt solve.

    Attributes
    ----------
    tolerance : float
        Relative sum-of-squares change below which a step counts as
        level.
    n_params : int
        Number of adjustable parameters (columns of the Jacobian).
    n_points : int
        Number of residuals (rows of the Jacobian).
    initial_damping : float
        λ at the start of the solve.
    max_damping : float
        Ceiling on λ; exceeding it without an accepted step fails.
    boost : float
        Multiplier applied to λ after a rejected trial.
    shrink : float
        Multiplier applied to λ after an accepted trial.
    """

    tolerance: float
    n_params: int
    n_points: int
    initial_damping: float
    max_damping: float
    boost: float
    shrink: float


class LMState(NamedTuple):
    """State carried between outer iterations.

    Attributes
    ----------
    damping : float
        Current damping λ.
    outer : int
        Number of outer iterations performed so far.
    inner : int
        Number of damping trials in the most recent outer iteration.
    sos : float
        Sum-of-squares at the current accepted parameters, or
        ``FAILED_SOS`` before the first evaluation.
    """

    damping: float
    outer: int
    inner: int
    sos: float


@jaxtyped(typechecker=beartype)
def make_lm_config(
    n_params: ScalarInteger,
    n_points: ScalarInteger,
    tolerance: ScalarFloat = 1e-12,
    damping: Tuple[float, float] = ADJUST_DAMPING,
    boost: ScalarFloat = DAMPING_BOOST,
    shrink: ScalarFloat = DAMPING_SHRINK,
) -> LMConfig:
    """Create a validated LMConfig.

    Parameters
    ----------
    n_params : ScalarInteger
        Number of adjustable parameters. Must be at least 1.
    n_points : ScalarInteger
        Number of residuals. Must be at least 1.
    tolerance : ScalarFloat, optional
        Relative sum-of-squares tolerance. Default is 1e-12.
    damping : Tuple[float, float], optional
        (initial, maximum) damping. Default is ``ADJUST_DAMPING``.
    boost : ScalarFloat, optional
        Damping growth per rejected trial. Default is 2.0.
    shrink : ScalarFloat, optional
        Damping reduction per accepted trial. Default is 0.1.

    Returns
    -------
    LMConfig
        Validated configuration.

    Raises
    ------
    ValueError
        If any size, tolerance or damping factor is out of range.
    """
    n_params = int(n_params)
    n_points = int(n_points)
    tolerance = float(tolerance)
    initial_damping, max_damping = (float(d) for d in damping)
    boost = float(boost)
    shrink = float(shrink)
    if n_params < 1:
        raise ValueError(f"n_params must be positive, got {n_params}")
    if n_points < 1:
        raise ValueError(f"n_points must be positive, got {n_points}")
    if not tolerance > 0.0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")
    if not 0.0 < initial_damping:
        raise ValueError(
            f"initial damping must be positive, got {initial_damping}"
        )
    if not (0.0 < max_damping and math.isfinite(max_damping)):
        raise ValueError(
            f"max damping must be positive and finite, got {max_damping}"
        )
    if not 0.0 < shrink < 1.0 < boost:
        raise ValueError(
            f"need 0 < shrink < 1 < boost, got shrink={shrink}, "
            f"boost={boost}"
        )
    return LMConfig(
        tolerance=tolerance,
        n_params=n_params,
        n_points=n_points,
        initial_damping=initial_damping,
        max_damping=max_damping,
        boost=boost,
        shrink=shrink,
    )


def make_lm_state(config: LMConfig) -> LMState:
    """Create the initial LMState for ``config``."""
    return LMState(
        damping=config.initial_damping,
        outer=0,
        inner=0,
        sos=FAILED_SOS,
    )

