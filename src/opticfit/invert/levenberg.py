"""Host-driven Levenberg-Marquardt iteration.

Extended Summary
----------------
One call to :func:`lm_iteration` performs one outer iteration of damped
least squares against a host that owns the parameters, the residuals and
the Jacobian. The engine itself keeps nothing but the damping λ and a
pair of counters, carried in :class:`~opticfit.types.LMState` from one
call to the next.

Each outer iteration:

1. Evaluates the residuals at the current parameters (``sosinit``).
2. Asks the host for a fresh Jacobian.
3. Builds beta = -J^T r and alpha = J^T J once.
4. Tries damped steps, each solving (alpha + λI) δ = beta, until one
   is accepted or λ reaches its ceiling. Every rejected trial is undone
   by nudging -δ, so the parameters are back at their starting values
   before the next trial.

A trial is judged by the relative change
``rise = (sos - sosinit) / (1 + sosinit)``:

- ``rise <= -tolerance``: accepted, λ shrinks, status DOWN.
- ``-tolerance < rise <= 0``: accepted, λ shrinks, status LEVEL.
- ``0 < rise < tolerance``: undone, status LEVEL.
- otherwise, or on a failed evaluation: undone, λ grows, try again.

Routine Listings
----------------
lm_iteration : function
    Perform one outer Levenberg-Marquardt iteration against a host.
relative_rise : function
    Relative change in sum-of-squares used to classify a trial.

Notes
-----
The host is stateful and called through Python callbacks, so the outer
loop is plain Python; only the small linear-algebra kernels are jitted.
"""

import jax.numpy as jnp
from beartype.typing import Tuple
from jaxtyping import Array, Float

from opticfit.hosts import LMHost, is_failed
from opticfit.types import IterStatus, LMConfig, LMState
from opticfit.utils import damped_step, get_logger, gradient_and_curvature

logger = get_logger(__name__)


def relative_rise(sos: float, sos_init: float) -> float:
    """Relative sum-of-squares change, scaled so sos near zero is safe."""
    return (sos - sos_init) / (1.0 + sos_init)


def _gather(
    host: LMHost, config: LMConfig
) -> Tuple[Float[Array, " m n"], Float[Array, " m"]]:
    jacobian = jnp.asarray(
        [
            [host.fetch_jacobian(i, j) for j in range(config.n_params)]
            for i in range(config.n_points)
        ],
        dtype=jnp.float64,
    )
    residuals = jnp.asarray(
        [host.fetch_residual(i) for i in range(config.n_points)],
        dtype=jnp.float64,
    )
    return jacobian, residuals


def lm_iteration(
    state: LMState,
    host: LMHost,
    config: LMConfig,
) -> Tuple[LMState, IterStatus]:
    """Perform one outer Levenberg-Marquardt iteration.

    Parameters
    ----------
    state : LMState
        Damping and counters from the previous call, or from
        :func:`~opticfit.types.make_lm_state` for the first call.
    host : LMHost
        Problem host; its parameters are modified in place.
    config : LMConfig
        Sizes, tolerance and damping schedule.

    Returns
    -------
    new_state : LMState
        Updated damping and counters. ``sos`` is the sum-of-squares at
        the parameters the host holds on return.
    status : IterStatus
        DOWN, LEVEL or BAD. MAX is left to the driver.

    Notes
    -----
    On BAD the host's parameters equal their values at entry, except
    when the initial evaluation itself failed, in which case nothing
    was moved.
    """
    outer = state.outer + 1
    damping = state.damping

    sos_init = host.perform_residuals()
    if is_failed(sos_init):
        logger.info("iteration %d: initial evaluation failed", outer)
        return state._replace(outer=outer, inner=0), IterStatus.BAD

    if not host.build_jacobian():
        logger.info("iteration %d: Jacobian evaluation failed", outer)
        return (
            state._replace(outer=outer, inner=0, sos=sos_init),
            IterStatus.BAD,
        )

    jacobian, residuals = _gather(host, config)
    beta, alpha = gradient_and_curvature(jacobian, residuals)

    inner = 0
    while True:
        inner += 1
        delta, det = damped_step(alpha, beta, damping)
        if float(det) == 0.0:
            logger.debug(
                "trial %d: no usable step at damping %.3g", inner, damping
            )
            damping *= config.boost
        else:
            sos = host.nudge(delta)
            rise = relative_rise(sos, sos_init)
            logger.debug(
                "trial %d: damping %.3g sos %.6g rise %.3g",
                inner,
                damping,
                sos,
                rise,
            )
            if not is_failed(sos) and rise <= -config.tolerance:
                damping *= config.shrink
                return (
                    LMState(damping=damping, outer=outer, inner=inner, sos=sos),
                    IterStatus.DOWN,
                )
            if not is_failed(sos) and rise <= 0.0:
                damping *= config.shrink
                return (
                    LMState(damping=damping, outer=outer, inner=inner, sos=sos),
                    IterStatus.LEVEL,
                )
            host.nudge(-delta)
            if not is_failed(sos) and rise < config.tolerance:
                return (
                    LMState(
                        damping=damping, outer=outer, inner=inner, sos=sos_init
                    ),
                    IterStatus.LEVEL,
                )
            damping *= config.boost
        if damping >= config.max_damping:
            break

    logger.info(
        "iteration %d: damping reached %.3g without an accepted step",
        outer,
        damping,
    )
    return (
        LMState(damping=damping, outer=outer, inner=inner, sos=sos_init),
        IterStatus.BAD,
    )
