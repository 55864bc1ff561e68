"""Dense linear algebra for the damped normal equations.

Extended Summary
----------------
Small dense kernels used by every Levenberg-Marquardt trial step: a
full-pivot Gauss-Jordan inverse that reports its determinant, the
gradient/curvature pair built from a Jacobian and residual vector, and
the damped step that combines the two.

The parameter count is small (tens at most), so the inverse is formed
explicitly rather than factored. Conditioning is handled entirely by
the damping added to the diagonal before inversion.

Routine Listings
----------------
gauss_jordan : function
    Invert a square matrix with full pivoting, returning its
    determinant.
gradient_and_curvature : function
    Downhill gradient beta = -J^T r and curvature alpha = J^T J.
damped_step : function
    Solve (alpha + λI) δ = beta through gauss_jordan.

Notes
-----
An exactly zero pivot means the inverse does not exist. In that case
the determinant is returned as 0.0 and the caller must treat the step
as unusable; no exception is raised.
"""

import jax
import jax.numpy as jnp
from beartype import beartype
from beartype.typing import Tuple
from jaxtyping import Array, Bool, Float, Int, jaxtyped

from opticfit.types.common_types import ScalarFloat


@jax.jit
@jaxtyped(typechecker=beartype)
def gauss_jordan(
    matrix: Float[Array, " n n"],
) -> Tuple[Float[Array, " n n"], Float[Array, " "]]:
    """Invert a square matrix by Gauss-Jordan elimination.

    Implementation Logic
    --------------------
    1. **Elimination** (one ``fori_loop`` pass per pivot k):
       - Search the uneliminated block rows, cols >= k for the entry of
         largest magnitude and record its row and column.
       - Swap that row into row k and that column into column k. The
         row or column moved out is negated so the determinant of the
         working matrix is unchanged by the exchange.
       - Scale and eliminate in place so that column k of the working
         matrix becomes column k of the inverse.
       - Multiply the running determinant by the pivot.
    2. **Restoration** (pivots visited in reverse):
       Undo each recorded exchange on the opposite axis, restoring the
       original row and column ordering of the inverse.

    Once a zero pivot is met the working matrix and determinant are
    frozen, so later passes are no-ops.

    Parameters
    ----------
    matrix : Float[Array, " n n"]
        Square matrix to invert.

    Returns
    -------
    inverse : Float[Array, " n n"]
        Inverse of ``matrix``, or ``matrix`` itself if it is singular.
    determinant : Float[Array, " "]
        Determinant of ``matrix``; exactly 0.0 if a zero pivot was met.

    Examples
    --------
    >>> a = jnp.array([[4.0, 7.0], [2.0, 6.0]])
    >>> inverse, det = gauss_jordan(a)
    >>> float(det)
    10.0
    """
    n: int = matrix.shape[0]
    index: Int[Array, " n"] = jnp.arange(n)

    def _eliminate(k, carry):
        work, det, pivot_rows, pivot_cols, singular = carry
        active: Bool[Array, " n n"] = (index >= k)[:, None] & (
            index >= k
        )[None, :]
        magnitude: Float[Array, " n n"] = jnp.where(
            active, jnp.abs(work), -1.0
        )
        flat = jnp.argmax(magnitude)
        row = (flat // n).astype(jnp.int32)
        col = (flat % n).astype(jnp.int32)
        big: Float[Array, " "] = work[row, col]
        is_zero: Bool[Array, " "] = big == 0.0
        frozen: Bool[Array, " "] = singular | is_zero

        swapped = work.at[k].set(work[row]).at[row].set(-work[k])
        work_r = jnp.where(row > k, swapped, work)
        swapped = work_r.at[:, k].set(work_r[:, col]).at[:, col].set(
            -work_r[:, k]
        )
        work_rc = jnp.where(col > k, swapped, work_r)

        pivot: Float[Array, " "] = jnp.where(is_zero, 1.0, big)
        off: Bool[Array, " n"] = index != k
        pivot_col: Float[Array, " n"] = -work_rc[:, k] / pivot
        pivot_row: Float[Array, " n"] = work_rc[k]
        eliminated = jnp.where(
            off[:, None] & off[None, :],
            work_rc + jnp.outer(pivot_col, pivot_row),
            work_rc,
        )
        eliminated = eliminated.at[:, k].set(
            jnp.where(off, pivot_col, eliminated[:, k])
        )
        eliminated = eliminated.at[k].set(
            jnp.where(off, pivot_row / pivot, eliminated[k])
        )
        eliminated = eliminated.at[k, k].set(1.0 / pivot)

        return (
            jnp.where(frozen, work, eliminated),
            jnp.where(frozen, 0.0, det * big),
            pivot_rows.at[k].set(row),
            pivot_cols.at[k].set(col),
            frozen,
        )

    def _restore(step, work):
        k = n - 1 - step
        row = pivot_rows[k]
        swapped = work.at[:, k].set(-work[:, row]).at[:, row].set(work[:, k])
        work = jnp.where(row > k, swapped, work)
        col = pivot_cols[k]
        swapped = work.at[k].set(-work[col]).at[col].set(work[k])
        return jnp.where(col > k, swapped, work)

    carry = (
        matrix,
        jnp.ones((), dtype=matrix.dtype),
        jnp.zeros((n,), dtype=jnp.int32),
        jnp.zeros((n,), dtype=jnp.int32),
        jnp.zeros((), dtype=jnp.bool_),
    )
    work, det, pivot_rows, pivot_cols, singular = jax.lax.fori_loop(
        0, n, _eliminate, carry
    )
    restored: Float[Array, " n n"] = jax.lax.fori_loop(0, n, _restore, work)
    inverse: Float[Array, " n n"] = jnp.where(singular, matrix, restored)
    return inverse, det


@jax.jit
@jaxtyped(typechecker=beartype)
def gradient_and_curvature(
    jacobian: Float[Array, " m n"],
    residuals: Float[Array, " m"],
) -> Tuple[Float[Array, " n"], Float[Array, " n n"]]:
    """Build the downhill gradient and curvature matrix.

    Parameters
    ----------
    jacobian : Float[Array, " m n"]
        d residual_i / d parameter_j.
    residuals : Float[Array, " m"]
        Residuals at the current parameters.

    Returns
    -------
    beta : Float[Array, " n"]
        Downhill gradient, beta_k = -sum_i r_i J_ik.
    alpha : Float[Array, " n n"]
        Undamped curvature, alpha_jk = sum_i J_ij J_ik.
    """
    beta: Float[Array, " n"] = -(jacobian.T @ residuals)
    alpha: Float[Array, " n n"] = jacobian.T @ jacobian
    return beta, alpha


@jax.jit
@jaxtyped(typechecker=beartype)
def damped_step(
    alpha: Float[Array, " n n"],
    beta: Float[Array, " n"],
    damping: ScalarFloat,
) -> Tuple[Float[Array, " n"], Float[Array, " "]]:
    """Solve the damped normal equations for one trial step.

    Parameters
    ----------
    alpha : Float[Array, " n n"]
        Undamped curvature matrix.
    beta : Float[Array, " n"]
        Downhill gradient.
    damping : ScalarFloat
        λ added to every diagonal element of alpha.

    Returns
    -------
    delta : Float[Array, " n"]
        Proposed parameter change, or zeros if the damped matrix is
        singular or the solve overflowed.
    determinant : Float[Array, " "]
        Determinant of the damped matrix; 0.0 flags a failed inversion,
        including one that produced a non-finite determinant or step.
    """
    n: int = alpha.shape[0]
    damped: Float[Array, " n n"] = alpha + damping * jnp.eye(
        n, dtype=alpha.dtype
    )
    inverse: Float[Array, " n n"]
    det: Float[Array, " "]
    inverse, det = gauss_jordan(damped)
    solved: Float[Array, " n"] = beta @ inverse
    failed = (
        (det == 0.0) | ~jnp.isfinite(det) | ~jnp.all(jnp.isfinite(solved))
    )
    delta: Float[Array, " n"] = jnp.where(
        failed, jnp.zeros_like(beta), solved
    )
    det = jnp.where(failed, jnp.zeros_like(det), det)
    return delta, det
