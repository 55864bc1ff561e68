import chex
import jax
import jax.numpy as jnp
from absl.testing import parameterized

from opticfit.utils import damped_step, gauss_jordan, gradient_and_curvature


def _well_conditioned(n: int, seed: int) -> jnp.ndarray:
    key = jax.random.PRNGKey(seed)
    noise = jax.random.normal(key, (n, n), dtype=jnp.float64)
    return noise + (n + 2) * jnp.eye(n, dtype=jnp.float64)


class TestGaussJordan(chex.TestCase, parameterized.TestCase):
    @chex.variants(with_jit=True, without_jit=True)
    def test_known_two_by_two(self) -> None:
        """Inverse and determinant of a small hand-checked matrix."""
        var_gauss_jordan = self.variant(gauss_jordan)
        matrix = jnp.array([[4.0, 7.0], [2.0, 6.0]])
        inverse, det = var_gauss_jordan(matrix)
        expected = jnp.array([[0.6, -0.7], [-0.2, 0.4]])
        chex.assert_trees_all_close(inverse, expected, rtol=1e-12)
        chex.assert_trees_all_close(det, 10.0, rtol=1e-12)

    @chex.variants(with_jit=True, without_jit=True)
    def test_permutation_matrix(self) -> None:
        """A swap matrix is its own inverse with determinant -1."""
        var_gauss_jordan = self.variant(gauss_jordan)
        matrix = jnp.array([[0.0, 1.0], [1.0, 0.0]])
        inverse, det = var_gauss_jordan(matrix)
        chex.assert_trees_all_close(inverse, matrix, atol=1e-15)
        chex.assert_trees_all_close(det, -1.0)

    @parameterized.named_parameters(
        ("n1", 1, 0),
        ("n3", 3, 1),
        ("n8", 8, 2),
        ("n20", 20, 3),
    )
    def test_double_inverse(self, n: int, seed: int) -> None:
        """Inverting twice recovers the original matrix."""
        matrix = _well_conditioned(n, seed)
        inverse, _ = gauss_jordan(matrix)
        recovered, _ = gauss_jordan(inverse)
        chex.assert_trees_all_close(recovered, matrix, rtol=1e-9, atol=1e-12)

    @parameterized.named_parameters(
        ("n2", 2, 4),
        ("n5", 5, 5),
        ("n12", 12, 6),
    )
    def test_product_is_identity(self, n: int, seed: int) -> None:
        matrix = _well_conditioned(n, seed)
        inverse, _ = gauss_jordan(matrix)
        chex.assert_trees_all_close(
            matrix @ inverse, jnp.eye(n), atol=1e-10
        )
        chex.assert_trees_all_close(
            inverse, jnp.linalg.inv(matrix), rtol=1e-9, atol=1e-12
        )

    @parameterized.named_parameters(
        ("n3", 3, 7),
        ("n6", 6, 8),
    )
    def test_determinant_matches(self, n: int, seed: int) -> None:
        matrix = _well_conditioned(n, seed)
        _, det = gauss_jordan(matrix)
        chex.assert_trees_all_close(
            det, jnp.linalg.det(matrix), rtol=1e-9
        )

    def test_asymmetric_pivoting(self) -> None:
        """Full pivoting handles a zero leading entry."""
        matrix = jnp.array(
            [[0.0, 2.0, 1.0], [1.0, 0.0, 3.0], [4.0, 1.0, 0.0]]
        )
        inverse, det = gauss_jordan(matrix)
        chex.assert_trees_all_close(matrix @ inverse, jnp.eye(3), atol=1e-12)
        chex.assert_trees_all_close(det, jnp.linalg.det(matrix), rtol=1e-12)

    @chex.variants(with_jit=True, without_jit=True)
    def test_zero_row_is_singular(self) -> None:
        """A zero row gives determinant 0.0 and returns the input."""
        var_gauss_jordan = self.variant(gauss_jordan)
        matrix = jnp.array([[1.0, 2.0], [0.0, 0.0]])
        inverse, det = var_gauss_jordan(matrix)
        chex.assert_trees_all_equal(det, jnp.array(0.0))
        chex.assert_trees_all_equal(inverse, matrix)
        chex.assert_tree_all_finite(inverse)

    def test_zero_matrix_is_singular(self) -> None:
        matrix = jnp.zeros((3, 3))
        inverse, det = gauss_jordan(matrix)
        chex.assert_trees_all_equal(det, jnp.array(0.0))
        chex.assert_trees_all_equal(inverse, matrix)

    def test_rank_deficient_is_singular(self) -> None:
        """Linearly dependent rows reach an exactly zero pivot."""
        matrix = jnp.array([[1.0, 2.0], [2.0, 4.0]])
        _, det = gauss_jordan(matrix)
        chex.assert_trees_all_equal(det, jnp.array(0.0))


class TestNormalEquations(chex.TestCase):
    @chex.variants(with_jit=True, without_jit=True)
    def test_gradient_and_curvature(self) -> None:
        var_fn = self.variant(gradient_and_curvature)
        jacobian = jnp.array([[1.0, 0.0], [0.0, 2.0], [1.0, 1.0]])
        residuals = jnp.array([-1.0, -2.0, -3.0])
        beta, alpha = var_fn(jacobian, residuals)
        chex.assert_trees_all_close(beta, jnp.array([4.0, 7.0]))
        chex.assert_trees_all_close(
            alpha, jnp.array([[2.0, 1.0], [1.0, 5.0]])
        )

    @chex.variants(with_jit=True, without_jit=True)
    def test_damped_step_solves_system(self) -> None:
        var_step = self.variant(damped_step)
        alpha = jnp.array([[2.0, 1.0], [1.0, 5.0]])
        beta = jnp.array([4.0, 7.0])
        delta, det = var_step(alpha, beta, 0.5)
        damped = alpha + 0.5 * jnp.eye(2)
        chex.assert_trees_all_close(
            delta, jnp.linalg.solve(damped, beta), rtol=1e-12
        )
        chex.assert_trees_all_close(det, jnp.linalg.det(damped), rtol=1e-12)

    def test_large_damping_approaches_gradient(self) -> None:
        """Heavy damping shrinks the step toward beta / λ."""
        alpha = jnp.array([[2.0, 1.0], [1.0, 5.0]])
        beta = jnp.array([4.0, 7.0])
        delta, _ = damped_step(alpha, beta, 1e8)
        chex.assert_trees_all_close(delta, beta / 1e8, rtol=1e-6)

    def test_singular_damped_matrix_gives_zero_step(self) -> None:
        alpha = jnp.array([[-1.0, 0.0], [0.0, 0.0]])
        beta = jnp.array([1.0, 1.0])
        delta, det = damped_step(alpha, beta, 1.0)
        chex.assert_trees_all_equal(det, jnp.array(0.0))
        chex.assert_trees_all_equal(delta, jnp.zeros(2))

    @chex.variants(with_jit=True, without_jit=True)
    def test_overflowed_curvature_gives_zero_step(self) -> None:
        """An alpha that overflowed to inf or NaN flags a failed solve."""
        var_step = self.variant(damped_step)
        jacobian = jnp.array([[1e157, 1e157], [1e157, -1e157]])
        residuals = jnp.array([-1.0, -1.0])
        beta, alpha = gradient_and_curvature(jacobian, residuals)
        self.assertFalse(bool(jnp.all(jnp.isfinite(alpha))))
        delta, det = var_step(alpha, beta, 100.0)
        chex.assert_trees_all_equal(det, jnp.array(0.0))
        chex.assert_trees_all_equal(delta, jnp.zeros(2))
