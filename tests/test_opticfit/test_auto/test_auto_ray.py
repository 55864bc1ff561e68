import chex
import jax.numpy as jnp

from opticfit.auto import MAX_RAY_ITERATIONS, AutoRay, SetupError
from opticfit.optics import make_optical_system
from opticfit.types import RayAttr, SurfaceAttr, TraceAttr


class ThinLensTracer:
    """Paraxial thin lens at surface 0, screen at the last surface."""

    def __init__(self, system, distance=10.0, slope_limit=0.5) -> None:
        self.system = system
        self.distance = distance
        self.slope_limit = slope_limit
        self.good = [False] * system.n_rays
        self.outputs = {}
        self.single_traces = 0

    def _trace(self, ray: int) -> bool:
        x, y, _, u, v, _ = (float(a) for a in self.system.ray_starts[ray])
        if abs(u) > self.slope_limit or abs(v) > self.slope_limit:
            self.good[ray] = False
            return False
        scale = 1.0 - self.distance * self.system.surface_value(
            0, SurfaceAttr.CURVE
        )
        self.outputs[ray] = (
            (x, y),
            (x * scale + self.distance * u, y * scale + self.distance * v),
        )
        self.good[ray] = True
        return True

    def build_rays(self, all_rays: bool) -> int:
        for ray in range(self.system.n_rays):
            if all_rays or self.good[ray]:
                self._trace(ray)
        return sum(self.good)

    def is_good(self, ray: int) -> bool:
        return self.good[ray]

    def run_one_ray(self, ray: int) -> bool:
        self.single_traces += 1
        return self._trace(ray)

    def ray_output(self, ray: int, surface: int, attribute: TraceAttr) -> float:
        at_lens, at_screen = self.outputs[ray]
        point = at_lens if surface == 0 else at_screen
        if attribute in (TraceAttr.XL, TraceAttr.XG):
            return point[0]
        return point[1]

    def update_orientations(self) -> None:
        pass


class GoalBuilder:
    """Residuals of screen X against per-ray goals, for the summary."""

    def __init__(self, tracer, goals) -> None:
        self.tracer = tracer
        self.goals = goals
        self._residuals = jnp.zeros((0,))

    @property
    def n_goals(self) -> int:
        return 1

    @property
    def n_points(self) -> int:
        return int(self._residuals.shape[0])

    @property
    def residuals(self):
        return self._residuals

    @property
    def sos(self) -> float:
        return float(jnp.sum(self._residuals**2))

    @property
    def rms(self) -> float:
        return float(jnp.sqrt(self.sos / max(self.n_points, 1)))

    def compute(self) -> None:
        last = self.tracer.system.n_surfaces - 1
        self._residuals = jnp.asarray(
            [
                self.tracer.ray_output(ray, last, TraceAttr.XG) - goal[0]
                for ray, goal in enumerate(self.goals)
                if self.tracer.is_good(ray)
            ],
            dtype=jnp.float64,
        )


def _system(starts):
    return make_optical_system([[0.0] * 8, [0.0] * 8], starts, osize=5.0)


def _start(x, y=0.0, u=0.0, v=0.0):
    return [x, y, 0.0, u, v, 1.0]


class TestAutoRay(chex.TestCase):
    def test_every_ray_reaches_its_goal(self) -> None:
        system = _system([_start(1.0), _start(2.0), _start(3.0)])
        tracer = ThinLensTracer(system)
        goals = [[0.5], [0.0], [-1.0]]
        builder = GoalBuilder(tracer, goals)
        summary = AutoRay(
            system, tracer, [RayAttr.U], [TraceAttr.XG], goals, builder
        ).run()
        chex.assert_trees_all_close(
            system.ray_starts[:, int(RayAttr.U)],
            jnp.array([-0.05, -0.2, -0.4]),
            atol=1e-6,
        )
        self.assertEqual(summary.n_rays, 3)
        self.assertEqual(summary.n_goals, 1)
        self.assertEqual(summary.n_starts, 3)
        self.assertEqual(summary.n_adjusted, 3)
        self.assertEqual(summary.n_failed, 0)
        self.assertLess(summary.rms, 1e-6)

    def test_two_attributes_two_goals(self) -> None:
        system = _system([_start(1.0, 2.0)])
        tracer = ThinLensTracer(system)
        summary = AutoRay(
            system,
            tracer,
            [RayAttr.U, RayAttr.V],
            [TraceAttr.XG, TraceAttr.YG],
            [[3.0, -1.0]],
        ).run()
        self.assertEqual(summary.n_adjusted, 1)
        self.assertIsNone(summary.rms)
        self.assertAlmostEqual(system.ray_value(0, RayAttr.U), 0.2, delta=1e-6)
        self.assertAlmostEqual(
            system.ray_value(0, RayAttr.V), -0.3, delta=1e-6
        )

    def test_unreachable_goal_fails_that_ray_only(self) -> None:
        """Reaching 8.0 from the axis needs a slope beyond the limit."""
        system = _system([_start(1.0), _start(0.0)])
        tracer = ThinLensTracer(system)
        summary = AutoRay(
            system, tracer, [RayAttr.U], [TraceAttr.XG], [[0.0], [8.0]]
        ).run()
        self.assertEqual(summary.n_adjusted, 1)
        self.assertEqual(summary.n_failed, 1)
        self.assertAlmostEqual(
            system.ray_value(0, RayAttr.U), -0.1, delta=1e-6
        )
        self.assertLessEqual(abs(system.ray_value(1, RayAttr.U)), 0.5)

    def test_rays_that_never_trace_are_skipped(self) -> None:
        system = _system([_start(1.0), _start(1.0, u=0.9)])
        tracer = ThinLensTracer(system)
        summary = AutoRay(
            system, tracer, [RayAttr.U], [TraceAttr.XG], [[0.0], [0.0]]
        ).run()
        self.assertEqual(summary.n_starts, 1)
        self.assertEqual(summary.n_adjusted, 1)
        self.assertEqual(summary.n_failed, 0)
        self.assertEqual(system.ray_value(1, RayAttr.U), 0.9)

    def test_iteration_cap(self) -> None:
        self.assertEqual(MAX_RAY_ITERATIONS, 10)
        system = _system([_start(1.0)])
        tracer = ThinLensTracer(system)
        driver = AutoRay(
            system,
            tracer,
            [RayAttr.U],
            [TraceAttr.XG],
            [[0.0]],
            max_iterations=1,
        )
        driver.run()
        # start check, initial evaluation, 3 Jacobian traces, 1 trial
        self.assertEqual(tracer.single_traces, 1 + 1 + 3 + 1)


class TestAutoRaySetup(chex.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.system = _system([_start(1.0), _start(2.0)])
        self.tracer = ThinLensTracer(self.system)

    def test_no_adjustables(self) -> None:
        with self.assertRaisesRegex(SetupError, "no adjustables"):
            AutoRay(self.system, self.tracer, [], [TraceAttr.XG], [[0.0]] * 2)

    def test_too_many_adjustables(self) -> None:
        with self.assertRaisesRegex(SetupError, "> 2 adjustables"):
            AutoRay(
                self.system,
                self.tracer,
                [RayAttr.U, RayAttr.V, RayAttr.X],
                [TraceAttr.XG],
                [[0.0]] * 2,
            )

    def test_no_goals(self) -> None:
        with self.assertRaisesRegex(SetupError, "no ray goals"):
            AutoRay(self.system, self.tracer, [RayAttr.U], [], [[]] * 2)

    def test_goal_table_must_match_rays(self) -> None:
        with self.assertRaises(SetupError):
            AutoRay(
                self.system, self.tracer, [RayAttr.U], [TraceAttr.XG], [[0.0]]
            )

    def test_no_good_rays(self) -> None:
        system = _system([_start(1.0, u=0.8)])
        tracer = ThinLensTracer(system)
        with self.assertRaisesRegex(SetupError, "no good rays"):
            AutoRay(system, tracer, [RayAttr.U], [TraceAttr.XG], [[0.0]])
