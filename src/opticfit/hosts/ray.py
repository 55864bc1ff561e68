"""Host steering the start of a single ray onto its goals.

Extended Summary
----------------
:class:`RayHost` adjusts one or two ray-start attributes of one ray so
that one or two of its trace outputs at the final surface hit goal
values. With at most two parameters and two residuals the Jacobian is
at most 2x2, so each solve is cheap enough to run in a tight loop per
ray.

Routine Listings
----------------
RayHost : class
    Finite-difference host over one ray of an OpticalSystem.
MAX_RAY_ADJUSTABLES : int
    Largest number of ray-start attributes steered at once.
MAX_RAY_GOALS : int
    Largest number of goals per ray.
"""

import jax.numpy as jnp
from beartype.typing import Sequence, Tuple
from jaxtyping import Array, Float

from opticfit.optics import OpticalSystem, RayTracer
from opticfit.types import FAILED_SOS, RayAttr, TraceAttr

from .base import FiniteDifferenceHost

MAX_RAY_ADJUSTABLES: int = 2
MAX_RAY_GOALS: int = 2
DEFAULT_RAY_STEP: float = 1e-6


class RayHost(FiniteDifferenceHost):
    """Host for one ray, one or two start attributes, one or two goals.

    Parameters
    ----------
    system : OpticalSystem
        Parameter store holding the ray starts.
    tracer : RayTracer
        Tracer bound to ``system``.
    ray : int
        Ray being steered.
    attributes : Sequence[RayAttr]
        Ray-start attributes to adjust.
    goal_attributes : Sequence[TraceAttr]
        Trace outputs at the final surface to compare.
    goal_values : Sequence[float]
        Goal for each of ``goal_attributes``.
    step : float, optional
        Finite-difference step for every attribute. Default is 1e-6.
    """

    def __init__(
        self,
        system: OpticalSystem,
        tracer: RayTracer,
        ray: int,
        attributes: Sequence[RayAttr],
        goal_attributes: Sequence[TraceAttr],
        goal_values: Sequence[float],
        step: float = DEFAULT_RAY_STEP,
    ) -> None:
        if not 1 <= len(attributes) <= MAX_RAY_ADJUSTABLES:
            raise ValueError(
                f"need 1 to {MAX_RAY_ADJUSTABLES} ray adjustables, "
                f"got {len(attributes)}"
            )
        if not 1 <= len(goal_attributes) <= MAX_RAY_GOALS:
            raise ValueError(
                f"need 1 to {MAX_RAY_GOALS} goals, got {len(goal_attributes)}"
            )
        if len(goal_values) != len(goal_attributes):
            raise ValueError("one goal value is needed per goal attribute")
        self.system = system
        self.tracer = tracer
        self.ray: int = int(ray)
        self.attributes: Tuple[int, ...] = tuple(int(a) for a in attributes)
        self.goal_attributes: Tuple[TraceAttr, ...] = tuple(goal_attributes)
        self.goals: Float[Array, " m"] = jnp.asarray(
            goal_values, dtype=jnp.float64
        )
        self.final_surface: int = system.n_surfaces - 1
        self.went_bad: bool = False
        self._residuals: Float[Array, " m"] = jnp.zeros_like(self.goals)
        steps = jnp.full((len(self.attributes),), step, dtype=jnp.float64)
        super().__init__(steps, len(self.goal_attributes))

    @property
    def residuals(self) -> Float[Array, " m"]:
        return self._residuals

    def perform_residuals(self) -> float:
        """Trace the ray and compare its final-surface outputs to goals."""
        if not self.tracer.run_one_ray(self.ray):
            self.went_bad = True
            return FAILED_SOS
        outputs = jnp.asarray(
            [
                self.tracer.ray_output(self.ray, self.final_surface, attr)
                for attr in self.goal_attributes
            ],
            dtype=jnp.float64,
        )
        self._residuals = outputs - self.goals
        return float(jnp.sum(self._residuals**2))

    def apply_delta(self, delta: Float[Array, " n"]) -> None:
        for attribute, amount in zip(self.attributes, delta):
            self.system.nudge_ray(self.ray, attribute, amount)
