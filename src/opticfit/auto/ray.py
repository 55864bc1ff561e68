"""Steering of individual rays onto final-surface goals.

Extended Summary
----------------
:class:`AutoRay` adjusts one or two ray-start attributes of every ray,
each ray on its own, so that one or two of its outputs at the final
surface reach that ray's goal values. Per-ray problems are at most 2x2
and are iterated in a tight loop to a small cap with no yielding.

A ray that fails to trace at any point during its solve is abandoned
and counted as failed; its start is left at the last accepted values.

Routine Listings
----------------
AutoRay : class
    Driver for per-ray steering.
MAX_RAY_ITERATIONS : int
    Outer-iteration cap per ray.
"""

from beartype.typing import List, Optional, Sequence

from opticfit.hosts import MAX_RAY_ADJUSTABLES, MAX_RAY_GOALS, RayHost
from opticfit.invert import lm_iteration
from opticfit.optics import OpticalSystem, RayTracer, ResidualBuilder
from opticfit.types import (
    RAY_DAMPING,
    IterStatus,
    RayAttr,
    RaySummary,
    TraceAttr,
    make_lm_config,
    make_lm_state,
)
from opticfit.utils import get_logger

from .errors import SetupError

logger = get_logger(__name__)

MAX_RAY_ITERATIONS: int = 10
RAY_TOLERANCE: float = 1e-12


class AutoRay:
    """Driver steering each ray's start onto its goals.

    Parameters
    ----------
    system : OpticalSystem
        Parameter store holding the ray starts.
    tracer : RayTracer
        Tracer bound to ``system``.
    attributes : Sequence[RayAttr]
        One or two ray-start attributes to adjust, the same for every
        ray.
    goal_attributes : Sequence[TraceAttr]
        One or two final-surface outputs, the same for every ray.
    goal_values : Sequence[Sequence[float]]
        Goal values per ray, ``goal_values[ray][goal]``.
    builder : ResidualBuilder, optional
        If given, used to report the overall rms after the pass.
    max_iterations : int, optional
        Outer-iteration cap per ray. Default is 10.

    Raises
    ------
    SetupError
        If the adjustable or goal counts are out of range, the goal
        table does not match the ray table, or no ray traces.
    """

    def __init__(
        self,
        system: OpticalSystem,
        tracer: RayTracer,
        attributes: Sequence[RayAttr],
        goal_attributes: Sequence[TraceAttr],
        goal_values: Sequence[Sequence[float]],
        builder: Optional[ResidualBuilder] = None,
        max_iterations: int = MAX_RAY_ITERATIONS,
    ) -> None:
        if len(attributes) < 1:
            raise SetupError("no adjustables")
        if len(attributes) > MAX_RAY_ADJUSTABLES:
            raise SetupError(
                f"> {MAX_RAY_ADJUSTABLES} adjustables",
                {"n_adjustables": len(attributes)},
            )
        if not 1 <= len(goal_attributes) <= MAX_RAY_GOALS:
            raise SetupError(
                "no ray goals"
                if not goal_attributes
                else f"> {MAX_RAY_GOALS} goals",
                {"n_goals": len(goal_attributes)},
            )
        if len(goal_values) != system.n_rays:
            raise SetupError(
                "goal table does not match ray table",
                {"n_rays": system.n_rays, "n_goal_rows": len(goal_values)},
            )
        self.system = system
        self.tracer = tracer
        self.attributes = tuple(attributes)
        self.goal_attributes = tuple(goal_attributes)
        self.goal_values: List[List[float]] = [
            [float(v) for v in row] for row in goal_values
        ]
        self.builder = builder
        self.max_iterations: int = int(max_iterations)
        self.config = make_lm_config(
            len(self.attributes),
            len(self.goal_attributes),
            tolerance=RAY_TOLERANCE,
            damping=RAY_DAMPING,
        )
        self.n_available: int = int(tracer.build_rays(True))
        if self.n_available < 1:
            raise SetupError("no good rays", {"n_rays": system.n_rays})

    def _steer(self, ray: int) -> bool:
        host = RayHost(
            self.system,
            self.tracer,
            ray,
            self.attributes,
            self.goal_attributes,
            self.goal_values[ray],
        )
        state = make_lm_state(self.config)
        for _ in range(self.max_iterations):
            state, status = lm_iteration(state, host, self.config)
            if host.went_bad or status is IterStatus.BAD:
                logger.debug("ray %d went bad", ray)
                return False
            if status is IterStatus.LEVEL:
                break
        logger.debug(
            "ray %d: %d iterations, sos %.3g", ray, state.outer, state.sos
        )
        return True

    def run(self) -> RaySummary:
        """Steer every ray that traces and summarize the outcome."""
        n_starts = 0
        n_adjusted = 0
        n_failed = 0
        for ray in range(self.system.n_rays):
            if not self.tracer.run_one_ray(ray):
                continue
            n_starts += 1
            if self._steer(ray):
                n_adjusted += 1
            else:
                n_failed += 1

        rms: Optional[float] = None
        if self.builder is not None:
            self.tracer.build_rays(True)
            self.builder.compute()
            rms = float(self.builder.rms)

        summary = RaySummary(
            n_rays=self.system.n_rays,
            n_goals=len(self.goal_attributes),
            n_starts=self.n_available,
            n_adjusted=n_adjusted,
            n_failed=n_failed,
            rms=rms,
        )
        if n_starts != self.n_available:
            logger.warning(
                "%d rays traced at setup but %d at start of steering",
                self.n_available,
                n_starts,
            )
        logger.info(
            "AutoRay: %d adjusted, %d failed of %d rays",
            n_adjusted,
            n_failed,
            summary.n_rays,
        )
        return summary
