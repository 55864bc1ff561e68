"""Tick-driven adjustment of optics and ray starts.

Extended Summary
----------------
:class:`AutoAdjust` prepares a multi-parameter solve from an optical
system, its tracer, a residual builder and the parsed adjustables, then
advances it one outer iteration per :meth:`AutoAdjust.tick`. A host UI
can call ``tick`` from a timer and redraw between calls, or call
:meth:`AutoAdjust.run` with a callback.

Setup mirrors what a user must have in place before adjusting: at least
one goal (a ray goal or a wavefront goal), at least one adjustable, at
least one ray that traces, and a residual vector whose length is the
good-ray count times the goal count.

Routine Listings
----------------
AutoAdjust : class
    Driver for the multi-parameter adjustment.
"""

from beartype.typing import Callable, Optional, Sequence

from opticfit.hosts import AdjustHost
from opticfit.invert import lm_iteration
from opticfit.optics import (
    OpticalSystem,
    RayTracer,
    ResidualBuilder,
    adjustment_steps,
)
from opticfit.types import (
    ADJUST_DAMPING,
    WAVEFRONT_CAUTION,
    Adjustable,
    AdjustProgress,
    IterStatus,
    make_lm_config,
    make_lm_state,
    status_message,
)
from opticfit.utils import AutoOptions, get_logger, make_auto_options

from .errors import SetupError

logger = get_logger(__name__)


class AutoAdjust:
    """Driver for the multi-parameter optics and ray adjustment.

    Parameters
    ----------
    system : OpticalSystem
        Parameter store. It must not be modified by anything else until
        the driver completes.
    tracer : RayTracer
        Tracer bound to ``system``.
    builder : ResidualBuilder
        Residual builder reading ``tracer``.
    optics : Sequence[Adjustable]
        Surface adjustables from :func:`~opticfit.optics.parse_adjustables`.
    rays : Sequence[Adjustable]
        Ray-start adjustables from the same parser.
    options : AutoOptions, optional
        Step, iteration cap and tolerance. Defaults to
        :func:`~opticfit.utils.make_auto_options`.
    wavefront_goal : bool, optional
        Whether one of the builder's goals is wavefront error, which
        only changes the progress note. Default is False.

    Raises
    ------
    SetupError
        If there are no goals, no adjustables or no good rays, or if the
        builder's residual count disagrees with the good rays.
    """

    def __init__(
        self,
        system: OpticalSystem,
        tracer: RayTracer,
        builder: ResidualBuilder,
        optics: Sequence[Adjustable],
        rays: Sequence[Adjustable] = (),
        options: Optional[AutoOptions] = None,
        wavefront_goal: bool = False,
    ) -> None:
        self.system = system
        self.tracer = tracer
        self.builder = builder
        self.options: AutoOptions = (
            make_auto_options() if options is None else options
        )
        self.wavefront_goal: bool = wavefront_goal

        self.n_goals: int = int(builder.n_goals)
        if self.n_goals < 1:
            raise SetupError("no ray goals or WFE")
        self.n_adjustables: int = len(optics) + len(rays)
        if self.n_adjustables < 1:
            raise SetupError("no adjustables")
        self.n_good: int = int(tracer.build_rays(True))
        if self.n_good < 1:
            raise SetupError("no good rays", {"n_rays": system.n_rays})
        self.n_terms: int = self.n_good * self.n_goals

        steps = adjustment_steps(
            system, tracer, optics, rays, self.options.step
        )
        builder.compute()
        if int(builder.n_points) != self.n_terms:
            raise SetupError(
                "residual count mismatch, rebuild residuals",
                {"expected": self.n_terms, "found": int(builder.n_points)},
            )

        self.host = AdjustHost(
            system, tracer, builder, optics, rays, steps, self.n_good
        )
        self.config = make_lm_config(
            self.n_adjustables,
            self.n_terms,
            tolerance=self.options.tolerance,
            damping=ADJUST_DAMPING,
        )
        self.state = make_lm_state(self.config)
        self.iteration: int = 0
        self.status: Optional[IterStatus] = None
        self.rms: float = float(builder.rms)
        logger.info(
            "AutoAdjust: %d adjustables, %d rays, %d goals, rms %.6g",
            self.n_adjustables,
            self.n_good,
            self.n_goals,
            self.rms,
        )

    @property
    def complete(self) -> bool:
        """Whether the latest tick ended the adjustment."""
        return self.status is not None and self.status.is_terminal

    def tick(self) -> IterStatus:
        """Advance the solve by one outer iteration.

        Returns
        -------
        IterStatus
            DOWN while improving; LEVEL, BAD or MAX once complete.
            Further ticks after completion return the final status
            without doing any work.
        """
        if self.complete:
            return self.status
        self.iteration += 1
        if self.iteration >= self.options.max_iterations:
            self.status = IterStatus.MAX
        else:
            self.state, self.status = lm_iteration(
                self.state, self.host, self.config
            )
        self.rms = float(self.builder.rms)
        logger.debug(
            "tick %d: %s rms %.6g damping %.3g",
            self.iteration,
            self.status.name,
            self.rms,
            self.state.damping,
        )
        if self.complete:
            logger.info(
                "AutoAdjust finished after %d ticks: %s, rms %.6g",
                self.iteration,
                self.status.name,
                self.rms,
            )
        return self.status

    def run(
        self, callback: Optional[Callable[[AdjustProgress], None]] = None
    ) -> IterStatus:
        """Tick until complete, reporting progress after every tick."""
        while not self.complete:
            self.tick()
            if callback is not None:
                callback(self.progress())
        return self.status

    def progress(self) -> AdjustProgress:
        """Current iteration count, rms, sizes and status message."""
        progress = AdjustProgress(
            iteration=self.iteration,
            rms=self.rms,
            n_rays=self.n_good,
            n_goals=self.n_goals,
            n_terms=self.n_terms,
            n_adjustables=self.n_adjustables,
            status=self.status,
            message=status_message(self.status),
            note="",
        )
        if self.n_goals > 1 and self.wavefront_goal:
            return progress._replace(note=WAVEFRONT_CAUTION)
        if progress.rss_radius is not None:
            return progress._replace(
                note=f"RSS Radius = {progress.rss_radius:.6g}"
            )
        return progress
