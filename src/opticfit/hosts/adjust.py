"""Host for the multi-parameter optics and ray-start adjustment.

Extended Summary
----------------
:class:`AdjustHost` maps the solver's parameter vector onto optics
adjustables (surface cells) followed by ray adjustables (ray-start
cells). Every evaluation retraces the rays that were good at setup and
asks the residual builder for a fresh residual vector.

Applying a delta to one parameter moves its master cell and all linked
cells; slaves follow with the same sign and anti-slaves with the
opposite sign. Moving a SHAPE master also moves ASPHER on the same
surface, keeping the two conic descriptions in step.

Routine Listings
----------------
AdjustHost : class
    Finite-difference host over an OpticalSystem.
"""

import jax.numpy as jnp
from beartype.typing import Sequence, Tuple
from jaxtyping import Array, Float

from opticfit.optics import OpticalSystem, RayTracer, ResidualBuilder
from opticfit.types import ANGLE_ATTRS, FAILED_SOS, Adjustable, SurfaceAttr
from opticfit.utils.logging import get_logger

from .base import FiniteDifferenceHost

logger = get_logger(__name__)


class AdjustHost(FiniteDifferenceHost):
    """Host adjusting surface attributes and ray starts together.

    Parameters
    ----------
    system : OpticalSystem
        Parameter store, owned exclusively for the solve.
    tracer : RayTracer
        Tracer bound to ``system``.
    builder : ResidualBuilder
        Residual builder reading ``tracer``.
    optics : Sequence[Adjustable]
        Surface adjustables; records are surface indices.
    rays : Sequence[Adjustable]
        Ray-start adjustables; records are ray indices.
    steps : Float[Array, " n"]
        Finite-difference step per adjustable, optics first.
    n_good : int
        Good rays at setup; fewer on any later build is a failure.
    """

    def __init__(
        self,
        system: OpticalSystem,
        tracer: RayTracer,
        builder: ResidualBuilder,
        optics: Sequence[Adjustable],
        rays: Sequence[Adjustable],
        steps: Float[Array, " n"],
        n_good: int,
    ) -> None:
        self.system = system
        self.tracer = tracer
        self.builder = builder
        self.optics: Tuple[Adjustable, ...] = tuple(optics)
        self.rays: Tuple[Adjustable, ...] = tuple(rays)
        self.n_good: int = int(n_good)
        self.sos: float = FAILED_SOS
        self.rms: float = FAILED_SOS
        n_params = len(self.optics) + len(self.rays)
        if n_params != len(steps):
            raise ValueError(
                f"{n_params} adjustables but {len(steps)} steps"
            )
        self._moves_angles: bool = any(
            adj.attribute in ANGLE_ATTRS for adj in self.optics
        )
        super().__init__(steps, builder.n_points)

    @property
    def residuals(self) -> Float[Array, " m"]:
        return jnp.asarray(self.builder.residuals, dtype=jnp.float64)

    def perform_residuals(self) -> float:
        """Retrace the good rays and rebuild residuals.

        Returns
        -------
        float
            Sum-of-squares, or FAILED_SOS if any initially good ray
            failed.
        """
        n_traced = self.tracer.build_rays(False)
        if n_traced < self.n_good:
            logger.debug("%d of %d rays traced", n_traced, self.n_good)
            return FAILED_SOS
        self.builder.compute()
        self.sos = float(self.builder.sos)
        self.rms = float(self.builder.rms)
        return self.sos

    def apply_delta(self, delta: Float[Array, " n"]) -> None:
        n_optics = len(self.optics)
        for adjustable, amount in zip(self.optics, delta[:n_optics]):
            self._nudge_surface(adjustable, amount)
        if self._moves_angles:
            self.tracer.update_orientations()
        for adjustable, amount in zip(self.rays, delta[n_optics:]):
            self.system.nudge_ray(adjustable.record, adjustable.attribute, amount)
            for link in adjustable.links:
                self.system.nudge_ray(
                    link.record, adjustable.attribute, link.sign * amount
                )

    def _nudge_surface(self, adjustable: Adjustable, amount) -> None:
        attribute = adjustable.attribute
        self.system.nudge_surface(adjustable.record, attribute, amount)
        for link in adjustable.links:
            self.system.nudge_surface(link.record, attribute, link.sign * amount)
        if attribute == SurfaceAttr.SHAPE:
            self.system.nudge_surface(
                adjustable.record, SurfaceAttr.ASPHER, amount
            )
