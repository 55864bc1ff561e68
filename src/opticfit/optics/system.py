"""Optical parameter store and its external collaborators.

Extended Summary
----------------
:class:`OpticalSystem` owns the numbers the adjustment is allowed to
move: one row of attributes per surface and one row of start values per
ray. Ray tracing and the construction of goal-relative residuals happen
elsewhere; they are described here only by the Protocols the hosts call.

A solve must have exclusive ownership of its OpticalSystem for its
whole duration. Nothing here guards against concurrent writers.

Routine Listings
----------------
OpticalSystem : class
    Mutable surface and ray-start tables.
RayTracer : Protocol
    Traces rays through an OpticalSystem.
ResidualBuilder : Protocol
    Turns the latest trace into a residual vector.
make_optical_system : function
    Factory function to create an OpticalSystem from nested sequences.
"""

import jax.numpy as jnp
from beartype.typing import (
    Optional,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)
from jaxtyping import Array, Float

from opticfit.types import RayAttr, SurfaceAttr, TraceAttr


class OpticalSystem:
    """Surface and ray-start tables that an adjustment may modify.

    Tables are JAX arrays and are replaced, not mutated, on every nudge;
    the OpticalSystem object itself is the stable handle shared between
    the host and the tracer.

    Parameters
    ----------
    surfaces : Float[Array, " S A"]
        One row per surface, indexed by SurfaceAttr.
    ray_starts : Float[Array, " R 6"]
        One row per ray, indexed by RayAttr.
    osize : float
        Characteristic size of the optics, used to scale linear steps.
    """

    def __init__(
        self,
        surfaces: Float[Array, " S A"],
        ray_starts: Float[Array, " R 6"],
        osize: float,
    ) -> None:
        self.surfaces: Float[Array, " S A"] = surfaces
        self.ray_starts: Float[Array, " R 6"] = ray_starts
        self.osize: float = float(osize)

    @property
    def n_surfaces(self) -> int:
        return int(self.surfaces.shape[0])

    @property
    def n_rays(self) -> int:
        return int(self.ray_starts.shape[0])

    def nudge_surface(self, surface: int, attribute: int, amount) -> None:
        """Add ``amount`` to one surface cell."""
        self.surfaces = self.surfaces.at[surface, int(attribute)].add(amount)

    def nudge_ray(self, ray: int, attribute: int, amount) -> None:
        """Add ``amount`` to one ray-start cell."""
        self.ray_starts = self.ray_starts.at[ray, int(attribute)].add(amount)

    def surface_value(self, surface: int, attribute: int) -> float:
        return float(self.surfaces[surface, int(attribute)])

    def ray_value(self, ray: int, attribute: int) -> float:
        return float(self.ray_starts[ray, int(attribute)])


def make_optical_system(
    surfaces: Union[Sequence[Sequence[float]], Float[Array, " S A"]],
    ray_starts: Union[Sequence[Sequence[float]], Float[Array, " R 6"]],
    osize: Optional[float] = None,
) -> OpticalSystem:
    """Create an OpticalSystem with full-width float64 tables.

    Parameters
    ----------
    surfaces : Union[Sequence[Sequence[float]], Float[Array, " S A"]]
        Surface rows. Rows narrower than ``SurfaceAttr.n_columns()`` are
        zero-padded on the right.
    ray_starts : Union[Sequence[Sequence[float]], Float[Array, " R 6"]]
        Ray-start rows with the six RayAttr columns.
    osize : Optional[float], optional
        Optics size. Default is the largest |X| or |Y| among the
        surfaces, or 1.0 if that is zero.

    Returns
    -------
    OpticalSystem
        New parameter store.

    Raises
    ------
    ValueError
        If a table is empty or has the wrong number of columns, or if
        ``osize`` is not positive.
    """
    width: int = SurfaceAttr.n_columns()
    surface_arr: Float[Array, " S A"] = jnp.atleast_2d(
        jnp.asarray(surfaces, dtype=jnp.float64)
    )
    ray_arr: Float[Array, " R 6"] = jnp.atleast_2d(
        jnp.asarray(ray_starts, dtype=jnp.float64)
    )
    if surface_arr.shape[0] < 1 or ray_arr.shape[0] < 1:
        raise ValueError("need at least one surface and one ray")
    if surface_arr.shape[1] > width:
        raise ValueError(
            f"surface rows have {surface_arr.shape[1]} columns, max {width}"
        )
    if ray_arr.shape[1] != len(RayAttr):
        raise ValueError(
            f"ray rows need {len(RayAttr)} columns, got {ray_arr.shape[1]}"
        )
    surface_arr = jnp.pad(
        surface_arr, ((0, 0), (0, width - surface_arr.shape[1]))
    )
    if osize is None:
        lateral = jnp.array([SurfaceAttr.X, SurfaceAttr.Y], dtype=jnp.int32)
        extent = jnp.max(jnp.abs(surface_arr[:, lateral]))
        osize = float(extent) if float(extent) > 0.0 else 1.0
    if not float(osize) > 0.0:
        raise ValueError(f"osize must be positive, got {osize}")
    return OpticalSystem(surface_arr, ray_arr, float(osize))


@runtime_checkable
class RayTracer(Protocol):
    """Ray tracing engine operating on an OpticalSystem.

    Rays and surfaces are 0-based indices into the OpticalSystem tables.
    """

    def build_rays(self, all_rays: bool) -> int:
        """Trace all rays (True) or only those good at the last full
        build (False); return how many succeeded."""
        ...

    def is_good(self, ray: int) -> bool:
        """Whether ``ray`` succeeded in the latest build."""
        ...

    def run_one_ray(self, ray: int) -> bool:
        """Trace one ray; return whether it reached the final surface."""
        ...

    def ray_output(self, ray: int, surface: int, attribute: TraceAttr) -> float:
        """Trace output of ``ray`` at ``surface``."""
        ...

    def update_orientations(self) -> None:
        """Refresh cached surface rotations after an angle changed."""
        ...


@runtime_checkable
class ResidualBuilder(Protocol):
    """Builds goal-relative residuals from the latest trace."""

    @property
    def n_goals(self) -> int:
        """Goals per ray, including a wavefront-error goal if present."""
        ...

    @property
    def n_points(self) -> int:
        """Residuals produced by the latest ``compute``."""
        ...

    @property
    def residuals(self) -> Float[Array, " m"]: ...

    @property
    def sos(self) -> float: ...

    @property
    def rms(self) -> float: ...

    def compute(self) -> None:
        """Rebuild residuals from the tracer's current results."""
        ...
