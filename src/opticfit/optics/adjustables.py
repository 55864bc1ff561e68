"""Adjustable parameters and their finite-difference steps.

Extended Summary
----------------
Turns per-record tag characters into :class:`Adjustable` descriptors
with explicit link lists, and chooses a finite-difference step for each
adjustable so that every parameter is perturbed by a comparable fraction
of its natural scale.

Tag grammar, per attribute column and per record:

- ``?`` marks a lone adjustable.
- A letter marks an adjustable group. The first record carrying that
  letter is the master; later records with the same letter in the same
  case are slaves (sign +1), in the opposite case anti-slaves (sign -1).
- Anything else marks a fixed cell.

Routine Listings
----------------
parse_adjustables : function
    Build adjustables with link lists from tag columns.
is_adjustable_tag : function
    Whether a tag character marks an adjustable.
footprint_radius : function
    Largest radius of the good rays at one surface.
surface_step : function
    Finite-difference step for a surface attribute.
ray_step : function
    Finite-difference step for a ray-start attribute.
adjustment_steps : function
    Steps for a full list of optics and ray adjustables.
"""

import math

import jax.numpy as jnp
from beartype.typing import Dict, List, Mapping, Sequence, Tuple
from jaxtyping import Array, Float

from opticfit.types import (
    Adjustable,
    LinkedParameter,
    RayAttr,
    SurfaceAttr,
    TraceAttr,
)

from .system import OpticalSystem, RayTracer

ANGLE_STEP_FACTOR: float = 60.0
ZERNIKE_STEP_FACTOR: float = 0.01
MIN_FOOTPRINT: float = 1e-6


def is_adjustable_tag(tag: str) -> bool:
    """Whether ``tag`` marks an adjustable cell."""
    return tag == "?" or (len(tag) == 1 and tag.isalpha())


def parse_adjustables(
    tag_columns: Mapping[int, Sequence[str]],
) -> Tuple[Adjustable, ...]:
    """Build adjustables from tag characters.

    Parameters
    ----------
    tag_columns : Mapping[int, Sequence[str]]
        For each attribute, one tag character per record. Attributes are
        visited in mapping order and records in sequence order, which
        fixes the parameter-vector order.

    Returns
    -------
    Tuple[Adjustable, ...]
        One Adjustable per lone ``?`` or per letter group.

    Examples
    --------
    >>> adj = parse_adjustables({SurfaceAttr.CURVE: ["", "A", "", "a"]})
    >>> adj[0].record, adj[0].links
    (1, (LinkedParameter(record=3, sign=-1),))
    """
    adjustables: List[Adjustable] = []
    for attribute, tags in tag_columns.items():
        looked_at = [False] * len(tags)
        for record, tag in enumerate(tags):
            if looked_at[record]:
                continue
            looked_at[record] = True
            if not is_adjustable_tag(tag):
                continue
            links: List[LinkedParameter] = []
            if tag.isalpha():
                for other in range(record + 1, len(tags)):
                    if looked_at[other]:
                        continue
                    other_tag = tags[other]
                    if other_tag.upper() != tag.upper():
                        continue
                    sign = 1 if other_tag.isupper() == tag.isupper() else -1
                    links.append(LinkedParameter(record=other, sign=sign))
                    looked_at[other] = True
            adjustables.append(
                Adjustable(
                    attribute=int(attribute),
                    record=record,
                    links=tuple(links),
                )
            )
    return tuple(adjustables)


def footprint_radius(
    tracer: RayTracer,
    surface: int,
    n_rays: int,
) -> float:
    """Largest local radius of the good rays at ``surface``.

    Parameters
    ----------
    tracer : RayTracer
        Tracer holding the results of the latest build.
    surface : int
        Surface index.
    n_rays : int
        Number of rays in the table.

    Returns
    -------
    float
        Largest sqrt(x^2 + y^2) over good rays, 0.0 if none are good.
    """
    radius = 0.0
    for ray in range(n_rays):
        if not tracer.is_good(ray):
            continue
        x = tracer.ray_output(ray, surface, TraceAttr.XL)
        y = tracer.ray_output(ray, surface, TraceAttr.YL)
        radius = max(radius, math.hypot(x, y))
    return radius


def surface_step(
    attribute: int,
    user_step: float,
    osize: float,
    radius: float,
) -> float:
    """Finite-difference step for one surface attribute.

    Linear positions scale with the optics size, angles (in degrees) by
    a fixed factor, curvatures by the inverse footprint radius, and
    polynomial coefficient A_n by 1 / (n r^(n-1)) so that each
    perturbs the sag at the footprint edge by about ``user_step``.

    Parameters
    ----------
    attribute : int
        SurfaceAttr column.
    user_step : float
        Base step chosen by the user.
    osize : float
        Optics size.
    radius : float
        Footprint radius at this surface. Values below 1e-6 are replaced
        by half the optics size.

    Returns
    -------
    float
        Step for this attribute.
    """
    if SurfaceAttr.is_zernike(attribute):
        return ZERNIKE_STEP_FACTOR * user_step
    if radius < MIN_FOOTPRINT:
        radius = 0.5 * osize
    if attribute in (SurfaceAttr.X, SurfaceAttr.Y, SurfaceAttr.Z):
        return user_step * osize
    if attribute in (SurfaceAttr.TILT, SurfaceAttr.PITCH, SurfaceAttr.ROLL):
        return ANGLE_STEP_FACTOR * user_step
    if attribute in (SurfaceAttr.CURVE, SurfaceAttr.CURVX):
        return user_step / radius
    order = SurfaceAttr.polynomial_order(attribute)
    if order >= 2:
        return user_step / (order * radius ** (order - 1))
    return user_step


def ray_step(attribute: int, user_step: float, osize: float) -> float:
    """Finite-difference step for one ray-start attribute."""
    if attribute in (RayAttr.X, RayAttr.Y, RayAttr.Z):
        return user_step * osize
    return user_step


def adjustment_steps(
    system: OpticalSystem,
    tracer: RayTracer,
    optics: Sequence[Adjustable],
    rays: Sequence[Adjustable],
    user_step: float,
) -> Float[Array, " n"]:
    """Steps for optics adjustables followed by ray adjustables.

    Requires a full ray build on ``tracer`` beforehand so that the good
    rays and their footprints are known.

    Returns
    -------
    Float[Array, " n"]
        One step per adjustable, in parameter-vector order.
    """
    radii: Dict[int, float] = {}
    steps: List[float] = []
    for adjustable in optics:
        if adjustable.record not in radii:
            radii[adjustable.record] = footprint_radius(
                tracer, adjustable.record, system.n_rays
            )
        steps.append(
            surface_step(
                adjustable.attribute,
                user_step,
                system.osize,
                radii[adjustable.record],
            )
        )
    for adjustable in rays:
        steps.append(ray_step(adjustable.attribute, user_step, system.osize))
    return jnp.asarray(steps, dtype=jnp.float64)
