"""Optical parameter tables, adjustables and external collaborators.

Extended Summary
----------------
The domain side of an adjustment: the surface and ray-start tables that
may be modified, the tag parsing that decides which cells are adjustable
and how they are ganged, the finite-difference step chosen for each
one, and the Protocols describing the ray tracer and residual builder.

Submodules
----------
adjustables
    Tag parsing and finite-difference steps
system
    OpticalSystem store and collaborator Protocols

Routine Listings
----------------
adjustment_steps : function
    Steps for a full list of optics and ray adjustables
footprint_radius : function
    Largest radius of the good rays at one surface
is_adjustable_tag : function
    Whether a tag character marks an adjustable
make_optical_system : function
    Factory function for OpticalSystem
OpticalSystem : class
    Mutable surface and ray-start tables
parse_adjustables : function
    Build adjustables with link lists from tag columns
ray_step : function
    Finite-difference step for a ray-start attribute
RayTracer : Protocol
    Traces rays through an OpticalSystem
ResidualBuilder : Protocol
    Turns the latest trace into a residual vector
surface_step : function
    Finite-difference step for a surface attribute
"""

from .adjustables import (
    adjustment_steps,
    footprint_radius,
    is_adjustable_tag,
    parse_adjustables,
    ray_step,
    surface_step,
)
from .system import (
    OpticalSystem,
    RayTracer,
    ResidualBuilder,
    make_optical_system,
)

__all__: list[str] = [
    "adjustment_steps",
    "footprint_radius",
    "is_adjustable_tag",
    "make_optical_system",
    "OpticalSystem",
    "parse_adjustables",
    "ray_step",
    "RayTracer",
    "ResidualBuilder",
    "surface_step",
]
