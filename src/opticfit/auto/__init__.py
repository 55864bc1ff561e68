"""Drivers for automatic adjustment.

Extended Summary
----------------
Drivers own the outer loop around the iteration engine. They validate a
problem, build the matching host, and decide when to stop: the
multi-parameter driver one tick at a time so a UI can refresh, the
single-ray driver in a tight loop per ray.

Submodules
----------
adjust
    Tick-driven multi-parameter adjustment
errors
    Setup exceptions
ray
    Per-ray steering

Routine Listings
----------------
AutoAdjust : class
    Driver for the multi-parameter adjustment
AutoRay : class
    Driver steering each ray's start onto its goals
SetupError : exception
    The tables do not describe a solvable adjustment
"""

from .adjust import AutoAdjust
from .errors import SetupError
from .ray import MAX_RAY_ITERATIONS, AutoRay

__all__: list[str] = [
    "AutoAdjust",
    "AutoRay",
    "MAX_RAY_ITERATIONS",
    "SetupError",
]
