"""Hosts binding the iteration engine to a problem domain.

Extended Summary
----------------
The engine talks to its problem only through the five callbacks of
:class:`LMHost`. :class:`FiniteDifferenceHost` implements the Jacobian
side of that contract generically; the concrete hosts add the domain.

Submodules
----------
adjust
    Multi-parameter optics and ray-start adjustment host
base
    LMHost Protocol and finite-difference base class
ray
    Single-ray steering host

Routine Listings
----------------
AdjustHost : class
    Host adjusting surface attributes and ray starts together
FiniteDifferenceHost : class
    Abstract host building its Jacobian by central differences
is_failed : function
    Whether a sum-of-squares signals a failed evaluation
LMHost : Protocol
    The five callbacks consumed by the engine
RayHost : class
    Host steering one or two start attributes of a single ray
"""

from .adjust import AdjustHost
from .base import FiniteDifferenceHost, LMHost, is_failed
from .ray import MAX_RAY_ADJUSTABLES, MAX_RAY_GOALS, RayHost

__all__: list[str] = [
    "AdjustHost",
    "FiniteDifferenceHost",
    "is_failed",
    "LMHost",
    "MAX_RAY_ADJUSTABLES",
    "MAX_RAY_GOALS",
    "RayHost",
]
