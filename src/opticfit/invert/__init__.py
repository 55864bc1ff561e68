"""Damped least-squares iteration engine.

Extended Summary
----------------
The engine advances a Levenberg-Marquardt solve by one outer iteration
per call. It depends only on the :class:`~opticfit.hosts.LMHost`
callbacks, so any object exposing those five methods can be solved,
including synthetic hosts in tests.

Submodules
----------
levenberg
    Host-driven Levenberg-Marquardt iteration

Routine Listings
----------------
is_failed : function
    Whether a sum-of-squares signals a failed evaluation
lm_iteration : function
    Perform one outer iteration against a host
relative_rise : function
    Relative sum-of-squares change used to classify a trial
"""

from opticfit.hosts import is_failed

from .levenberg import lm_iteration, relative_rise

__all__: list[str] = [
    "is_failed",
    "lm_iteration",
    "relative_rise",
]
