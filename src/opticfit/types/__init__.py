"""Data structures and type definitions for opticfit.

Extended Summary
----------------
Immutable records, enumerations and type aliases used throughout the
package. Records that carry validation are created through their
``make_*`` factory functions.

Submodules
----------
auto_types
    Progress and summary reports of the adjustment drivers
common_types
    Scalar type aliases for jaxtyping/beartype checked functions
optics_types
    Table attribute indices and adjustable descriptors
solver_types
    Levenberg-Marquardt configuration, state and status

Routine Listings
----------------
:data:`ADJUST_DAMPING`
    Damping schedule for the multi-parameter adjustment.
:class:`AdjustProgress`
    Snapshot of a multi-parameter adjustment after a tick.
:class:`Adjustable`
    One adjustable parameter with its linked records.
:data:`ANGLE_ATTRS`
    Surface attributes measured in degrees.
:data:`FAILED_SOS`
    Reserved sum-of-squares value signalling an evaluation failure.
:class:`IterStatus`
    Outcome of one outer iteration.
:class:`LinkedParameter`
    One ganged record that follows a master adjustable.
:class:`LMConfig`
    Sizes, tolerance and damping schedule for one solve.
:class:`LMState`
    Damping and counters carried between outer iterations.
:func:`make_lm_config`
    Factory function for LMConfig.
:func:`make_lm_state`
    Factory function for the initial LMState.
:data:`N_ZERNIKE`
    Number of Zernike coefficient columns.
:data:`RAY_DAMPING`
    Damping schedule for single-ray steering.
:class:`RaySummary`
    Outcome of a single-ray steering pass.
:class:`RayAttr`
    Column index of a ray-start attribute.
:data:`ScalarFloat`, :data:`ScalarInteger`
    Scalar type aliases.
:func:`status_message`
    Display message for a driver status.
:class:`SurfaceAttr`
    Column index of a surface attribute.
:class:`TraceAttr`
    Index of a per-surface ray trace output.
"""

from .auto_types import (
    RAY_RISK_MESSAGE,
    RUNNING_MESSAGE,
    WAVEFRONT_CAUTION,
    AdjustProgress,
    RaySummary,
    status_message,
)
from .common_types import (
    ScalarFloat,
    ScalarInteger,
)
from .optics_types import (
    ANGLE_ATTRS,
    N_ZERNIKE,
    Adjustable,
    LinkedParameter,
    RayAttr,
    SurfaceAttr,
    TraceAttr,
)
from .solver_types import (
    ADJUST_DAMPING,
    DAMPING_BOOST,
    DAMPING_SHRINK,
    FAILED_SOS,
    RAY_DAMPING,
    IterStatus,
    LMConfig,
    LMState,
    make_lm_config,
    make_lm_state,
)

__all__: list[str] = [
    "ADJUST_DAMPING",
    "AdjustProgress",
    "Adjustable",
    "ANGLE_ATTRS",
    "DAMPING_BOOST",
    "DAMPING_SHRINK",
    "FAILED_SOS",
    "IterStatus",
    "LinkedParameter",
    "LMConfig",
    "LMState",
    "make_lm_config",
    "make_lm_state",
    "N_ZERNIKE",
    "RAY_DAMPING",
    "RAY_RISK_MESSAGE",
    "RayAttr",
    "RaySummary",
    "RUNNING_MESSAGE",
    "ScalarFloat",
    "ScalarInteger",
    "status_message",
    "SurfaceAttr",
    "TraceAttr",
    "WAVEFRONT_CAUTION",
]
