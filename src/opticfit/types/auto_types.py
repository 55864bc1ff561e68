"""Reports produced by the automatic adjustment drivers.

Extended Summary
----------------
Plain records a host UI can display after each driver step. They carry
counts and figures of merit only; the adjusted values themselves stay
in the :class:`~opticfit.optics.OpticalSystem`.

Routine Listings
----------------
AdjustProgress : NamedTuple
    Snapshot of a multi-parameter adjustment after a tick.
RaySummary : NamedTuple
    Outcome of a single-ray steering pass over all rays.
RUNNING_MESSAGE : str
    Progress message while iterations are still improving.
RAY_RISK_MESSAGE : str
    Progress message after a failed iteration.
"""

import math

from beartype.typing import NamedTuple, Optional

from .solver_types import IterStatus

RUNNING_MESSAGE: str = "Running..."
RAY_RISK_MESSAGE: str = "Ray risk. Stopping."
WAVEFRONT_CAUTION: str = "Caution: WFE + other goals"


class AdjustProgress(NamedTuple):
    """Snapshot of a multi-parameter adjustment.

    Attributes
    ----------
    iteration : int
        Ticks performed so far.
    rms : float
        Root-mean-square residual at the current parameters.
    n_rays : int
        Rays that were good at setup.
    n_goals : int
        Goals per ray, counting a wavefront goal.
    n_terms : int
        Residual count, ``n_rays * n_goals``.
    n_adjustables : int
        Free parameters.
    status : Optional[IterStatus]
        Status of the latest tick, None before the first.
    message : str
        One-line status for display.
    note : str
        Extra line for display; the RSS radius for two goals or a
        caution when a wavefront goal is mixed with others.
    """

    iteration: int
    rms: float
    n_rays: int
    n_goals: int
    n_terms: int
    n_adjustables: int
    status: Optional[IterStatus]
    message: str
    note: str

    @property
    def rss_radius(self) -> Optional[float]:
        """sqrt(2) * rms when there are exactly two goals."""
        if self.n_goals != 2:
            return None
        return math.sqrt(2.0) * self.rms


class RaySummary(NamedTuple):
    """Outcome of steering every ray.

    Attributes
    ----------
    n_rays : int
        Rays in the table.
    n_goals : int
        Goals per ray.
    n_starts : int
        Rays good at setup.
    n_adjusted : int
        Rays that finished without failing.
    n_failed : int
        Rays abandoned after a failed trace.
    rms : Optional[float]
        Residual rms over all goals after the pass, if a residual
        builder was supplied.
    """

    n_rays: int
    n_goals: int
    n_starts: int
    n_adjusted: int
    n_failed: int
    rms: Optional[float]


def status_message(status: Optional[IterStatus]) -> str:
    """Display message for the latest driver status."""
    if status is IterStatus.DOWN:
        return RUNNING_MESSAGE
    if status is IterStatus.BAD:
        return RAY_RISK_MESSAGE
    return ""
