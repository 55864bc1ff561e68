"""User options for the automatic adjustment drivers.

Extended Summary
----------------
Options are read from the ``auto`` section of a YAML file::

    auto:
      step: 1.0e-6
      max_iterations: 100
      tolerance: 1.0e-12

Missing keys fall back to the defaults above. Values outside their legal
range are clamped and a warning is logged rather than raising, so a
stale options file never blocks a run.

Routine Listings
----------------
AutoOptions : NamedTuple
    Base step, tick cap and solver tolerance.
make_auto_options : function
    Factory function to create clamped AutoOptions.
load_auto_options : function
    Read AutoOptions from a YAML file.
"""

from pathlib import Path

import yaml
from beartype import beartype
from beartype.typing import Any, Dict, NamedTuple, Tuple, Union
from jaxtyping import jaxtyped

from opticfit.types.common_types import ScalarFloat, ScalarInteger

from .logging import get_logger

logger = get_logger(__name__)

STEP_RANGE: Tuple[float, float] = (1e-12, 1.0)
MAX_ITERATION_RANGE: Tuple[int, int] = (1, 1000)
TOLERANCE_RANGE: Tuple[float, float] = (1e-20, 1.0)

DEFAULT_STEP: float = 1e-6
DEFAULT_MAX_ITERATIONS: int = 100
DEFAULT_TOLERANCE: float = 1e-12


class AutoOptions(NamedTuple):
    """User options for the automatic adjustment drivers.

    Attributes
    ----------
    step : float
        Base finite-difference step, scaled per attribute.
    max_iterations : int
        Driver tick cap.
    tolerance : float
        Relative sum-of-squares tolerance handed to the solver.
    """

    step: float
    max_iterations: int
    tolerance: float


def _clamp(value, bounds, name):
    low, high = bounds
    clamped = max(low, min(value, high))
    if clamped != value:
        logger.warning(
            "%s=%r outside [%r, %r], using %r", name, value, low, high, clamped
        )
    return clamped


@jaxtyped(typechecker=beartype)
def make_auto_options(
    step: ScalarFloat = DEFAULT_STEP,
    max_iterations: ScalarInteger = DEFAULT_MAX_ITERATIONS,
    tolerance: ScalarFloat = DEFAULT_TOLERANCE,
) -> AutoOptions:
    """Create AutoOptions with every value clamped to its legal range.

    Parameters
    ----------
    step : ScalarFloat, optional
        Base finite-difference step, clamped to [1e-12, 1].
        Default is 1e-6.
    max_iterations : ScalarInteger, optional
        Driver tick cap, clamped to [1, 1000]. Default is 100.
    tolerance : ScalarFloat, optional
        Solver tolerance, clamped to [1e-20, 1]. Default is 1e-12.

    Returns
    -------
    AutoOptions
        Clamped options.
    """
    return AutoOptions(
        step=_clamp(float(step), STEP_RANGE, "step"),
        max_iterations=_clamp(
            int(max_iterations), MAX_ITERATION_RANGE, "max_iterations"
        ),
        tolerance=_clamp(float(tolerance), TOLERANCE_RANGE, "tolerance"),
    )


def load_auto_options(path: Union[str, Path]) -> AutoOptions:
    """Read AutoOptions from the ``auto`` section of a YAML file.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file to read.

    Returns
    -------
    AutoOptions
        Clamped options; absent keys take their defaults.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the file is not a mapping or the ``auto`` section is not a
        mapping.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        document: Any = yaml.safe_load(handle) or {}
    if not isinstance(document, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    section: Dict[str, Any] = document.get("auto") or {}
    if not isinstance(section, dict):
        raise ValueError(f"{path}: 'auto' must be a mapping")
    logger.debug("Loaded auto options from %s: %s", path, section)
    return make_auto_options(
        step=float(section.get("step", DEFAULT_STEP)),
        max_iterations=int(
            section.get("max_iterations", DEFAULT_MAX_ITERATIONS)
        ),
        tolerance=float(section.get("tolerance", DEFAULT_TOLERANCE)),
    )
