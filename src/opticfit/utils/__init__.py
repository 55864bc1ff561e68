"""Common utility functions used throughout the code.

Extended Summary
----------------
Dense linear algebra for the damped normal equations, package logging,
and loading of user options for the automatic adjustment drivers.

Submodules
----------
config
    AutoOptions record and its YAML loader
linalg
    Gauss-Jordan inversion and normal-equation helpers
logging
    Package logger factory

Routine Listings
----------------
AutoOptions : NamedTuple
    Base step, tick cap and solver tolerance
configure_logging : function
    Configures the package root logger
damped_step : function
    Solves (alpha + λI) δ = beta for one trial step
gauss_jordan : function
    Full-pivot Gauss-Jordan inverse with determinant
get_logger : function
    Returns a logger rooted under the package
gradient_and_curvature : function
    Builds beta = -J^T r and alpha = J^T J
load_auto_options : function
    Reads AutoOptions from a YAML file
make_auto_options : function
    Factory function for clamped AutoOptions
"""

from .config import AutoOptions, load_auto_options, make_auto_options
from .linalg import damped_step, gauss_jordan, gradient_and_curvature
from .logging import configure_logging, get_logger

__all__: list[str] = [
    "AutoOptions",
    "configure_logging",
    "damped_step",
    "gauss_jordan",
    "get_logger",
    "gradient_and_curvature",
    "load_auto_options",
    "make_auto_options",
]
