"""Damped least-squares adjustment of optical systems in JAX.

Extended Summary
----------------
A Levenberg-Marquardt engine driven through a small host-callback
contract, with hosts that adjust optical-surface attributes and ray
starts against ray and wavefront goals. The ray tracer and the residual
builder are supplied by the caller through Protocols, so the package
itself knows only vectors, a Jacobian and the tables it adjusts.

Routine Listings
----------------
:mod:`auto`
    Drivers for multi-parameter adjustment and per-ray steering.
:mod:`hosts`
    Hosts binding the iteration engine to a problem domain.
:mod:`invert`
    Damped least-squares iteration engine.
:mod:`optics`
    Optical parameter tables, adjustables and collaborator Protocols.
:mod:`types`
    Data structures and type definitions.
:mod:`utils`
    Linear algebra, configuration and logging helpers.

Examples
--------
>>> import opticfit as of
>>> optics = of.optics.parse_adjustables({of.types.SurfaceAttr.CURVE: "?"})
>>> driver = of.auto.AutoAdjust(system, tracer, builder, optics)
>>> driver.run(callback=print)

Notes
-----
64-bit precision is enabled on import; finite-difference Jacobians with
micro-scale steps are not meaningful in single precision.
"""

import os
from importlib.metadata import version

# Enable multi-threaded CPU execution for JAX (before importing JAX)
os.environ.setdefault(
    "XLA_FLAGS",
    "--xla_cpu_multi_thread_eigen=true intra_op_parallelism_threads=0",
)

# Enable 64-bit precision in JAX (must be set before importing submodules)
import jax  # noqa: E402

jax.config.update("jax_enable_x64", True)

from . import (  # noqa: E402, I001
    auto,
    hosts,
    invert,
    optics,
    types,
    utils,
)

__version__: str = version("opticfit")

__all__: list[str] = [
    "__version__",
    "auto",
    "hosts",
    "invert",
    "optics",
    "types",
    "utils",
]
