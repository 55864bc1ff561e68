"""Exceptions raised while preparing an automatic adjustment.

Extended Summary
----------------
Only setup problems are exceptions. Once a solve is running, numerical
trouble is reported through :class:`~opticfit.types.IterStatus` and the
driver's progress message, never raised.

Routine Listings
----------------
SetupError : exception
    The tables do not describe a solvable adjustment.
"""

from beartype.typing import Any, Dict, Optional


class SetupError(ValueError):
    """The current tables do not describe a solvable adjustment.

    Attributes
    ----------
    message : str
        Short, user-facing reason such as ``"no adjustables"``.
    error_context : dict
        Counts that led to the failure.
    """

    def __init__(
        self, message: str, error_context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_context = error_context or {}

    def __str__(self) -> str:
        if not self.error_context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.error_context.items())
        return f"{self.message} ({details})"
