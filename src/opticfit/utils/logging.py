"""Package logging setup.

Every logger handed out here lives under the ``opticfit`` root so that
applications can raise or silence the whole package with one call. The
root gets a single stream handler the first time a logger is requested.
"""

import logging

from beartype.typing import Optional

ROOT_LOGGER_NAME: str = "opticfit"
LOG_FORMAT: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured: bool = False


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package root logger once.

    Parameters
    ----------
    level : str, optional
        Level name for the root logger. Default is "INFO".

    Returns
    -------
    logging.Logger
        The package root logger.
    """
    global _configured
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    _configured = True
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger rooted under ``opticfit``.

    Parameters
    ----------
    name : Optional[str], optional
        Module name, usually ``__name__``. Names outside the package are
        nested under the package root.

    Returns
    -------
    logging.Logger
        Hierarchically named logger.
    """
    if not _configured:
        configure_logging()
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == "__main__":
        name = "main"
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
