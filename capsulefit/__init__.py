import logging

from . import bounding, schemas, utils
from .bounding import Capsule, CapsuleFitter, fit_bounding_capsule

__version__ = "0.0.1"

__all__ = [
    "configure_logging",
    "bounding",
    "schemas",
    "utils",
    "Capsule",
    "CapsuleFitter",
    "fit_bounding_capsule",
]


_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(level="INFO", format_string=None):
    """
    Send capsulefit log records to stderr at ``level``.

    INFO reports the hull size and the initial and refined capsules. DEBUG
    adds degenerate-hull fallbacks and one line per penalty round of the
    torch solver. Calling this again replaces the handler instead of
    stacking a second one.

    Args:
        level (str): One of 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'
            (case-insensitive).
        format_string (str, optional): ``logging.Formatter`` format. Defaults
            to time, logger name, level and message.

    Example:
        import capsulefit
        capsulefit.configure_logging('DEBUG', '%(name)s: %(message)s')
        capsule = capsulefit.fit_bounding_capsule([vertices], method='torch')
    """
    level_name = level.upper()
    if level_name not in _LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {list(_LEVELS)}")
    log_level = getattr(logging, level_name)

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logger = logging.getLogger("capsulefit")
    logger.setLevel(log_level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(handler)
    logger.propagate = False

    logger.debug(f"capsulefit logging set to {level_name}")
