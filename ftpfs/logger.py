"""Module containing the package logger and a helper for short log lines."""

import logging
from typing import Any, Optional


def _get_logger(name: Optional[str] = "ftpfs") -> logging.Logger:
    logger = logging.getLogger(name)

    # Applications decide where records go; stay quiet until they do.
    logger.addHandler(logging.NullHandler())

    return logger


def summarize(obj: Any, max_length: int = 255) -> str:
    """Return a stringified representation of the object up to the given length."""
    stringified_obj = str(obj)

    if len(stringified_obj) <= max_length:
        return stringified_obj
    else:
        return stringified_obj[: max_length - 3] + "..."


# Default logger
log = _get_logger()
