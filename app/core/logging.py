"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; the application
entry point calls :func:`configure_logging` once to attach a handler.
"""

import logging
import sys

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the root logger.

    Safe to call more than once: an existing handler installed by this
    function is reused and only the level is updated.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers:
        if getattr(handler, "_baby_tracker", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler._baby_tracker = True  # type: ignore[attr-defined]
    root.addHandler(handler)
