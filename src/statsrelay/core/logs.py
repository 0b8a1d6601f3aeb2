"""Python logging integration for statsrelay.

The relay logs through the standard library: each module obtains a logger
with get_logger(__name__) and the host application decides where records go.
"""

import logging

ROOT_LOGGER_NAME = "statsrelay"

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the statsrelay namespace.

    Args:
        name: Usually the calling module's __name__. Names outside the
            statsrelay namespace are nested under it.

    Returns:
        A standard library Logger.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(debug: bool = False, handler: logging.Handler | None = None) -> None:
    """Set the statsrelay log level and attach a handler once.

    Debug mode surfaces per-flush diagnostics (payload dumps, match counts,
    skipped keys). Otherwise only delivery problems are reported.

    Args:
        debug: True to log at DEBUG, False to log at WARNING.
        handler: Handler to attach. Defaults to a StreamHandler on stderr.
            Ignored when the logger already has handlers.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    if logger.handlers:
        return
    if handler is None:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
    logger.addHandler(handler)
