import logging

from sportsfest_backend.core.config import LOG_LEVEL

_LOGGERS = {}


def get_logger(name: str) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. services.coordinator, services.broadcast)
    """
    if name in _LOGGERS:
        return _LOGGERS[name]

    logger = logging.getLogger(f"sportsfest.{name}")
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    logger.propagate = False
    _LOGGERS[name] = logger

    return logger
