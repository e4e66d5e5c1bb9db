import logging
import sys

from cfg_manager.base import CfgLogger, Severity

_LEVELS = {
    Severity.OUTPUT: logging.INFO,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

# Cache configured loggers so repeated calls don't duplicate handlers
_LOGGER_CACHE: dict[str, logging.Logger] = {}


def get_logger(name: str = "cfg_manager") -> logging.Logger:
    """
    Return a logger that writes every record to standard output.
    """
    if name in _LOGGER_CACHE:
        return _LOGGER_CACHE[name]

    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    _LOGGER_CACHE[name] = logger
    return logger


class DefaultLogger(CfgLogger):
    """
    Logger used by a cfg file when none is injected.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger()

    def put(self, severity: Severity, message: str) -> None:
        self.logger.log(_LEVELS[severity], message)
