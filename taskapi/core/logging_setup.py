import logging
import sys

from taskapi.core import config

_NOISY_LOGGERS = ("pymongo", "sqlalchemy.engine", "httpx", "multipart")


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger once for the process.

    Reconfiguring replaces the handler installed by a previous call, so
    creating several apps (as the tests do) never duplicates log lines.
    """
    root = logging.getLogger()
    root.setLevel((level or config.LOG_LEVEL).upper())

    for handler in list(root.handlers):
        if getattr(handler, "_taskapi_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler._taskapi_handler = True
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
