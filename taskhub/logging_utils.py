import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Third-party loggers that are too chatty at DEBUG
_QUIET_LOGGERS = ("multipart", "python_multipart", "websockets")


def setup_logging(level: str = "INFO") -> None:
    """Configure one stdout handler for the whole process.

    Format: time level logger message k=v ...
    """
    root = logging.getLogger()
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if root.handlers:
        # Respect existing (e.g., uvicorn) but align level
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    root.addHandler(handler)
    root.setLevel(level.upper())


def uvicorn_log_config(level: str = "INFO") -> dict:
    """dictConfig for uvicorn so its startup/error lines share the app format."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": LOG_DATEFMT},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": level.upper(), "propagate": False},
            # access lines come from the request middleware instead
            "uvicorn.access": {"handlers": [], "level": "WARNING", "propagate": False},
        },
    }
