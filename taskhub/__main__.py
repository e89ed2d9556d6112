# PURPOSE: single entry point; `python -m taskhub` or the `taskhub` script.

import uvicorn

from .config import settings
from .logging_utils import uvicorn_log_config


def main() -> None:
    """Run the API server on HOST:PORT (PORT comes from the environment)."""
    uvicorn.run(
        "taskhub.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=uvicorn_log_config(settings.LOG_LEVEL),
    )


if __name__ == "__main__":
    main()
