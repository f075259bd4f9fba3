from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for the service.

    Notes:
    - Uvicorn already configures handlers; this function mainly sets levels for our package.
    - Set `APP_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) to control verbosity.
    - Tokens, passwords and cookie values are never passed to a logger.
    """

    normalized = level.upper()
    logging.getLogger("mutabaah").setLevel(normalized)
    # Ensure child loggers under mutabaah.* inherit this level.
    logging.getLogger("mutabaah").propagate = True
