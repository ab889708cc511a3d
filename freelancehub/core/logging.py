"""Process-wide logging setup."""

import logging

from freelancehub.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging() -> None:
    """Configure the root logger from settings.

    ``basicConfig`` is a no-op when handlers already exist, so servers that
    install their own logging (uvicorn ``--log-config``) keep it.
    """

    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logging.getLogger("freelancehub").setLevel(settings.log_level)
