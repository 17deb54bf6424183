# logging_config.py
import logging

from idgen.core.config import settings


def setup_logger(name: str = "idgen") -> logging.Logger:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler()],
    )

    app_logger = logging.getLogger(name)
    app_logger.setLevel(settings.LOG_LEVEL)

    return app_logger
