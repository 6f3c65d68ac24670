import logging
import sys

from .config import Settings


def setup_logging(settings: Settings):
    logging.basicConfig(
        stream=sys.stdout,
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
