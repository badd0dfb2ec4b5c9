"""Structured JSON logging configuration."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from wastetrack.core.config import settings


def setup_logging() -> None:
    """JSON lines on stdout in production, plain text everywhere else."""
    if settings.APP_ENV == "production":
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(request_id)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        handler.addFilter(_RequestIdFilter())
        logging.root.handlers = [handler]
        logging.root.setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )


class _RequestIdFilter(logging.Filter):
    """Stamp each record with the id of the request being served (or '-')."""

    def filter(self, record: logging.LogRecord) -> bool:
        from wastetrack.middleware.request_id import current_request_id

        record.request_id = current_request_id()
        return True
