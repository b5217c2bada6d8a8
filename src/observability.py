from prometheus_client import CONTENT_TYPE_LATEST
from pythonjsonlogger.json import JsonFormatter
import logging
from flask import Response

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s'


def json_formatter() -> JsonFormatter:
    return JsonFormatter(LOG_FORMAT)


def configure_logging(level=logging.INFO):
    handler = logging.StreamHandler()
    handler.setFormatter(json_formatter())
    root = logging.getLogger()
    # Avoid adding duplicate handlers
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)


def metrics_response(text: str) -> Response:
    """Wrap rendered exposition text in a Flask Response."""
    return Response(text, content_type=CONTENT_TYPE_LATEST)
