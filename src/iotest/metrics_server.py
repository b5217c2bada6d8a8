"""HTTP endpoint exposing the tracker's live counters.

The Flask app is served by a werkzeug server on a daemon thread so it runs
alongside the cycle driver for the life of the process.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from flask import Flask, jsonify
from werkzeug.serving import BaseWSGIServer, make_server

from ..observability import metrics_response
from .config import RunContext, parse_listen_address

logger = logging.getLogger(__name__)


def create_app(context: RunContext) -> Flask:
    app = Flask(__name__)
    cfg = context.config

    @app.get("/metrics")
    def metrics():
        # rendered per request so scrapes always see live counters
        text = context.tracker.render_metric(cfg.insert_count, cfg.insert_wait_ms, cfg.sleep_wait_s)
        return metrics_response(text)

    @app.get("/report")
    def report():
        return jsonify(context.tracker.snapshot())

    @app.post("/reset")
    def reset():
        return jsonify({"resetCount": context.tracker.reset()})

    return app


class MetricsServer:
    """Background listener for the metrics app"""

    def __init__(self, context: RunContext):
        self.context = context
        self.host, self.port = parse_listen_address(context.config.metrics_address)
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> bool:
        """Bind and start serving. Returns False if the address could not be bound."""
        try:
            self._server = make_server(self.host, self.port, create_app(self.context), threaded=True)
        except (OSError, SystemExit) as e:
            # werkzeug calls sys.exit(1) when bind/listen fails
            logger.error("metrics server failed to bind %s:%s: %s", self.host, self.port, e)
            self._server = None
            return False
        self.port = self._server.server_port
        self._thread = threading.Thread(target=self._server.serve_forever, name="metrics-server", daemon=True)
        self._thread.start()
        logger.info("metrics server listening on %s:%s", self.host, self.port)
        return True

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
