"""
Logging setup and per-request access log.

configure_logging() sets the root level from LOG_LEVEL and, when LOG_FILE is
set, adds a file handler (creating its directory). register_request_logging()
logs one line per request with method, path, status, duration, client ip,
user agent and the authenticated user id.
"""
from __future__ import annotations

import logging
import os
import time

from flask import Flask, g, request

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

request_logger = logging.getLogger("api.request")


def configure_logging(app: Flask) -> None:
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "info")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)

    log_file = app.config.get("LOG_FILE")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        already = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root.handlers
        )
        if not already:
            handler = logging.FileHandler(log_file)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)


def register_request_logging(app: Flask) -> None:
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(response):
        started = g.get("request_started")
        duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        identity = g.get("current_identity")
        fields = {
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "ip": request.remote_addr,
            "user_agent": request.user_agent.string,
            "user_id": identity.user_id if identity else None,
        }
        message = " ".join(f"{k}={v}" for k, v in fields.items())
        if response.status_code >= 500:
            request_logger.error("Server error %s", message, extra={"request": fields})
        elif response.status_code >= 400:
            request_logger.warning("Client error %s", message, extra={"request": fields})
        else:
            request_logger.info("Request processed %s", message, extra={"request": fields})
        return response
