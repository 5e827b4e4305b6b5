"""Logging setup.

Captures WARN+ log records with associated request_id (if request context) into
an in-memory deque served to admins at /api/admin/support/logs, and tags every
request with an ``X-Request-Id``.
"""

from __future__ import annotations

import collections
import logging
import time
import uuid

from flask import Flask, g, has_request_context, request
from werkzeug.wrappers.response import Response

LOG_BUFFER: collections.deque[dict] = collections.deque(maxlen=500)

log = logging.getLogger("hcontrol.request")


class SupportLogHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        rid = getattr(g, "request_id", "-") if has_request_context() else "-"
        path = request.path if has_request_context() else "-"
        LOG_BUFFER.append(
            {
                "ts": time.time(),
                "level": record.levelname,
                "logger": record.name,
                "msg": self.format(record),
                "request_id": rid,
                "path": path,
            }
        )


def install_support_log_handler() -> None:
    root = logging.getLogger()
    # Avoid duplicate attachment if reloaded
    if any(isinstance(h, SupportLogHandler) for h in root.handlers):
        return
    h = SupportLogHandler(level=logging.WARNING)
    h.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(h)


def configure_logging(app: Flask) -> None:
    level = logging.DEBUG if app.debug else logging.INFO
    logging.getLogger("hcontrol").setLevel(level)
    install_support_log_handler()

    @app.before_request
    def _tag_request() -> None:
        g._t0 = time.perf_counter()
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())

    @app.after_request
    def _log_request(resp: Response) -> Response:
        dur_ms = int((time.perf_counter() - getattr(g, "_t0", time.perf_counter())) * 1000)
        rid = getattr(g, "request_id", None) or str(uuid.uuid4())
        resp.headers["X-Request-Id"] = rid
        resp.headers["X-Request-Duration-ms"] = str(dur_ms)
        ident = getattr(g, "identity", None)
        log.info(
            "request_id=%s user_id=%s method=%s path=%s status=%s duration_ms=%s",
            rid,
            ident["user_id"] if ident else None,
            request.method,
            request.path,
            resp.status_code,
            dur_ms,
        )
        return resp


__all__ = ["LOG_BUFFER", "SupportLogHandler", "install_support_log_handler", "configure_logging"]
