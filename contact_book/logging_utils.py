import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response

from .config import settings
from .metrics import inc_http_request, observe_latency_ms


logger = logging.getLogger("contact_book")
logger.setLevel(settings.LOG_LEVEL)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(settings.LOG_LEVEL)
    logger.addHandler(handler)


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def log_extra(request: Request, **fields) -> None:
    """Attach fields to the access log line written for this request."""
    extra = getattr(request.state, "log_extra", None)
    if not isinstance(extra, dict):
        extra = {}
        request.state.log_extra = extra
    extra.update(fields)


def _access_record(request: Request, request_id: str, status: int, start: float, level: str) -> dict:
    latency_ms = (time.perf_counter() - start) * 1000.0
    return {
        "ts": iso_now(),
        "level": level,
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client": request.client.host if request.client else None,
        "status": status,
        "latency_ms": round(latency_ms, 2),
    }


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    request_id = str(uuid.uuid4())
    start = time.perf_counter()

    request.state.request_id = request_id
    request.state.log_extra = {}

    response: Response
    try:
        response = await call_next(request)
    except Exception:
        log = _access_record(request, request_id, 500, start, "error")
        inc_http_request(request.url.path, 500)
        observe_latency_ms(log["latency_ms"])
        logger.error(json.dumps(log))
        raise

    log = _access_record(request, request_id, response.status_code, start, "info")

    inc_http_request(request.url.path, response.status_code)
    observe_latency_ms(log["latency_ms"])

    # add extra fields from handlers (e.g. upload result)
    if isinstance(getattr(request.state, "log_extra", None), dict):
        log.update(request.state.log_extra)

    logger.info(json.dumps(log))
    response.headers["X-Request-ID"] = request_id
    return response
