"""
Global Exception Handler Middleware for the Match Patrol API
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from match_patrol.utils.exceptions import MatchPatrolError, map_to_http_exception
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)

QUIET_PATHS = ("/api/health",)


def error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Create standardized error response"""
    if isinstance(detail, str):
        detail = {"error": detail, "message": detail}
    elif not isinstance(detail, dict):
        detail = {"message": str(detail)}

    content = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail
    }
    return JSONResponse(status_code=status_code, content=content, headers={"X-Request-ID": request_id})


async def match_patrol_exception_handler(request: Request, exc: MatchPatrolError) -> JSONResponse:
    """Exception handler registered on the app so routers raise domain errors directly"""
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    http_exc = map_to_http_exception(exc)
    log = logger.warning if http_exc.status_code < 500 else logger.error
    log(
        f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
        extra={"request_id": request_id, "error_code": exc.error_code, "details": exc.details}
    )
    return error_response(request_id, http_exc.status_code, http_exc.detail)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Assigns request ids and turns anything that escapes the app into a JSON error"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except MatchPatrolError as exc:
            return await match_patrol_exception_handler(request, exc)

        except HTTPException as exc:
            logger.warning(
                f"HTTP exception in {request.method} {request.url.path}: {exc.detail}",
                extra={"request_id": request_id, "status_code": exc.status_code}
            )
            return error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc()
                },
                exc_info=True
            )
            return error_response(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later."
            })


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its (truncated) body and the response status"""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.time()
        request_id = getattr(request.state, 'request_id', 'unknown')

        request_body = None
        if request.method in ["POST", "PUT", "PATCH"]:
            body = await request.body()
            if len(body) < 10000:
                request_body = body.decode('utf-8', errors='ignore')[:1000]
            else:
                request_body = f"<Large body: {len(body)} bytes>"

        logger.debug(
            f"Request: {request.method} {request.url} body={request_body}",
            extra={
                "request_id": request_id,
                "origin": request.headers.get("origin"),
                "user_agent": request.headers.get("user-agent"),
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        response = await call_next(request)
        processing_time = time.time() - start_time

        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Flags slow requests and reports processing time in a header"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        processing_time = time.time() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={"processing_time": processing_time, "threshold": self.slow_request_threshold}
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
