"""CORS, request-id, and access logging middleware."""

import uuid
import time
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from hrms.core.config import settings

logger = logging.getLogger("hrms")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and log it with the resolved caller."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        response: Response = await call_next(request)

        duration = round((time.time() - start_time) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        # Set by get_access_context; absent on unauthenticated routes.
        user_id = getattr(request.state, "user_id", None)
        role_name = getattr(request.state, "role_name", None)
        logger.info(
            "%s %s %s %sms user=%s role=%s [%s]",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            user_id if user_id is not None else "-",
            role_name or "-",
            request_id,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application."""
    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request id, timing and caller
    app.add_middleware(AccessLogMiddleware)
