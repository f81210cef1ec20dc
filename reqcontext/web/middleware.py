"""
Where: reqcontext/web/middleware.py
What: HTTP middleware that builds and binds the RequestContext, with access logging.
Why: Give every request exactly one context for its whole cycle.
"""

import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from python_multipart.exceptions import FormParserError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from reqcontext.common.core.request_context import clear_request_id, generate_request_id

from .core.exceptions import ClientIpUnavailableError
from .services.request_context import bind_request_context, clear_request_context

logger = logging.getLogger("reqcontext.middleware")

REQUEST_ID_HEADER = "X-Request-Id"

BODY_READ_ERRORS = (StarletteHTTPException, MultiPartException, FormParserError)


def _body_error_response(exc: Exception) -> JSONResponse:
    """400-style response for a body the context factory could not read."""
    if isinstance(exc, StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})
    if isinstance(exc, MultiPartException):
        return JSONResponse(status_code=400, content={"message": exc.message})
    return JSONResponse(status_code=400, content={"message": "Invalid multipart data."})


async def request_context_middleware(request: Request, call_next):
    """Middleware for RequestContext binding and structured access logging."""
    start_time = time.perf_counter()
    req_id = generate_request_id()

    try:
        factory = request.app.state.context_factory
        try:
            context = await factory.build(request)
        except BODY_READ_ERRORS as e:
            # Exception handlers are not reached from middleware.
            logger.warning(
                f"Failed to read request body: {e}",
                extra={"request_id": req_id, "method": request.method, "path": request.url.path},
            )
            response = _body_error_response(e)
            response.headers[REQUEST_ID_HEADER] = req_id
            return response

        bind_request_context(context)
        request.state.request_context = context

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = req_id

        try:
            client_ip = context.get_client_ip()
        except ClientIpUnavailableError:
            client_ip = None

        process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)

        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_ms": process_time_ms,
                "user_agent": context.server().http_user_agent() or None,
                "client_ip": client_ip,
                "remote_port": context.server().remote_port() or None,
                "secure": context.is_request_secured(),
            },
        )

        return response
    finally:
        clear_request_context()
        clear_request_id()
        await request.close()
