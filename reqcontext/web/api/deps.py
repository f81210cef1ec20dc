"""
Dependency Injection for request handlers.

Give handlers the current RequestContext using FastAPI Depends.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..models.trust_config import TrustConfig
from ..services.request_context import RequestContext, get_current_request


# ==========================================
# 1. Service Accessors
# ==========================================


def get_trust_config(request: Request) -> TrustConfig:
    return request.app.state.trust_config


def get_request_context(request: Request) -> RequestContext:
    """
    RequestContext built by the middleware for this request.

    Falls back to the context bound to the current execution context.
    """
    context = getattr(request.state, "request_context", None)
    if context is not None:
        return context
    return get_current_request()


# Dependency Type Aliases
TrustConfigDep = Annotated[TrustConfig, Depends(get_trust_config)]
RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
