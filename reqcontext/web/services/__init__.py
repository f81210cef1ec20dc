"""
Services package.

Provides the request context and its construction from incoming requests.
"""

from .context_factory import RequestContextFactory, build_server_variables
from .request_context import (
    RequestContext,
    bind_request_context,
    clear_request_context,
    get_current_request,
)

__all__ = [
    "RequestContext",
    "RequestContextFactory",
    "bind_request_context",
    "build_server_variables",
    "clear_request_context",
    "get_current_request",
]
