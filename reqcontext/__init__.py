"""
reqcontext - request context layer for FastAPI / Starlette services.

Wraps the ambient request state and derives trust-aware facts about the
client (IP, scheme, host, port) from a configured set of trusted proxies.
"""

__version__ = "1.0.0"
