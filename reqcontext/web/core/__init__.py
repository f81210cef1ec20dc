"""
Core logic package.

Provides the request error types and their HTTP handlers.
"""

from .exceptions import (
    ClientIpUnavailableError,
    FileFieldMissingError,
    RequestContextNotBoundError,
    RequestError,
)

__all__ = [
    "ClientIpUnavailableError",
    "FileFieldMissingError",
    "RequestContextNotBoundError",
    "RequestError",
]
