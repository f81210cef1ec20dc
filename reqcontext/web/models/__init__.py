"""
Data model definitions package.

Aggregates the request bags and configuration models for use in other modules.
"""

from .files import FileBag
from .info import RequestInfo
from .parameter_bag import HeaderBag, ParameterBag
from .server import ServerBag, header_to_cgi
from .trust_config import HeaderRole, TrustConfig, TrustedHeaders

__all__ = [
    "FileBag",
    "HeaderBag",
    "HeaderRole",
    "ParameterBag",
    "RequestInfo",
    "ServerBag",
    "TrustConfig",
    "TrustedHeaders",
    "header_to_cgi",
]
