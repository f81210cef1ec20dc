"""
Request context configuration definition.

Loads configuration from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys
from typing import List

from pydantic import Field, field_validator

from reqcontext.common.core.config import BaseAppConfig

from .models.trust_config import TrustConfig, TrustedHeaders


class HttpConfig(BaseAppConfig):
    """
    Configuration management for the request context layer.
    """

    # Trusted proxies (JSON list in the environment, e.g. '["10.0.0.1", "10.0.0.2"]')
    TRUSTED_PROXIES: List[str] = Field(
        default_factory=lambda: ["127.0.0.1"],
        description="Peer addresses allowed to set forwarded headers",
    )

    # Forwarded header names
    TRUSTED_HEADER_CLIENT_IP: str = Field(
        default="X-Forwarded-For", description="Header carrying the original client IP"
    )
    TRUSTED_HEADER_CLIENT_HOST: str = Field(
        default="X-Forwarded-Host", description="Header carrying the original host"
    )
    TRUSTED_HEADER_CLIENT_PROTO: str = Field(
        default="X-Forwarded-Proto", description="Header carrying the original scheme"
    )
    TRUSTED_HEADER_CLIENT_PORT: str = Field(
        default="X-Forwarded-Port", description="Header carrying the original port"
    )

    EXPOSE_REQUEST_INFO: bool = Field(
        default=True, description="Whether the /_request introspection endpoint is served"
    )

    # FastAPI settings
    root_path: str = Field(default="", description="API root path (for proxy)")

    @field_validator(
        "TRUSTED_HEADER_CLIENT_IP",
        "TRUSTED_HEADER_CLIENT_HOST",
        "TRUSTED_HEADER_CLIENT_PROTO",
        "TRUSTED_HEADER_CLIENT_PORT",
    )
    @classmethod
    def _header_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("trusted header name must not be empty")
        return value

    def trust_config(self) -> TrustConfig:
        """Build the typed trust configuration; invalid proxy literals fail here."""
        return TrustConfig(
            trusted_proxies=self.TRUSTED_PROXIES,
            trusted_headers=TrustedHeaders(
                client_ip=self.TRUSTED_HEADER_CLIENT_IP,
                client_host=self.TRUSTED_HEADER_CLIENT_HOST,
                client_proto=self.TRUSTED_HEADER_CLIENT_PROTO,
                client_port=self.TRUSTED_HEADER_CLIENT_PORT,
            ),
        )


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = HttpConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
