"""
Trusted proxy configuration models.

Defines which peers may vouch for the client through forwarded headers,
and which header carries each piece of client information.
"""

import ipaddress
from enum import Enum
from typing import Dict, FrozenSet, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_ip(address: str) -> str:
    """
    Canonical text form of an IP literal.

    IPv4-mapped IPv6 addresses collapse to their IPv4 form. Raises ValueError
    on anything that is not an IP literal.
    """
    ip = ipaddress.ip_address(address.strip())
    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return str(ip)


class HeaderRole(str, Enum):
    """Logical role of a forwarded header."""

    CLIENT_IP = "client_ip"
    CLIENT_HOST = "client_host"
    CLIENT_PROTO = "client_proto"
    CLIENT_PORT = "client_port"


class TrustedHeaders(BaseModel):
    """Header name used for each forwarded-header role."""

    client_ip: str = "X-Forwarded-For"
    client_host: str = "X-Forwarded-Host"
    client_proto: str = "X-Forwarded-Proto"
    client_port: str = "X-Forwarded-Port"

    model_config = ConfigDict(frozen=True)


class TrustConfig(BaseModel):
    """
    Process-wide trust configuration.

    Read-only after startup and shared by every request context.
    """

    trusted_proxies: FrozenSet[str] = Field(default_factory=frozenset)
    trusted_headers: TrustedHeaders = Field(default_factory=TrustedHeaders)

    model_config = ConfigDict(frozen=True)

    @field_validator("trusted_proxies", mode="before")
    @classmethod
    def _validate_proxies(cls, value):
        if value is None:
            return frozenset()
        return frozenset(normalize_ip(str(proxy)) for proxy in value)

    def trusted_header_name(self, role: Union[HeaderRole, str]) -> str:
        """Header name configured for ``role``."""
        role = HeaderRole(role)
        return getattr(self.trusted_headers, role.value)

    def trusted_header_names(self) -> Dict[str, str]:
        return {role.value: self.trusted_header_name(role) for role in HeaderRole}

    def is_trusted(self, address: str) -> bool:
        """Whether ``address`` is an allow-listed proxy; unparsable addresses never are."""
        if not address:
            return False
        try:
            return normalize_ip(address) in self.trusted_proxies
        except ValueError:
            return False
