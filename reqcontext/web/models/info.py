"""
Request introspection response model.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class RequestInfo(BaseModel):
    """Derived facts about the current request, as seen behind the proxy chain."""

    method: str
    url: str
    client_ip: Optional[str] = None
    secure: bool
    host: str
    port: int
    request_id: Optional[str] = None
    query: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
