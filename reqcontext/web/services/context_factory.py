"""
RequestContext factory.

Builds a RequestContext from a Starlette Request, decoupling the rest of
the layer from the ASGI scope.
"""

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

from starlette.datastructures import UploadFile
from starlette.requests import Request

from ..models.server import header_to_cgi
from ..models.trust_config import TrustConfig
from .request_context import RequestContext

logger = logging.getLogger("reqcontext.factory")

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
JSON_CONTENT_TYPE = "application/json"


def _field_name(name: str) -> str:
    """Strip array-style suffixes ("attachments[]" -> "attachments")."""
    return name[:-2] if name.endswith("[]") else name


def _collapse(items: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """Multi-valued items to a dict; repeated keys collect into a list."""
    result: Dict[str, Any] = {}
    for key, value in items:
        if key in result:
            if isinstance(result[key], list):
                result[key].append(value)
            else:
                result[key] = [result[key], value]
        else:
            result[key] = value
    return result


def _split_host(host: str) -> str:
    """Host name part of a Host header value."""
    if host.startswith("["):
        return host.split("]")[0] + "]"
    return host.split(":")[0]


def _joined_headers(request: Request) -> Dict[str, str]:
    """Request headers by lower-case name; repeated headers are joined like a proxy would."""
    headers: Dict[str, str] = {}
    for raw_name, raw_value in request.headers.raw:
        name = raw_name.decode("latin-1").lower()
        value = raw_value.decode("latin-1")
        headers[name] = f"{headers[name]}, {value}" if name in headers else value
    return headers


def build_server_variables(request: Request, headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    CGI-style server variables for ``request``.

    Every header is exposed as HTTP_<NAME>; Content-Type and Content-Length
    also appear without the prefix.
    """
    scope = request.scope
    server: Dict[str, str] = {}

    if headers is None:
        headers = _joined_headers(request)
    for name, value in headers.items():
        server[header_to_cgi(name)] = value

    for name in ("CONTENT_TYPE", "CONTENT_LENGTH"):
        if f"HTTP_{name}" in server:
            server[name] = server[f"HTTP_{name}"]

    client = scope.get("client")
    if client:
        server["REMOTE_ADDR"] = str(client[0])
        server["REMOTE_PORT"] = str(client[1])

    server_addr = scope.get("server")
    host_header = server.get("HTTP_HOST", "")
    if host_header:
        server["SERVER_NAME"] = _split_host(host_header)
    elif server_addr:
        server["SERVER_NAME"] = str(server_addr[0])
    if server_addr and server_addr[1] is not None:
        server["SERVER_PORT"] = str(server_addr[1])

    server["SERVER_PROTOCOL"] = f"HTTP/{scope.get('http_version', '1.1')}"
    if scope.get("scheme") in ("https", "wss"):
        server["HTTPS"] = "on"

    server["REQUEST_METHOD"] = scope.get("method", "GET")

    raw_path = scope.get("raw_path")
    if raw_path:
        server["REQUEST_URI"] = raw_path.split(b"?")[0].decode("latin-1")
    else:
        server["REQUEST_URI"] = scope.get("root_path", "") + scope.get("path", "/")

    server["QUERY_STRING"] = scope.get("query_string", b"").decode("latin-1")
    return server


class RequestContextFactory:
    """Creates one RequestContext per inbound request."""

    def __init__(self, trust_config: TrustConfig, environ: Optional[Mapping[str, str]] = None):
        self.trust_config = trust_config
        self.environ = environ

    async def build(self, request: Request) -> RequestContext:
        """
        Read the request and build its context.

        Form bodies populate the post and files bags, JSON bodies the payload.
        """
        query = _collapse(list(request.query_params.multi_items()))
        post: Dict[str, Any] = {}
        files: Dict[str, List[UploadFile]] = {}
        payload: Dict[str, Any] = {}

        content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

        if request.method not in ("GET", "HEAD") and content_type in FORM_CONTENT_TYPES:
            # Cache the raw body first so it can still be replayed to the handler.
            await request.body()
            form = await request.form()
            fields = []
            for name, value in form.multi_items():
                if isinstance(value, UploadFile):
                    files.setdefault(_field_name(name), []).append(value)
                else:
                    fields.append((_field_name(name), value))
            post = _collapse(fields)
        elif content_type == JSON_CONTENT_TYPE or content_type.endswith("+json"):
            payload = await self._read_json(request)

        environ = self.environ if self.environ is not None else os.environ
        headers = _joined_headers(request)

        return RequestContext(
            self.trust_config,
            query=query,
            post=post,
            payload=payload,
            files=files,
            server=build_server_variables(request, headers),
            env=dict(environ),
            headers=headers,
        )

    async def _read_json(self, request: Request) -> Dict[str, Any]:
        body = await request.body()
        if not body:
            return {}
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(
                f"Failed to parse request body as JSON: {e}",
                extra={"path": request.url.path, "snippet": body[:200].decode("utf-8", "replace")},
            )
            return {}
        if isinstance(data, dict):
            return data
        return {"_": data}
