"""
Request context - Service Layer

Holds the state of one inbound request and derives trust-aware facts
about the client from it.

Forwarded headers (X-Forwarded-For, X-Forwarded-Proto, ...) are believed
only when the direct peer address is one of the trusted proxies; otherwise
the server-reported values are used untouched.
"""

import logging
from contextvars import ContextVar
from typing import Any, Dict, List, Mapping, Optional, Union

from starlette.datastructures import URL, UploadFile

from ..core.exceptions import ClientIpUnavailableError, RequestContextNotBoundError
from ..models.files import FileBag
from ..models.parameter_bag import HeaderBag, ParameterBag
from ..models.server import ServerBag
from ..models.trust_config import HeaderRole, TrustConfig

logger = logging.getLogger("reqcontext.request")

SECURE_VALUES = ("https", "on", "1")
DEFAULT_PORT = 80
DEFAULT_PORTS = (80, 443)


def _first_element(value: str) -> str:
    """Leftmost entry of a comma separated chain ("client, proxy1, proxy2")."""
    return value.split(",")[0].strip()


def _parse_port(value: str, default: int) -> int:
    value = value.strip()
    if not value.isdigit():
        return default
    port = int(value)
    if not 0 < port < 65536:
        return default
    return port


class RequestContext:
    """
    Current request state and the accessors derived from it.

    One instance exists per request cycle. The current URL is computed on
    first use and cached for the lifetime of the instance.
    """

    def __init__(
        self,
        trust_config: Optional[TrustConfig] = None,
        *,
        query: Optional[Mapping[str, Any]] = None,
        post: Optional[Mapping[str, Any]] = None,
        payload: Optional[Mapping[str, Any]] = None,
        files: Union[FileBag, Mapping[str, List[UploadFile]], None] = None,
        server: Optional[Mapping[str, Any]] = None,
        env: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ):
        self._trust_config = trust_config or TrustConfig()
        self._trusted_proxies = frozenset(self._trust_config.trusted_proxies)
        self._current_url = ""

        self._query = ParameterBag(query)
        self._post = ParameterBag(post)
        self._payload = ParameterBag(payload)
        self._files = files if isinstance(files, FileBag) else FileBag(files)
        self._server = ServerBag(server)
        self._env = ParameterBag(env)
        self._headers = HeaderBag(headers)

    # ==========================================
    # Parameter access
    # ==========================================

    def query(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Query string parameter ``key``, or all of them when ``key`` is None."""
        return self._query.get_all() if key is None else self._query.get(key, default)

    def get_query(self) -> ParameterBag:
        return self._query

    def post(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Form field ``key``, or all of them when ``key`` is None."""
        return self._post.get_all() if key is None else self._post.get(key, default)

    def get_post(self) -> ParameterBag:
        return self._post

    def payload(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Parsed body field ``key``, or the whole payload when ``key`` is None."""
        return self._payload.get_all() if key is None else self._payload.get(key, default)

    def get_payload(self) -> ParameterBag:
        return self._payload

    def header(self, key: Optional[str] = None, default: Any = None) -> Any:
        """HTTP header ``key`` (case-insensitive), or all headers when ``key`` is None."""
        return self._headers.get_all() if key is None else self._headers.get(key, default)

    def get_headers(self) -> HeaderBag:
        return self._headers

    def env(self, key: Optional[str] = None, default: Any = None) -> Any:
        """Environment variable ``key``, or the whole environment when ``key`` is None."""
        return self._env.get_all() if key is None else self._env.get(key, default)

    def server(self) -> ServerBag:
        return self._server

    def files(self, name: str, array_offset: Optional[int] = None) -> UploadFile:
        """
        Uploaded file for the field ``name``.

        For multi-file fields pass ``array_offset`` to pick one of the files.

        Raises:
            FileFieldMissingError: the field (or offset) does not exist
        """
        return self._files.get(name, array_offset)

    def get_files(self) -> FileBag:
        return self._files

    # ==========================================
    # Trust configuration
    # ==========================================

    def get_trusted_proxies(self) -> List[str]:
        return sorted(self._trusted_proxies)

    def get_trusted_headers(self) -> Dict[str, str]:
        return self._trust_config.trusted_header_names()

    def _is_trusted_peer(self) -> bool:
        return self._trust_config.is_trusted(self._server.remote_address())

    def _forwarded(self, role: HeaderRole) -> str:
        """Forwarded header value for ``role`` if the peer is trusted, else ''."""
        name = self._trust_config.trusted_header_name(role)
        value = self._server.header(name).strip()
        if not value:
            return ""
        if not self._is_trusted_peer():
            logger.debug(
                f"Ignoring {name} from untrusted peer",
                extra={"remote_addr": self._server.remote_address()},
            )
            return ""
        return value

    # ==========================================
    # Derived accessors
    # ==========================================

    def get_client_ip(self) -> str:
        """
        Client IP address.

        Checks, in order: the forwarded client IP header and the Client-IP
        header (both only from trusted proxies), then the peer address.

        Raises:
            ClientIpUnavailableError: no source yields an address
        """
        fwd_client_ip = self._forwarded(HeaderRole.CLIENT_IP)
        if fwd_client_ip:
            # Format: "X-Forwarded-For: client1, proxy1, proxy2"
            client_ip = _first_element(fwd_client_ip)
            if client_ip:
                return client_ip

        http_client_ip = self._server.http_client_ip().strip()
        if http_client_ip and self._is_trusted_peer():
            client_ip = _first_element(http_client_ip)
            if client_ip:
                return client_ip

        remote_address = self._server.remote_address()
        if remote_address:
            return remote_address

        raise ClientIpUnavailableError()

    def is_request_secured(self) -> bool:
        """True if the connection is secured (https)."""
        protocol = self._server.server_protocol()
        fwd_proto = self._forwarded(HeaderRole.CLIENT_PROTO)
        if fwd_proto:
            protocol = fwd_proto

        if protocol.lower() in SECURE_VALUES:
            return True

        return self._server.https().lower() in SECURE_VALUES

    def get_host_name(self) -> str:
        """Host name the client addressed, lower-cased."""
        host = self._server.server_name()
        fwd_host = self._forwarded(HeaderRole.CLIENT_HOST)
        if fwd_host:
            host = fwd_host
        return host.lower()

    def get_connection_port(self) -> int:
        """
        Port the client connected to.

        A forwarded port header is honoured from trusted proxies only;
        otherwise the port is read from the Host header, defaulting to 80.
        """
        port = DEFAULT_PORT

        fwd_port = self._forwarded(HeaderRole.CLIENT_PORT)
        if fwd_port:
            return _parse_port(_first_element(fwd_port), port)

        host = self._server.http_host().strip()
        if not host:
            return port

        if host.startswith("["):
            # IPv6 literal: "[::1]:8080"
            _, _, rest = host.partition("]")
            if not rest.startswith(":"):
                return port
            return _parse_port(rest[1:], port)

        if ":" in host:
            return _parse_port(host.split(":")[-1], port)

        return port

    def get_current_url(self, as_object: bool = False) -> Union[str, URL]:
        """
        Current url with scheme, host, port, request uri and query string.

        The url is built once and cached; ``set_current_url`` replaces it.
        """
        if not self._current_url:
            scheme = "https" if self.is_request_secured() else "http"
            host = self.get_host_name()

            port = self.get_connection_port()
            if port and port not in DEFAULT_PORTS:
                host = f"{host}:{port}"

            page_url = f"{scheme}://{host}{self._server.request_uri()}"

            query = self._server.query_string()
            if query:
                page_url += f"?{query}"

            self._current_url = page_url

        if as_object:
            return URL(self._current_url)
        return self._current_url

    def set_current_url(self, url: str) -> None:
        """Override the cached current url. Does not redirect."""
        self._current_url = url

    # ==========================================
    # Request method
    # ==========================================

    def get_request_method(self) -> str:
        return self._server.request_method()

    def is_post(self) -> bool:
        return self.get_request_method() == "POST"

    def is_get(self) -> bool:
        return self.get_request_method() == "GET"

    def is_put(self) -> bool:
        return self.get_request_method() == "PUT"

    def is_delete(self) -> bool:
        return self.get_request_method() == "DELETE"

    def is_patch(self) -> bool:
        return self.get_request_method() == "PATCH"


# Context variable holding the RequestContext of the current request cycle.
_current_request_var: ContextVar[Optional[RequestContext]] = ContextVar(
    "current_request", default=None
)


def bind_request_context(context: RequestContext) -> RequestContext:
    """Bind ``context`` to the current execution context."""
    _current_request_var.set(context)
    return context


def get_current_request() -> RequestContext:
    """
    Get the RequestContext of the current request cycle.

    Raises:
        RequestContextNotBoundError: called outside a request cycle
    """
    context = _current_request_var.get()
    if context is None:
        raise RequestContextNotBoundError()
    return context


def clear_request_context() -> None:
    """Clear the current RequestContext."""
    _current_request_var.set(None)
