"""
Server variable bag.

CGI-style server variables (REMOTE_ADDR, SERVER_NAME, HTTP_HOST, ...)
with named accessors for the values the request context relies on.
"""

from .parameter_bag import ParameterBag


def header_to_cgi(name: str) -> str:
    """Convert an HTTP header name to its CGI variable (X-Forwarded-For -> HTTP_X_FORWARDED_FOR)."""
    key = name.strip().upper().replace("-", "_")
    if key.startswith("HTTP_"):
        return key
    return f"HTTP_{key}"


class ServerBag(ParameterBag):
    """Server and execution environment information for one request."""

    def _value(self, key: str) -> str:
        value = self.get(key)
        return "" if value is None else str(value)

    def header(self, name: str) -> str:
        """Request header value looked up through its CGI variable name."""
        return self._value(header_to_cgi(name))

    def remote_address(self) -> str:
        return self._value("REMOTE_ADDR")

    def remote_port(self) -> str:
        return self._value("REMOTE_PORT")

    def server_name(self) -> str:
        return self._value("SERVER_NAME")

    def server_protocol(self) -> str:
        return self._value("SERVER_PROTOCOL")

    def https(self) -> str:
        return self._value("HTTPS")

    def http_host(self) -> str:
        return self._value("HTTP_HOST")

    def http_client_ip(self) -> str:
        return self._value("HTTP_CLIENT_IP")

    def http_user_agent(self) -> str:
        return self._value("HTTP_USER_AGENT")

    def request_uri(self) -> str:
        return self._value("REQUEST_URI")

    def query_string(self) -> str:
        return self._value("QUERY_STRING")

    def request_method(self) -> str:
        return self._value("REQUEST_METHOD")
