import httpx
import pytest

from reqcontext.web.config import HttpConfig
from reqcontext.web.main import create_app
from reqcontext.web.models import TrustConfig
from reqcontext.web.services.request_context import RequestContext, clear_request_context

PROXY_IP = "10.0.0.1"
CLIENT_IP = "203.0.113.9"


@pytest.fixture
def trust_config():
    return TrustConfig(trusted_proxies=[PROXY_IP])


@pytest.fixture
def make_context(trust_config):
    """Factory for RequestContext built from CGI-style server variables."""

    def _make(server=None, trust=None, **bags):
        return RequestContext(trust or trust_config, server=server or {}, **bags)

    return _make


@pytest.fixture(autouse=True)
def _clear_bound_context():
    yield
    clear_request_context()


@pytest.fixture
def app_config(tmp_path):
    return HttpConfig(
        _env_file=None,
        TRUSTED_PROXIES=[PROXY_IP],
        LOG_CONFIG_PATH=str(tmp_path / "missing-logging.yml"),
    )


@pytest.fixture
def app(app_config):
    return create_app(app_config)


@pytest.fixture
def make_client(app):
    """httpx client bound to the app, connecting from ``peer``."""

    def _make(peer=CLIENT_IP, base_url="http://example.com"):
        transport = httpx.ASGITransport(app=app, client=(peer, 51000))
        return httpx.AsyncClient(transport=transport, base_url=base_url)

    return _make
