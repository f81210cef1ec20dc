"""
Where: reqcontext/web/tests/test_client_ip.py
What: Client IP resolution through trusted proxies.
Why: Forwarded headers from untrusted peers must never be believed.
"""

import pytest

from reqcontext.web.core.exceptions import ClientIpUnavailableError, RequestError
from reqcontext.web.models import TrustConfig, TrustedHeaders

PROXY_IP = "10.0.0.1"
CLIENT_IP = "203.0.113.9"


def test_trusted_proxy_uses_leftmost_forwarded_ip(make_context):
    ctx = make_context(
        {"REMOTE_ADDR": PROXY_IP, "HTTP_X_FORWARDED_FOR": "1.2.3.4, 5.6.7.8"}
    )

    assert ctx.get_client_ip() == "1.2.3.4"


@pytest.mark.parametrize("peer", ["203.0.113.9", "10.0.0.2", "127.0.0.1"])
def test_untrusted_peer_ignores_spoofed_headers(make_context, peer):
    ctx = make_context(
        {
            "REMOTE_ADDR": peer,
            "HTTP_X_FORWARDED_FOR": "6.6.6.6",
            "HTTP_CLIENT_IP": "7.7.7.7",
        }
    )

    assert ctx.get_client_ip() == peer


def test_trusted_proxy_falls_back_to_client_ip_header(make_context):
    ctx = make_context({"REMOTE_ADDR": PROXY_IP, "HTTP_CLIENT_IP": " 4.3.2.1 , 10.0.0.9"})

    assert ctx.get_client_ip() == "4.3.2.1"


def test_empty_forwarded_header_uses_remote_address(make_context):
    ctx = make_context({"REMOTE_ADDR": PROXY_IP, "HTTP_X_FORWARDED_FOR": ""})

    assert ctx.get_client_ip() == PROXY_IP


def test_configured_header_name_is_used(make_context):
    trust = TrustConfig(
        trusted_proxies=[PROXY_IP], trusted_headers=TrustedHeaders(client_ip="X-Real-IP")
    )
    ctx = make_context(
        {
            "REMOTE_ADDR": PROXY_IP,
            "HTTP_X_FORWARDED_FOR": "6.6.6.6",
            "HTTP_X_REAL_IP": CLIENT_IP,
        },
        trust=trust,
    )

    assert ctx.get_client_ip() == CLIENT_IP


def test_no_address_raises(make_context):
    ctx = make_context({"HTTP_X_FORWARDED_FOR": "1.2.3.4"})

    with pytest.raises(ClientIpUnavailableError) as exc_info:
        ctx.get_client_ip()

    assert isinstance(exc_info.value, RequestError)
    assert exc_info.value.kind == "ClientIpUnavailable"


def test_trusted_proxies_snapshot(make_context):
    ctx = make_context({"REMOTE_ADDR": PROXY_IP})

    assert ctx.get_trusted_proxies() == [PROXY_IP]
    assert ctx.get_trusted_headers()["client_ip"] == "X-Forwarded-For"


def test_non_canonical_proxy_literal_matches_peer(make_context):
    trust = TrustConfig(trusted_proxies=["0:0:0:0:0:0:0:1"])
    ctx = make_context(
        {"REMOTE_ADDR": "::1", "HTTP_X_FORWARDED_FOR": "1.2.3.4"}, trust=trust
    )

    assert ctx.get_client_ip() == "1.2.3.4"


def test_ipv4_mapped_peer_matches_ipv4_proxy(make_context):
    ctx = make_context(
        {"REMOTE_ADDR": "::ffff:10.0.0.1", "HTTP_X_FORWARDED_FOR": "1.2.3.4"}
    )

    assert ctx.get_client_ip() == "1.2.3.4"


def test_unparsable_peer_is_untrusted(make_context):
    ctx = make_context({"REMOTE_ADDR": "testclient", "HTTP_X_FORWARDED_FOR": "1.2.3.4"})

    assert ctx.get_client_ip() == "testclient"
