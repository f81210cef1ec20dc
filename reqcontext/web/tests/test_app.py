"""
Where: reqcontext/web/tests/test_app.py
What: End-to-end behavior of the middleware, dependencies and endpoints.
Why: Each request must get its own bound context, request id and error mapping.
"""

import uuid

import httpx
import pytest

from reqcontext.web.api.deps import RequestContextDep
from reqcontext.web.config import HttpConfig
from reqcontext.web.main import create_app

PROXY_IP = "10.0.0.1"
CLIENT_IP = "203.0.113.9"


@pytest.mark.asyncio
async def test_health(make_client):
    async with make_client() as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_request_info_direct_client(make_client):
    async with make_client() as client:
        response = await client.get(
            "/_request?page=2", headers={"X-Forwarded-For": "6.6.6.6"}
        )

    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "GET"
    assert data["client_ip"] == CLIENT_IP
    assert data["secure"] is False
    assert data["host"] == "example.com"
    assert data["port"] == 80
    assert data["url"] == "http://example.com/_request?page=2"
    assert data["query"] == {"page": "2"}
    assert data["request_id"] == response.headers["X-Request-Id"]


@pytest.mark.asyncio
async def test_request_info_behind_trusted_proxy(make_client):
    async with make_client(peer=PROXY_IP, base_url="http://backend:8080") as client:
        response = await client.get(
            "/_request",
            headers={
                "X-Forwarded-For": "198.51.100.7, 10.0.0.1",
                "X-Forwarded-Proto": "https",
                "X-Forwarded-Host": "www.example.com",
                "X-Forwarded-Port": "443",
            },
        )

    data = response.json()
    assert data["client_ip"] == "198.51.100.7"
    assert data["secure"] is True
    assert data["host"] == "www.example.com"
    assert data["port"] == 443
    assert data["url"] == "https://www.example.com/_request"


@pytest.mark.asyncio
async def test_request_id_header_is_uuid(make_client):
    async with make_client() as client:
        response = await client.get("/health")

    request_id = response.headers["X-Request-Id"]
    assert str(uuid.UUID(request_id)) == request_id


@pytest.mark.asyncio
async def test_uploaded_files_reach_handler(app, make_client):
    @app.post("/upload")
    async def upload(ctx: RequestContextDep):
        first = ctx.files("attachments", 0)
        second = ctx.files("attachments", 1)
        return {
            "title": ctx.post("title"),
            "files": [first.filename, second.filename],
        }

    async with make_client() as client:
        response = await client.post(
            "/upload",
            data={"title": "Report"},
            files=[
                ("attachments[]", ("a.txt", b"first", "text/plain")),
                ("attachments[]", ("b.txt", b"second", "text/plain")),
            ],
        )

    assert response.status_code == 200
    assert response.json() == {"title": "Report", "files": ["a.txt", "b.txt"]}


@pytest.mark.asyncio
async def test_missing_file_field_maps_to_400(app, make_client):
    @app.post("/avatar")
    async def avatar(ctx: RequestContextDep):
        return {"filename": ctx.files("avatar").filename}

    async with make_client() as client:
        response = await client.post("/avatar", data={"title": "x"})

    assert response.status_code == 400
    assert response.json()["kind"] == "FileFieldMissing"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content_type",
    ["multipart/form-data; boundary=xyz", "multipart/form-data"],
)
async def test_malformed_multipart_body_maps_to_400(make_client, content_type):
    async with make_client() as client:
        response = await client.post(
            "/_request", content=b"garbage", headers={"Content-Type": content_type}
        )

    assert response.status_code == 400
    assert response.json()["message"]
    uuid.UUID(response.headers["X-Request-Id"])


@pytest.mark.asyncio
async def test_json_payload_reaches_handler(app, make_client):
    @app.post("/echo")
    async def echo(ctx: RequestContextDep):
        return {"name": ctx.payload("name"), "is_post": ctx.is_post()}

    async with make_client() as client:
        response = await client.post("/echo", json={"name": "widget"})

    assert response.json() == {"name": "widget", "is_post": True}


@pytest.mark.asyncio
async def test_trust_settings(make_client):
    async with make_client() as client:
        response = await client.get("/_trust")

    assert response.json() == {
        "trusted_proxies": [PROXY_IP],
        "trusted_headers": {
            "client_ip": "X-Forwarded-For",
            "client_host": "X-Forwarded-Host",
            "client_proto": "X-Forwarded-Proto",
            "client_port": "X-Forwarded-Port",
        },
    }


@pytest.mark.asyncio
async def test_request_info_can_be_disabled(tmp_path):
    app_config = HttpConfig(
        _env_file=None,
        EXPOSE_REQUEST_INFO=False,
        LOG_CONFIG_PATH=str(tmp_path / "missing.yml"),
    )
    transport = httpx.ASGITransport(app=create_app(app_config), client=(CLIENT_IP, 51000))

    async with httpx.AsyncClient(transport=transport, base_url="http://example.com") as client:
        response = await client.get("/_request")

    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}
