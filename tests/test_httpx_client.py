import httpx
import pytest

from rotaclient import HttpxClient, RotatingClient

pytestmark = pytest.mark.anyio


def _transport(hits):
    def handler(request: httpx.Request) -> httpx.Response:
        hits.append(str(request.url))
        if request.url.path == "/fail":
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"path": request.url.path})

    return httpx.MockTransport(handler)


async def test_send_and_close():
    hits = []
    client = HttpxClient("https://api.test", transport=_transport(hits))

    resp = await client.send(client.build_request("GET", "/ping"))

    assert resp.status_code == 200
    assert resp.json() == {"path": "/ping"}
    assert hits == ["https://api.test/ping"]
    await client.close(force=True)
    assert client.is_closed


async def test_rotating_httpx_clients():
    hits = []
    factory = HttpxClient.factory("https://api.test", transport=_transport(hits))
    created = []

    async def create():
        client = await factory()
        created.append(client)
        return client

    async with RotatingClient(create, request_limit=1) as rc:
        for _ in range(4):
            resp = await rc.send(httpx.Request("GET", "https://api.test/item"))
            assert resp.status_code == 200

    assert len(created) == 2
    assert all(c.is_closed for c in created)
    assert len(hits) == 4


async def test_http_error_invalidates_client():
    hits = []
    rc = RotatingClient(
        HttpxClient.factory("https://api.test", transport=_transport(hits)),
        invalidate_on_error=True,
    )

    async def call(client):
        resp = await client.send(httpx.Request("GET", "https://api.test/fail"))
        resp.raise_for_status()
        return resp

    with pytest.raises(httpx.HTTPStatusError):
        await rc.with_client(call)

    assert rc.active is None
    assert len(rc.retiring) == 1
    await rc.close()
    assert rc.retiring == ()
