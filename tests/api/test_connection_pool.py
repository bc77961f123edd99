import asyncio
import json

import pytest

from canarydash.api.client import DashboardClient
from canarydash.api.connection_pool import ConnectionPoolManager


@pytest.mark.unit
@pytest.mark.asyncio
async def test_connection_pool_create_and_close():
    manager = ConnectionPoolManager(
        config={"api": {"base_url": "http://backend.test", "request_timeout": 5}},
        max_connections=2,
    )
    client = await manager.get_client()
    assert str(client.base_url).startswith("http://backend.test")
    assert client.headers["accept"] == "application/json"
    stats = manager.get_stats()
    assert stats["client_active"] is True
    assert stats["request_timeout"] == 5
    assert stats["base_url"] == "http://backend.test"

    await manager.close_client()
    assert manager.client is None
    assert manager.get_stats()["client_active"] is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_client_reuses_open_client():
    manager = ConnectionPoolManager(config={})
    first = await manager.get_client()
    second = await manager.get_client()
    assert first is second
    assert manager.base_url == "http://localhost:8080"
    await manager.close_client()


@pytest.mark.unit
def test_no_timeout_by_default():
    manager = ConnectionPoolManager(config={"api": {"request_timeout": None}})
    timeout = manager._timeout()
    assert timeout.read is None
    assert timeout.connect is None


@pytest.mark.unit
def test_configured_timeout():
    manager = ConnectionPoolManager(config={"api": {"request_timeout": 10}})
    timeout = manager._timeout()
    assert timeout.read == 10
    assert timeout.connect == 5.0


@pytest.mark.unit
def test_transport_error_streak():
    manager = ConnectionPoolManager(config={})
    for _ in range(manager.reset_threshold - 1):
        assert manager.record_transport_error() is False
    assert manager.record_transport_error() is True

    manager.record_success()
    assert manager.error_streak == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reset_client_replaces_pool():
    manager = ConnectionPoolManager(config={})
    old = await manager.get_client()
    manager.error_streak = 7

    new = await manager.reset_client()

    assert new is not old
    assert old.is_closed
    assert manager.error_streak == 0
    assert manager.get_stats()["resets"] == 1
    await manager.close_client()


@pytest.mark.unit
def test_pool_is_uncapped_by_default():
    assert ConnectionPoolManager(config={}).max_connections is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_hung_requests_do_not_starve_other_endpoints(metrics_payload):
    release = asyncio.Event()
    body = json.dumps(metrics_payload).encode()

    async def handle(reader, writer):
        request_line = await reader.readline()
        while (await reader.readline()) not in (b"\r\n", b"\n", b""):
            pass
        if b"/api/matches/" in request_line:
            await release.wait()
        else:
            writer.write(
                b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                + f"Content-Length: {len(body)}\r\n\r\n".encode()
                + body
            )
            await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    config = {"api": {"base_url": f"http://127.0.0.1:{port}"}}
    manager = ConnectionPoolManager(config)
    client = DashboardClient(config, client=await manager.get_client(), connection_pool_manager=manager)

    hung = [asyncio.create_task(client.fetch_recent_matches(30)) for _ in range(8)]
    try:
        await asyncio.sleep(0.2)
        assert not any(task.done() for task in hung)

        result = await asyncio.wait_for(client.fetch_metrics(), timeout=2)

        assert result.ok is True
        assert result.payload.total_matches == metrics_payload["total_matches"]
    finally:
        for task in hung:
            task.cancel()
        await asyncio.gather(*hung, return_exceptions=True)
        await manager.close_client()
        release.set()
        server.close()
        await server.wait_closed()
