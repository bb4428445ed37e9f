"""Integration tests for the Health Connect bridge MCP server."""

from __future__ import annotations

import asyncio

import pytest
from fastmcp import Client

from hcbridge.core.server.app import create_app
from hcbridge.domains.health.connectors.models import SdkStatus
from hcbridge.domains.health.connectors.providers import InMemoryHealthStore


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


ALL_EXPECTED_TOOLS = [
    "health_check",
    "check_if_supported",
    "check_if_health_connect_app_installed",
    "install_health_connect",
    "open_health_connect_settings",
    "check_permissions",
    "request_permissions",
    "get_records",
    "get_record_by_id",
    "write_data",
    "delete_records_by_time",
    "delete_records_by_ids",
    "aggregate",
    "get_changes_token",
    "get_changes",
    "check_if_should_show_privacy_policy",
    "on_permissions_result",
    "on_exercise_route_result",
    "handle_intent",
]

_WINDOW = {"start_time": "2026-03-01T00:00:00Z", "end_time": "2026-03-02T00:00:00Z"}
_STEPS = {
    "startTime": "2026-03-01T08:00:00Z",
    "endTime": "2026-03-01T08:30:00Z",
    "count": 4321,
}


@pytest.fixture
def store():
    return InMemoryHealthStore()


@pytest.fixture
def client(store):
    """Create an MCP client connected to a server backed by the in-memory store."""
    mcp = create_app(store_override=store)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    """health_check tool should return status ok and the store status."""
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            result_text = str(result)
            assert "ok" in result_text
            assert "available" in result_text
    _run(_check())


def test_write_then_read_steps(client):
    async def _check():
        async with client:
            written = await client.call_tool("write_data", {"type": "Steps", "data": [_STEPS]})
            assert '"status": "success"' in str(written)

            read = await client.call_tool("get_records", {"type": "Steps", **_WINDOW})
            read_text = str(read)
            assert '"status": "success"' in read_text
            assert '"count": 4321' in read_text
    _run(_check())


def test_aggregate_steps(client):
    async def _check():
        async with client:
            await client.call_tool("write_data", {"type": "Steps", "data": [_STEPS, _STEPS]})
            result = await client.call_tool(
                "aggregate", {"aggregation_keys": ["StepsCount"], **_WINDOW}
            )
            assert '"StepsCount": 8642.0' in str(result)
    _run(_check())


def test_unsupported_type_is_error_envelope(client):
    async def _check():
        async with client:
            result = await client.call_tool("get_records", {"type": "Mood"})
            result_text = str(result)
            assert '"status": "error"' in result_text
            assert "UNSUPPORTED_TYPE" in result_text
    _run(_check())


def test_permissions_round_trip(client, store):
    async def _check():
        async with client:
            requested = await client.call_tool("request_permissions", {"types": ["Weight"]})
            assert '"result": true' in str(requested)
            checked = await client.call_tool("check_permissions", {"types": ["Weight"]})
            assert '"result": true' in str(checked)
    _run(_check())
    assert "android.permission.health.WRITE_WEIGHT" in store.granted_permissions


def test_intent_raises_privacy_policy_flag(client):
    async def _check():
        async with client:
            handled = await client.call_tool(
                "handle_intent",
                {"action": "android.intent.action.VIEW_PERMISSION_USAGE"},
            )
            assert '"result": true' in str(handled)
            first = await client.call_tool("check_if_should_show_privacy_policy", {})
            assert '"result": true' in str(first)
            second = await client.call_tool("check_if_should_show_privacy_policy", {})
            assert '"result": false' in str(second)
    _run(_check())


def test_host_callback_without_pending_request(client):
    async def _check():
        async with client:
            result = await client.call_tool("on_permissions_result", {"granted": []})
            assert '"result": false' in str(result)
            route = await client.call_tool("on_exercise_route_result", {})
            assert '"result": false' in str(route)
    _run(_check())


def test_unavailable_store():
    mcp = create_app(store_override=InMemoryHealthStore(status=SdkStatus.UNAVAILABLE))

    async def _check():
        async with Client(mcp) as client:
            supported = await client.call_tool("check_if_supported", {})
            assert '"result": false' in str(supported)
            result = await client.call_tool("get_records", {"type": "Steps"})
            assert "NOT_AVAILABLE" in str(result)
    _run(_check())


def test_unavailable_backend_from_settings(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "unavailable")

    async def _check():
        async with Client(create_app()) as client:
            result = await client.call_tool("health_check", {})
            assert "unavailable" in str(result)
    _run(_check())
