"""MCP tools for the Health Connect bridge.

One tool per channel method. Each tool builds a ``MethodCall`` from its
typed parameters, dispatches it through the channel and returns the reply
as JSON, so MCP clients see the same success/error envelope as the host.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from hcbridge.domains.health.channel import MethodCall

if TYPE_CHECKING:
    from hcbridge.domains.health.channel import HealthConnectChannel

logger = logging.getLogger(__name__)


def _arguments(**kwargs: Any) -> dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


def register_health_connect_tools(
    mcp: FastMCP,
    channel: HealthConnectChannel,
) -> None:
    """Register Health Connect tools on the MCP server."""

    async def dispatch(method: str, arguments: dict[str, Any] | None = None) -> str:
        reply = await channel.handle(MethodCall(method, arguments or {}))
        return json.dumps(reply.to_dict(), indent=2)

    @mcp.tool
    async def check_if_supported(ctx: Context) -> str:
        """Check whether the Health Connect API exists on this platform."""
        return await dispatch("checkIfSupported")

    @mcp.tool
    async def check_if_health_connect_app_installed(ctx: Context) -> str:
        """Check whether Health Connect is installed and ready to use."""
        return await dispatch("checkIfHealthConnectAppInstalled")

    @mcp.tool
    async def install_health_connect(ctx: Context) -> str:
        """Open the Health Connect install page."""
        return await dispatch("installHealthConnect")

    @mcp.tool
    async def open_health_connect_settings(ctx: Context) -> str:
        """Open the Health Connect settings screen."""
        return await dispatch("openHealthConnectSettings")

    @mcp.tool
    async def check_permissions(
        ctx: Context,
        types: list[str],
        read_only: bool = False,
    ) -> str:
        """Check whether read (and write) permissions are granted.

        Args:
            types: Record type tags, e.g. ["Steps", "HeartRate"].
            read_only: Only require read permissions.
        """
        return await dispatch("checkPermissions", {"types": types, "readOnly": read_only})

    @mcp.tool
    async def request_permissions(
        ctx: Context,
        types: list[str],
        read_only: bool = False,
    ) -> str:
        """Show the permission dialog for the given record types.

        Args:
            types: Record type tags, e.g. ["Steps", "HeartRate"].
            read_only: Only request read permissions.
        """
        return await dispatch("requestPermissions", {"types": types, "readOnly": read_only})

    @mcp.tool
    async def get_records(
        ctx: Context,
        type: str,
        start_time: str | None = None,
        end_time: str | None = None,
        page_size: int | None = None,
        page_token: str | None = None,
        ascending_order: bool = True,
    ) -> str:
        """Read one page of records of a type within a time window.

        Args:
            type: Record type tag, e.g. 'Steps'.
            start_time: ISO-8601 instant. Defaults to 24 hours ago.
            end_time: ISO-8601 instant. Defaults to now.
            page_size: Maximum records per page (default and cap: 5000).
            page_token: Token from a previous page.
            ascending_order: Oldest first when true.
        """
        return await dispatch("getRecords", _arguments(
            type=type,
            startTime=start_time,
            endTime=end_time,
            pageSize=page_size,
            pageToken=page_token,
            ascendingOrder=ascending_order,
        ))

    @mcp.tool
    async def get_record_by_id(ctx: Context, type: str, id: str) -> str:
        """Read a single record by id.

        Exercise sessions include their route once the user has released it.

        Args:
            type: Record type tag.
            id: Record id assigned by the store.
        """
        return await dispatch("getRecordById", {"type": type, "id": id})

    @mcp.tool
    async def write_data(ctx: Context, type: str, data: list[dict[str, Any]]) -> str:
        """Insert records of one type. Returns the new record ids.

        Args:
            type: Record type tag.
            data: Record maps, e.g. [{"startTime": "...", "endTime": "...", "count": 120}].
        """
        return await dispatch("writeData", {"type": type, "data": data})

    @mcp.tool
    async def delete_records_by_time(
        ctx: Context,
        type: str,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> str:
        """Delete all records of a type within a time window.

        Args:
            type: Record type tag.
            start_time: ISO-8601 instant. Defaults to 24 hours ago.
            end_time: ISO-8601 instant. Defaults to now.
        """
        return await dispatch("deleteRecordsByTime", _arguments(
            type=type, startTime=start_time, endTime=end_time,
        ))

    @mcp.tool
    async def delete_records_by_ids(
        ctx: Context,
        type: str,
        ids: list[str] | None = None,
        client_record_ids: list[str] | None = None,
    ) -> str:
        """Delete records by store id or client record id.

        Args:
            type: Record type tag.
            ids: Store-assigned record ids.
            client_record_ids: Caller-assigned client record ids.
        """
        return await dispatch("deleteRecordsByIds", _arguments(
            type=type, idList=ids, clientRecordIdsList=client_record_ids,
        ))

    @mcp.tool
    async def aggregate(
        ctx: Context,
        aggregation_keys: list[str],
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> str:
        """Compute aggregates such as 'StepsRecordCountTotal' over a time window.

        Unknown keys are skipped. Metrics without data come back as null.

        Args:
            aggregation_keys: Metric keys, e.g. ["StepsCount", "HeartRateRecordBpmAvg"].
            start_time: ISO-8601 instant. Defaults to 24 hours ago.
            end_time: ISO-8601 instant. Defaults to now.
        """
        return await dispatch("aggregate", _arguments(
            aggregationKeys=aggregation_keys, startTime=start_time, endTime=end_time,
        ))

    @mcp.tool
    async def get_changes_token(ctx: Context, types: list[str]) -> str:
        """Get a token marking the current position of the change feed.

        Args:
            types: Record type tags to follow.
        """
        return await dispatch("getChangesToken", {"types": types})

    @mcp.tool
    async def get_changes(ctx: Context, token: str) -> str:
        """List changes since a token, with the token for the next call.

        Args:
            token: Token from get_changes_token or a previous get_changes.
        """
        return await dispatch("getChanges", {"token": token})

    @mcp.tool
    async def check_if_should_show_privacy_policy(ctx: Context) -> str:
        """Whether the app was opened to show its permission rationale (one-shot)."""
        return await dispatch("checkIfShouldShowPrivacyPolicy")

    @mcp.tool
    async def on_permissions_result(ctx: Context, granted: list[str] | None = None) -> str:
        """Report the outcome of the permission dialog opened by request_permissions.

        Resolves the waiting request_permissions call. Returns false when no
        request was waiting.

        Args:
            granted: Permission strings the user granted; empty when denied.
        """
        return await dispatch("onPermissionsResult", _arguments(granted=granted))

    @mcp.tool
    async def on_exercise_route_result(
        ctx: Context,
        route: dict[str, Any] | None = None,
    ) -> str:
        """Report the outcome of the exercise route consent dialog.

        Resolves the waiting get_record_by_id call. Returns false when no
        request was waiting.

        Args:
            route: The released route, {"locations": [...]}; omit when the user refused.
        """
        return await dispatch("onExerciseRouteResult", _arguments(route=route))

    @mcp.tool
    async def handle_intent(ctx: Context, action: str | None = None) -> str:
        """Report the intent action the host app was launched with.

        A permission rationale intent makes the next
        check_if_should_show_privacy_policy call return true.

        Args:
            action: Intent action, e.g. 'androidx.health.ACTION_SHOW_PERMISSIONS_RATIONALE'.
        """
        return await dispatch("handleIntent", _arguments(action=action))
