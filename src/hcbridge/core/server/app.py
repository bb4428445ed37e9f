"""Health Connect bridge MCP server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from datetime import timedelta

from fastmcp import FastMCP

from hcbridge.core.config.settings import get_settings
from hcbridge.domains.health.channel import HealthConnectChannel
from hcbridge.domains.health.connectors import HealthConnectStore
from hcbridge.domains.health.connectors.models import SdkStatus
from hcbridge.domains.health.connectors.providers import InMemoryHealthStore
from hcbridge.domains.health.session import HealthConnectSession
from hcbridge.domains.health.tools.health_connect_tools import register_health_connect_tools

logger = logging.getLogger(__name__)


def create_app(
    *,
    store_override: HealthConnectStore | None = None,
) -> FastMCP:
    """Create and configure the Health Connect bridge server.

    1. Creates the FastMCP server instance
    2. Selects the health store backend
    3. Opens a session and its method channel
    4. Registers all tools
    """
    settings = get_settings()

    server = FastMCP(
        "Health Connect Bridge",
        instructions=(
            "Bridge to the platform Health Connect store. Read, write, delete "
            "and aggregate typed health records, manage permissions and follow "
            "the change feed. Record maps use camelCase keys and ISO-8601 instants."
        ),
    )

    # --- Health store ---
    if store_override is not None:
        store = store_override
    elif settings.store_backend == "unavailable":
        store = InMemoryHealthStore(status=SdkStatus.UNAVAILABLE)
        logger.warning("Health store backend set to 'unavailable'; store calls will fail")
    else:
        store = InMemoryHealthStore(
            auto_grant=settings.memory_store_auto_grant,
            auto_route_consent=settings.memory_store_auto_route_consent,
        )
        logger.info("Using in-memory health store")

    session = HealthConnectSession(
        store,
        page_size_max=settings.page_size_max,
        default_lookback=timedelta(hours=settings.default_lookback_hours),
    )
    channel = HealthConnectChannel(session)

    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Health Connect Bridge",
            "version": "0.1.0",
            "store_status": store.sdk_status().value,
        }

    register_health_connect_tools(server, channel)
    logger.info("Health Connect tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this attribute is requested (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
