"""Server entry point: ``python -m hcbridge.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from hcbridge.core.config.settings import get_settings
from hcbridge.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the Health Connect bridge with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.hcb_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.hcb_allow_insecure_bind and not _is_loopback_host(settings.hcb_host):
        raise RuntimeError(
            "Refusing to bind the bridge to a non-loopback host without an auth layer. "
            "Set HCB_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info("Starting Health Connect bridge on %s:%d", settings.hcb_host, settings.hcb_port)

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.hcb_host,
        port=settings.hcb_port,
    )


if __name__ == "__main__":
    run()
