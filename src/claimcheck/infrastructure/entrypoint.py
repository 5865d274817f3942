"""
Application Entrypoint
======================

CLI entrypoint for running the API server.
"""

from __future__ import annotations

import logging
import sys

import uvicorn


def main() -> None:
    """Run the API server using uvicorn."""
    from claimcheck.infrastructure.config import get_settings
    from claimcheck.infrastructure.logging import configure_logging

    settings = get_settings()
    configure_logging(settings.log_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Starting {settings.api.title} v{settings.api.version}")
    logger.info(f"Environment: {settings.environment}")

    api_host = settings.api.host
    if api_host == "::":
        # Convert IPv6 all-interfaces to IPv4
        api_host = "0.0.0.0"

    uvicorn.run(
        "claimcheck.api.app:create_app",
        factory=True,
        host=api_host,
        port=settings.api.port,
        workers=settings.api.workers,
        reload=settings.api.debug,
        log_level=settings.log_level.lower(),
        loop="uvloop" if sys.platform != "win32" else "asyncio",
    )


if __name__ == "__main__":
    sys.exit(main() or 0)
