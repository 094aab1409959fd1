#!/usr/bin/env python3
# entrypoint_matching_service.py
"""
Matching Service entrypoint.
"""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from carrymatch.common.constants import TypeMsg
from carrymatch.common.logger import log_info, setup_logging
from carrymatch.config import settings


async def main() -> None:
    """Runs the Matching Service under uvicorn."""
    setup_logging()
    await log_info(
        f"Starting Matching Service on port {settings.deployment.MATCHING_SERVICE_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "carrymatch.services.matching_service.app:app",
        host=settings.deployment.MATCHING_SERVICE_HOST,
        port=settings.deployment.MATCHING_SERVICE_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
