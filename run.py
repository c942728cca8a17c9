"""Entry point for the Sacco API server.

Serves ``sacco_api.app.main:app`` with Uvicorn.  It is intended to be
executed from the project root, for example under Docker, where you
only specify a single Python file to run.

Host and port come from the ``API_HOST`` and ``API_PORT`` environment
variables (defaults ``0.0.0.0`` and ``8000``); the storage backend and
database path from ``STORAGE_BACKEND`` and ``DATABASE_URL``.

Usage:
    python run.py
"""
import asyncio

from uvicorn import Config, Server

from sacco_api.app.core.config import settings
from sacco_api.app.main import app


async def main() -> None:
    """Start the API using Uvicorn."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
