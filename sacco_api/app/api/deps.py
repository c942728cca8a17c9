"""
Shared FastAPI dependencies.

The storage backend is created once by ``main.create_app`` and kept
on ``app.state``; handlers receive it through ``get_storage``.  Tests
build the app with their own backend instead of patching globals.
"""

from fastapi import Request

from sacco_api.app.storage import SaccoStorage


def get_storage(request: Request) -> SaccoStorage:
    """Return the storage backend attached to the running application."""
    return request.app.state.storage
