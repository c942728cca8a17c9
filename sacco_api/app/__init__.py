"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Request handling is split into layers: routers under
``api/endpoints`` validate requests, services under ``services`` hold
the per-domain rules and activity logging, and the ``storage``
package persists records either in memory or in SQLite.
"""

from .main import app  # noqa: F401
