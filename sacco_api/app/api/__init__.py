"""
API package containing the REST routes.

The top‑level ``router`` in ``router.py`` includes all domain‑specific
endpoints and is mounted by ``main.create_app`` under the configured
prefix (``/api`` by default).
"""
