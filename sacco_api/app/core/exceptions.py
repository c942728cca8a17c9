"""
Domain exceptions raised by the storage and service layers.

Handlers translate them into HTTP responses: ``NotFoundError`` becomes
a 404 and ``DuplicateError`` a 400.  Both derive from ``ValueError``
so callers that only care about "the request cannot be satisfied" can
catch that.
"""


class SaccoError(ValueError):
    """Base class for errors the API reports back to the client."""


class NotFoundError(SaccoError):
    """A referenced record (group, loan, proposal, user) does not exist."""


class DuplicateError(SaccoError):
    """A record that must be unique already exists."""
