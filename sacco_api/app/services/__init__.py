"""
Service layer.

Each service encapsulates the request-level rules for a domain:
precondition checks ("already a member", "already voted"), follow-up
writes such as updating a member's group, and the activity feed
entries appended after mutations.  Services receive the storage
backend as their first argument so that handlers can run against the
in-memory or the SQLite implementation without changes.
"""
