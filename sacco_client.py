"""Sacco API client.

A thin wrapper around the Sacco REST API built on the ``requests``
library.  Every public method maps to one endpoint and returns a tuple
``(data, error)``: on success ``data`` holds the decoded JSON body and
``error`` is ``None``; on failure ``data`` is ``None`` and ``error`` is
a dictionary with the keys ``status_code`` and ``message``.  Transport
failures (connection refused, timeouts) are reported the same way with
``status_code`` set to ``None``.

Payloads are plain dictionaries in the API's camelCase wire format,
for example::

    api = SaccoAPI(base_url="http://localhost:8000/api")
    user, error = api.create_user({"address": "0xabc..."})
    group, error = api.create_group({"name": "Savers", "admin": "0xabc..."})
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Error = Optional[Dict[str, Any]]
Result = Tuple[Optional[Any], Error]


class SaccoAPI:
    """Client for the Sacco backend.

    Args:
        base_url: URL the API router is mounted at, including the
            prefix, e.g. ``http://localhost:8000/api``.
        session: Optional session object.  Anything exposing
            ``request(method, url, params=..., json=..., timeout=...)``
            works; a :class:`requests.Session` is created when omitted.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Result:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PATCH``).
            path: Path relative to :attr:`base_url` (e.g. ``/groups``).
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request (for POST/PATCH).
        Returns:
            A tuple ``(data, error)`` as described in the module docstring.
        """
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error("API request failed (%s): %s", response.status_code, message)
            return None, {"status_code": response.status_code, "message": message}
        if response.content:
            return response.json(), None
        return None, None

    @staticmethod
    def _error_message(response: Any) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return body.get("message") or body.get("detail") or str(body)
        return str(body)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def create_user(self, payload: Dict[str, Any]) -> Result:
        """Register a user.  An already known address returns the stored record."""
        return self._request("POST", "/users", json_body=payload)

    def get_user(self, address: str) -> Result:
        return self._request("GET", f"/users/{address}")

    def update_user(self, address: str, payload: Dict[str, Any]) -> Result:
        return self._request("PATCH", f"/users/{address}", json_body=payload)

    def get_user_group(self, address: str) -> Result:
        return self._request("GET", f"/users/{address}/group")

    def get_user_loans(self, address: str) -> Tuple[List[Dict[str, Any]], Error]:
        """Loans borrowed by ``address``, each with its guarantors."""
        data, error = self._request("GET", f"/users/{address}/loans")
        return data or [], error

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    def create_group(self, payload: Dict[str, Any]) -> Result:
        return self._request("POST", "/groups", json_body=payload)

    def list_groups(self) -> Tuple[List[Dict[str, Any]], Error]:
        data, error = self._request("GET", "/groups")
        return data or [], error

    def get_group(self, group_id: int) -> Result:
        return self._request("GET", f"/groups/{group_id}")

    def update_group(self, group_id: int, payload: Dict[str, Any]) -> Result:
        return self._request("PATCH", f"/groups/{group_id}", json_body=payload)

    def get_group_members(self, group_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        data, error = self._request("GET", f"/groups/{group_id}/members")
        return data or [], error

    def join_group(self, group_id: int, member_address: str) -> Result:
        return self._request(
            "POST", f"/groups/{group_id}/members", json_body={"memberAddress": member_address}
        )

    def get_group_proposals(self, group_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        data, error = self._request("GET", f"/groups/{group_id}/proposals")
        return data or [], error

    def get_group_activities(
        self, group_id: int, limit: Optional[int] = None
    ) -> Tuple[List[Dict[str, Any]], Error]:
        """Most recent activities first; the server default limit applies when omitted."""
        params = {"limit": limit} if limit is not None else None
        data, error = self._request("GET", f"/groups/{group_id}/activities", params=params)
        return data or [], error

    # ------------------------------------------------------------------
    # Loans and guarantors
    # ------------------------------------------------------------------
    def request_loan(self, payload: Dict[str, Any]) -> Result:
        """Request a loan.  ``payload["guarantors"]`` may list guarantor addresses."""
        return self._request("POST", "/loans", json_body=payload)

    def get_loan(self, loan_id: int) -> Result:
        return self._request("GET", f"/loans/{loan_id}")

    def update_loan(self, loan_id: int, payload: Dict[str, Any]) -> Result:
        return self._request("PATCH", f"/loans/{loan_id}", json_body=payload)

    def get_loan_guarantors(self, loan_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        data, error = self._request("GET", f"/loans/{loan_id}/guarantors")
        return data or [], error

    def add_guarantor(self, loan_id: int, guarantor_address: str) -> Result:
        return self._request(
            "POST",
            f"/loans/{loan_id}/guarantors",
            json_body={"guarantorAddress": guarantor_address},
        )

    def set_guarantor_approval(self, loan_id: int, address: str, approved: bool = True) -> Result:
        return self._request(
            "PATCH", f"/loans/{loan_id}/guarantors/{address}", json_body={"approved": approved}
        )

    def get_guarantor_requests(
        self, address: str, approved: Optional[bool] = None
    ) -> Tuple[List[Dict[str, Any]], Error]:
        """Guarantor requests addressed to ``address``, each with its loan."""
        params = {"approved": str(approved).lower()} if approved is not None else None
        data, error = self._request("GET", f"/guarantors/{address}", params=params)
        return data or [], error

    # ------------------------------------------------------------------
    # Proposals and votes
    # ------------------------------------------------------------------
    def create_proposal(self, payload: Dict[str, Any]) -> Result:
        return self._request("POST", "/proposals", json_body=payload)

    def get_proposal(self, proposal_id: int) -> Result:
        return self._request("GET", f"/proposals/{proposal_id}")

    def update_proposal(self, proposal_id: int, payload: Dict[str, Any]) -> Result:
        return self._request("PATCH", f"/proposals/{proposal_id}", json_body=payload)

    def get_votes(self, proposal_id: int) -> Tuple[List[Dict[str, Any]], Error]:
        data, error = self._request("GET", f"/proposals/{proposal_id}/votes")
        return data or [], error

    def cast_vote(self, proposal_id: int, voter_address: str, vote: bool) -> Result:
        return self._request(
            "POST",
            f"/proposals/{proposal_id}/votes",
            json_body={"voterAddress": voter_address, "vote": vote},
        )
