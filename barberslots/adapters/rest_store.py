"""
REST client for a hosted PostgREST-style backend.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests

from ..domain.exceptions import RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class RestStore:
    """
    Data store backed by a PostgREST-compatible HTTP API.

    Each table is exposed at ``{base_url}/{table}``; filters are sent as
    ``column=eq.value`` query parameters.
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 30):
        """
        Initialize the REST store.

        Args:
            base_url: Root of the REST API, e.g. https://example.supabase.co/rest/v1
            api_key: Key sent both as ``apikey`` and as a bearer token
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if api_key:
            self.headers["apikey"] = api_key
            self.headers["Authorization"] = f"Bearer {api_key}"

    def _url(self, table: str) -> str:
        return f"{self.base_url}/{table}"

    @staticmethod
    def _eq(filters: Dict[str, Any]) -> Dict[str, str]:
        return {column: f"eq.{value}" for column, value in filters.items()}

    def _request(self, method: str, table: str, **kwargs) -> requests.Response:
        headers = kwargs.pop("headers", self.headers)
        logger.debug("%s %s %s", method, table, kwargs.get("params", {}))
        try:
            response = requests.request(
                method,
                self._url(table),
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise StoreError(f"{method} {table} failed: {e}") from e
        return response

    @staticmethod
    def _json(response: requests.Response, table: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from {table}: {e}") from e

    def query(self, table: str, **filters: Any) -> List[Record]:
        response = self._request("GET", table, params=self._eq(filters))
        rows = self._json(response, table)

        if not isinstance(rows, list):
            raise StoreError(f"Expected a list of rows from {table}, got {type(rows).__name__}")
        return rows

    def insert(self, table: str, record: Record) -> str:
        response = self._request(
            "POST",
            table,
            json=record,
            headers={**self.headers, "Prefer": "return=representation"},
        )
        rows = self._json(response, table)
        if not rows:
            raise StoreError(f"Insert into {table} returned no row")
        return str(rows[0]["id"])

    def update(self, table: str, record_id: str, patch: Record) -> None:
        response = self._request(
            "PATCH",
            table,
            params=self._eq({"id": record_id}),
            json=patch,
            headers={**self.headers, "Prefer": "return=representation"},
        )
        if not self._json(response, table):
            raise RecordNotFoundError(f"No record {record_id} in {table}")

    def delete(self, table: str, record_id: str) -> None:
        response = self._request(
            "DELETE",
            table,
            params=self._eq({"id": record_id}),
            headers={**self.headers, "Prefer": "return=representation"},
        )
        if not self._json(response, table):
            raise RecordNotFoundError(f"No record {record_id} in {table}")
