from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional

import requests

from invpro.domain.errors import PersistenceUnavailableError
from invpro.domain.models import BusinessInfo, record_from_dict
from invpro.repositories.contracts import COLLECTIONS, Changeset, StoredState

log = logging.getLogger("invpro.storage")


class RemoteRepository:
    """PostgREST / Supabase style backend.

    Every collection is a table under ``/rest/v1``; sale items travel as a
    JSON array column on ``sales``. Business info is the row with id 1.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    def _headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(self, method: str, table: str, *, params: Optional[dict] = None, payload: Any = None, prefer: Optional[str] = None) -> Any:
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            r = self.session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise PersistenceUnavailableError(f"Remote {method} {table} failed: {e}") from e

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise PersistenceUnavailableError(f"Remote {method} {table} returned invalid JSON.") from e

    def load_state(self) -> StoredState:
        state = StoredState()
        for name, cls in COLLECTIONS.items():
            rows = self._request("GET", name, params={"select": "*"}) or []
            state.collection(name).extend(record_from_dict(cls, row) for row in rows)

        rows = self._request("GET", "business_info", params={"select": "*", "id": "eq.1"}) or []
        if rows:
            state.business_info = record_from_dict(BusinessInfo, rows[0])
        return state

    def commit(self, changes: Changeset) -> None:
        # PostgREST has no multi-table transaction; a failure part-way is
        # reported and the caller retries the whole changeset elsewhere.
        upsert = "resolution=merge-duplicates,return=minimal"
        for name, records in changes.upserts.items():
            self._request("POST", name, payload=[asdict(r) for r in records], prefer=upsert)

        for name, ids in changes.deletes.items():
            for record_id in ids:
                self._request("DELETE", name, params={"id": f"eq.{record_id}"})

        if changes.business_info is not None:
            row = {"id": 1, **asdict(changes.business_info)}
            self._request("POST", "business_info", payload=[row], prefer=upsert)

        log.info(
            "remote_commit upserts=%s deletes=%s business_info=%s",
            sum(len(v) for v in changes.upserts.values()),
            sum(len(v) for v in changes.deletes.values()),
            changes.business_info is not None,
        )
