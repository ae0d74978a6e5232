"""
database/db.py

- Client for the hosted data API that owns every table (students, grades, ...).
- Table resources: GET/POST/PATCH/DELETE {DATA_REST_URL}/{table}?col=eq.value
- Identity lookup: GET {DATA_AUTH_URL}/user with the caller's bearer token
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from config.settings import settings

logger = logging.getLogger(__name__)


class DataStoreError(Exception):
    """Upstream data API failed or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DataStoreClient:
    def __init__(self, base_url: Optional[str] = None, auth_url: Optional[str] = None,
                 api_key: Optional[str] = None, timeout: Optional[int] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base = (base_url or settings.DATA_REST_URL).rstrip("/")
        self.auth_base = (auth_url or settings.DATA_AUTH_URL).rstrip("/")
        self.api_key = api_key or settings.DATA_API_KEY
        self.headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        self.timeout = timeout or settings.DATA_API_TIMEOUT
        self.transport = transport

    # ✅ col=value -> col=eq.value
    @staticmethod
    def _params(filters: Optional[Dict[str, Any]] = None, order: Optional[str] = None) -> Dict[str, str]:
        params = {k: f"eq.{v.value if hasattr(v, 'value') else v}" for k, v in (filters or {}).items() if v is not None}
        if order:
            params["order"] = order
        return params

    def _request(self, method: str, url: str, **kwargs):
        headers = {**self.headers, **kwargs.pop("headers", {})}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.request(method, url, headers=headers, **kwargs)
                r.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("data API %s %s -> %s", method, url, e.response.status_code)
            raise DataStoreError(e.response.text or str(e), e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error("data API %s %s failed: %s", method, url, e)
            raise DataStoreError(str(e)) from e
        if not r.content:
            return None
        return r.json()

    # ==========================================================
    # Table resources
    # ==========================================================
    def select(self, table: str, filters: Optional[Dict[str, Any]] = None, order: Optional[str] = None) -> List[dict]:
        return self._request("GET", f"{self.base}/{table}", params=self._params(filters, order)) or []

    def insert(self, table: str, row: dict) -> dict:
        rows = self._request("POST", f"{self.base}/{table}", json=row,
                             headers={"Prefer": "return=representation"})
        return rows[0] if rows else row

    def update(self, table: str, filters: Dict[str, Any], values: dict) -> List[dict]:
        return self._request("PATCH", f"{self.base}/{table}", params=self._params(filters), json=values,
                             headers={"Prefer": "return=representation"}) or []

    def delete(self, table: str, filters: Dict[str, Any]) -> List[dict]:
        return self._request("DELETE", f"{self.base}/{table}", params=self._params(filters),
                             headers={"Prefer": "return=representation"}) or []

    # ==========================================================
    # Identity
    # ==========================================================
    def get_user(self, token: str) -> Optional[dict]:
        """User owning `token`, or None when the token is not accepted."""
        try:
            return self._request("GET", f"{self.auth_base}/user", headers={"Authorization": f"Bearer {token}"})
        except DataStoreError as e:
            if e.status_code in (401, 403):
                return None
            raise


store = DataStoreClient()


# ✅ FastAPI dependency (tests override this with an in-memory store)
def get_store():
    yield store
