# sheetdb/client.py
import logging
from typing import Any, Dict, List, Optional

import httpx
import requests

from pharmacy.errors import MalformedResponseError, NetworkFailure

log = logging.getLogger(__name__)


class SheetDBClient:
    """Thin client for a SheetDB-style spreadsheet API.

    ``base_url`` is the full sheet endpoint, e.g. ``https://sheetdb.io/api/v1/<sheet>``.
    Any object with requests-style ``get/post/patch/delete`` methods can be passed
    as ``session`` (FastAPI's TestClient works).
    """

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 10,
                 session=None, async_transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.async_transport = async_transport
        self.headers: Dict[str, str] = {}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    def _row_url(self, row_id) -> str:
        return f"{self.base_url}/id/{row_id}"

    def _send(self, method: str, url: str, **kwargs):
        try:
            r = getattr(self.session, method)(url, headers=self.headers, timeout=self.timeout, **kwargs)
        except (requests.RequestException, httpx.HTTPError) as e:
            log.error("%s %s failed: %s", method.upper(), url, e)
            raise NetworkFailure(f"{method.upper()} {url} failed: {e}") from e
        return self._check(method, url, r)

    @staticmethod
    def _check(method: str, url: str, r):
        if not 200 <= r.status_code < 300:
            log.error("%s %s returned HTTP %s", method.upper(), url, r.status_code)
            raise NetworkFailure(f"{method.upper()} {url} returned HTTP {r.status_code}", status_code=r.status_code)
        return r

    @staticmethod
    def _rows(r) -> List[Dict[str, Any]]:
        try:
            body = r.json()
        except ValueError as e:
            raise MalformedResponseError("store response is not JSON", status_code=r.status_code) from e
        # hosted SheetDB answers with a bare list; the documented shape is {"data": [...]}
        rows = body.get("data") if isinstance(body, dict) else body
        if not isinstance(rows, list):
            raise MalformedResponseError("store response has no 'data' list", status_code=r.status_code)
        return rows

    # Read
    def list_rows(self) -> List[Dict[str, Any]]:
        return self._rows(self._send("get", self.base_url))

    async def list_rows_async(self) -> List[Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.async_transport) as client:
                r = await client.get(self.base_url, headers=self.headers)
        except httpx.HTTPError as e:
            log.error("GET %s failed: %s", self.base_url, e)
            raise NetworkFailure(f"GET {self.base_url} failed: {e}") from e
        return self._rows(self._check("get", self.base_url, r))

    # Write
    def create_row(self, row: Dict[str, Any]):
        r = self._send("post", self.base_url, json={"data": row})
        return _json_or_none(r)

    def update_row(self, row_id, fields: Dict[str, Any]):
        r = self._send("patch", self._row_url(row_id), json={"data": fields})
        return _json_or_none(r)

    def delete_row(self, row_id):
        r = self._send("delete", self._row_url(row_id))
        return _json_or_none(r)


def _json_or_none(r):
    try:
        return r.json()
    except ValueError:
        return None
