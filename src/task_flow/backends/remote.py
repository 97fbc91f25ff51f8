"""Backend for a hosted record API reached over HTTP."""

import asyncio
import logging
from typing import Any, Sequence

import requests

from task_flow.backends.base import Condition, FieldMap, RecordBackend, coerce_id
from task_flow.errors import NotFound, TransportError, ValidationError
from task_flow.models import CATEGORY_FIELDS, TASK_FIELDS

logger = logging.getLogger(__name__)

# The record API stores snake_case names, which match the canonical ones.
TASK_FIELD_MAP = FieldMap(TASK_FIELDS)
CATEGORY_FIELD_MAP = FieldMap([name for name in CATEGORY_FIELDS if name != "task_count"])

VALIDATION_STATUSES = {400, 409, 422}


class RecordApiClient:
    """Thin synchronous client for the record API.

    Every call returns the decoded JSON body or raises one of the Task Flow
    errors. 404 maps to NotFound, 400/409/422 to ValidationError, and
    everything else that is not 2xx to TransportError.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 15,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = float(timeout_seconds)
        self._session = session or requests.Session()

    def _build_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        kind: str = "record",
        record_id: Any = None,
    ) -> Any:
        if not path.startswith("/"):
            path = "/" + path
        url = f"{self.base_url}{path}"

        try:
            resp = self._session.request(
                method.upper(),
                url,
                json=json_body,
                headers=self._build_headers(),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method.upper(), url, exc)
            raise TransportError(f"Cannot reach record API: {exc}") from exc

        status = int(resp.status_code)
        if 200 <= status < 300:
            if status == 204 or not resp.content:
                return None
            try:
                return resp.json()
            except ValueError as exc:
                raise TransportError("Record API returned invalid JSON", status) from exc

        detail = self._error_detail(resp)
        logger.warning("%s %s returned %d: %s", method.upper(), url, status, detail)
        if status == 404:
            raise NotFound(kind, record_id)
        if status in VALIDATION_STATUSES:
            raise ValidationError(detail)
        raise TransportError(detail, status)

    @staticmethod
    def _error_detail(resp: requests.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        text = (resp.text or "").strip()
        return text[:2000] if text else f"HTTP {resp.status_code}"

    def close(self) -> None:
        self._session.close()


class RemoteBackend(RecordBackend):
    """One table of the record API.

    The blocking HTTP calls run in a worker thread so the event loop stays
    responsive.
    """

    def __init__(
        self,
        client: RecordApiClient,
        table: str,
        *,
        kind: str = "record",
        field_map: FieldMap,
    ) -> None:
        self.client = client
        self.table = table
        self.kind = kind
        self.field_map = field_map

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        return await asyncio.to_thread(
            self.client.request, method, path, kind=self.kind, **kwargs
        )

    async def list(self, where: Sequence[Condition] | None = None) -> list[dict[str, Any]]:
        body = {
            "where": [
                {"field": c.field, "operator": c.operator, "value": c.value}
                for c in where or ()
            ]
        }
        data = await self._call("POST", f"/{self.table}/query", json_body=body)
        return list((data or {}).get("records") or [])

    async def get_by_id(self, record_id: Any) -> dict[str, Any]:
        record_id = coerce_id(self.kind, record_id)
        data = await self._call("GET", f"/{self.table}/{record_id}", record_id=record_id)
        return self._record(data)

    async def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        fields = {k: v for k, v in fields.items() if k != self.id_field}
        data = await self._call("POST", f"/{self.table}", json_body={"record": fields})
        return self._record(data)

    async def update(self, record_id: Any, fields: dict[str, Any]) -> dict[str, Any]:
        record_id = coerce_id(self.kind, record_id)
        fields = {k: v for k, v in fields.items() if k != self.id_field}
        data = await self._call(
            "PATCH",
            f"/{self.table}/{record_id}",
            json_body={"record": fields},
            record_id=record_id,
        )
        return self._record(data)

    async def delete(self, record_id: Any) -> None:
        record_id = coerce_id(self.kind, record_id)
        await self._call("DELETE", f"/{self.table}/{record_id}", record_id=record_id)

    def _record(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict) or not isinstance(data.get("record"), dict):
            raise TransportError("Record API response has no record")
        return dict(data["record"])

    async def close(self) -> None:
        self.client.close()
