from datetime import datetime, timezone

import httpx

from smartcapture.compliance.base import BaseAuditSink
from smartcapture.compliance.exceptions import AuditError


class HttpAuditSink(BaseAuditSink):
    """Posts audit events to a remote audit service.

    The service answers with a JSON object carrying the new event's ``id``.
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    async def log_document_access(
        self,
        document_id: str,
        access_type: str,
        metadata: dict[str, object],
    ) -> str:
        payload = {
            "document_id": document_id,
            "access_type": access_type,
            "metadata": metadata,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = await self._http.post(self._url, json=payload, headers=self._headers)
        except httpx.TransportError as exc:
            raise AuditError(f"Audit sink unreachable: {exc}") from exc
        if response.status_code not in (200, 201):
            raise AuditError(f"Audit sink returned {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise AuditError(f"Audit sink response is not JSON: {exc}") from exc
        log_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(log_id, str) or not log_id:
            raise AuditError("Audit sink response has no 'id'")
        return log_id

    async def aclose(self) -> None:
        await self._http.aclose()
