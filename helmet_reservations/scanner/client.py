from __future__ import annotations
import logging
from typing import Any
import httpx

logger = logging.getLogger(__name__)

class SubmitFailed(Exception):
    """The scan could not be delivered or the API answered with an error."""

class CheckinClient:
    """Posts decoded QR payloads to the reservations API."""

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def submit(self, qr_code_data: str, schedule_id: str) -> dict[str, Any]:
        payload = {"qrCodeData": qr_code_data, "scheduleId": schedule_id}
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                r = await client.post("/reservations/scan", json=payload)
        except httpx.HTTPError as exc:
            raise SubmitFailed(f"Scan request failed: {exc}") from exc

        if r.status_code != 200:
            try:
                detail = r.json().get("error")
            except ValueError:
                detail = None
            raise SubmitFailed(detail or f"Scan request failed with HTTP {r.status_code}")
        logger.debug("Scan accepted for schedule %s: %s", schedule_id, r.text)
        return r.json()
