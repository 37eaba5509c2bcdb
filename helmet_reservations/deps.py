from __future__ import annotations
import logging
from typing import AsyncGenerator
import httpx
from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .core.config import get_settings
from .core.redis import allow_request

logger = logging.getLogger(__name__)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for s in get_session():
        yield s

async def scan_rate_limit(request: Request) -> None:
    # basic rate-limit per IP on scan
    ip = request.client.host if request.client else "unknown"
    if not await allow_request(ip, "reservations.scan"):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests")

# --- outbound clients ---

async def send_reservation_email(
    *,
    user_email: str,
    user_name: str,
    course_name: str,
    class_date: str,
    class_time: str,
    location: str | None,
    qr_code_image: str,
) -> None:
    """POST the booking confirmation to the mail service. Raises on transport or HTTP errors."""
    settings = get_settings()
    url = f"{settings.mail_base_url}/emails/helmet-reservation"
    payload = {
        "userEmail": user_email,
        "userName": user_name,
        "courseName": course_name,
        "classDate": class_date,
        "classTime": class_time,
        "location": location,
        "qrCodeImage": qr_code_image,
    }
    async with httpx.AsyncClient() as client:
        r = await client.post(url, json=payload, timeout=settings.outbound_timeout_seconds)
        r.raise_for_status()
    logger.info("Reservation email sent to %s", user_email)
