from __future__ import annotations
import json
import logging
from typing import Sequence
from nats.aio.client import Client as NATS
from .config import get_settings

logger = logging.getLogger(__name__)

_nats = NATS()

async def nats_connect():
    if not _nats.is_connected:
        servers: Sequence[str] = [u.strip() for u in get_settings().nats_urls.split(",") if u.strip()]
        await _nats.connect(servers=servers)

async def nats_close():
    try:
        if _nats.is_connected:
            await _nats.drain()
    except Exception:
        logger.warning("NATS drain failed", exc_info=True)

async def publish(subject: str, evt: dict):
    if not get_settings().enable_nats:
        logger.debug("NATS disabled, dropping %s event", subject)
        return
    await nats_connect()
    await _nats.publish(subject, json.dumps(evt, default=str).encode("utf-8"))

async def publish_notification(evt: dict):
    """
    evt = {
      "user_id": str,
      "title": str,
      "message": str,
      "type": "booking",
      "read": False
    }
    """
    await publish(get_settings().nats_subject_notification, evt)

async def publish_checkin(evt: dict):
    """
    evt = {
      "reservation_id": str,
      "schedule_id": str,
      "user_id": str,
      "checked_at": iso8601,
      "idempotency_key": "reservation_id"
    }
    """
    await publish(get_settings().nats_subject_checkin, evt)

async def publish_cancellation(evt: dict):
    await publish(get_settings().nats_subject_reservation_cancelled, evt)
