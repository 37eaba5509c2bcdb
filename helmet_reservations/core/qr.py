from __future__ import annotations
import base64
from datetime import datetime, timezone
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from .config import get_settings

TOKEN_PREFIX = "USER_"

def _now() -> datetime:
    return datetime.now(timezone.utc)

def make_qr_token(user_id: str, now: datetime | None = None) -> str:
    """USER_<userId>_<epoch millis>; unique per user because user ids are."""
    ts = int((now or _now()).timestamp() * 1000)
    return f"{TOKEN_PREFIX}{user_id}_{ts}"

def render_qr_image(token: str) -> str:
    """Render token as a black-on-white PNG and return it as a data URL."""
    settings = get_settings()
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=settings.qr_image_margin)
    qr.add_data(token)
    qr.make(fit=True)
    # pick the module size that gets closest to the configured pixel width
    modules = qr.modules_count + 2 * settings.qr_image_margin
    qr.box_size = max(1, settings.qr_image_width // modules)
    img = qr.make_image(fill_color="#000000", back_color="#FFFFFF")
    b = BytesIO(); img.save(b, format="PNG")
    return "data:image/png;base64," + base64.b64encode(b.getvalue()).decode("ascii")
