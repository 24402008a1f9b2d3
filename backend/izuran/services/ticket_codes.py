"""
Scannable ticket codes.

A code is an HS256-signed JWT carrying the public ticket reference, the
event id and a 128-bit random nonce. The nonce makes every code unique and
unguessable even for the same ticket reference; the signature means any
edited character turns the code into garbage that verifies to nothing.

Codes carry no expiry: a ticket stays scannable until it is used or voided.
"""

import base64
import io
import secrets
import uuid
from typing import Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from jose import jwt
from jose.exceptions import JWTError

from izuran.core.config import get_settings

settings = get_settings()

CODE_ALGORITHM = "HS256"


def generate_ticket_id() -> str:
    """Public reference printed on confirmations, e.g. TKT-3F9A0C1B7E22."""
    return f"TKT-{uuid.uuid4().hex[:12].upper()}"


def mint_ticket_code(ticket_id: str, event_id: int) -> str:
    payload = {
        "tid": ticket_id,
        "eid": event_id,
        "nonce": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, settings.TICKET_SIGNING_SECRET, algorithm=CODE_ALGORITHM)


def verify_ticket_code(code: str) -> Optional[dict]:
    """Return the claims of a genuine code, or None."""
    try:
        claims = jwt.decode(code, settings.TICKET_SIGNING_SECRET, algorithms=[CODE_ALGORITHM])
    except JWTError:
        return None
    if not isinstance(claims.get("tid"), str) or "nonce" not in claims:
        return None
    return claims


def render_qr_png(code: str) -> bytes:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=1, box_size=10)
    qr.add_data(code)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def render_qr_data_url(code: str) -> str:
    encoded = base64.b64encode(render_qr_png(code)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
