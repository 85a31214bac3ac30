"""
HMAC-SHA256 authentication of raw submissions and the session-timestamp
freshness window that bounds replays.

The code is always computed over the exact request bytes, never over a
re-serialized object.
"""
from __future__ import annotations
import binascii
import hashlib
import hmac
import re
from datetime import datetime, timedelta, timezone

from ..core.exceptions import AuthenticationFailed, InvalidPayload, StaleSession

SESSION_TIME_FORMAT = "%Y.%m.%d-%H.%M.%S"
DEFAULT_WINDOW = timedelta(minutes=10)
_SESSION_TIME_RE = re.compile(r"\d{4}\.\d{2}\.\d{2}-\d{2}\.\d{2}\.\d{2}", re.ASCII)

def compute_mac(secret: str, body: bytes) -> str:
    """Hex-encoded HMAC-SHA256 of body keyed with secret."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

def decode_mac(header: str | None) -> bytes:
    """Decode a hex authorization header; AuthenticationFailed if absent or not hex."""
    if not header:
        raise AuthenticationFailed("missing authentication code")
    try:
        return binascii.unhexlify(header.strip())
    except ValueError as e:
        raise AuthenticationFailed("authentication code is not hex") from e

def verify_mac(secret: str, body: bytes, claimed: bytes) -> None:
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    if not hmac.compare_digest(expected, claimed):
        raise AuthenticationFailed("authentication code mismatch")

def session_timestamp(session_id: str) -> datetime:
    """
    Extract the UTC timestamp from '<userHash>-<YYYY.MM.DD-HH.MM.SS>'.
    The id is split on the first '-' only; the remainder must be the timestamp.
    """
    parts = session_id.split("-", 1)
    if len(parts) != 2:
        raise InvalidPayload("session id has no timestamp")
    if not _SESSION_TIME_RE.fullmatch(parts[1]):
        raise InvalidPayload("session timestamp is malformed")
    try:
        ts = datetime.strptime(parts[1], SESSION_TIME_FORMAT)
    except ValueError as e:
        raise InvalidPayload("session timestamp is malformed") from e
    return ts.replace(tzinfo=timezone.utc)

def format_session_timestamp(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime(SESSION_TIME_FORMAT)

def check_freshness(ts: datetime, now: datetime, window: timedelta = DEFAULT_WINDOW) -> None:
    """Both bounds are exclusive: now - window < ts < now + window."""
    if not (now - window < ts < now + window):
        raise StaleSession("session timestamp outside freshness window")
