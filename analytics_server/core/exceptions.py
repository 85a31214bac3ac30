"""
Application-specific exceptions to keep error handling consistent.
Each carries the HTTP status the API boundary reports for it.
"""
from __future__ import annotations
from typing import Dict

class AppError(Exception):
    """Base app error."""
    status_code: int = 500
    headers: Dict[str, str] | None = None

class InvalidPayload(AppError):
    """Raised for malformed JSON, schema mismatches, bad session ids and stale timestamps."""
    status_code = 400

class AuthenticationFailed(AppError):
    """Raised when the message authentication code is missing, undecodable or wrong."""
    status_code = 403

class PayloadTooLarge(AppError):
    """Raised when a request body exceeds the configured cap."""
    status_code = 413

class UnsupportedMediaType(AppError):
    """Raised when an ingest request is not JSON."""
    status_code = 415

class Unauthorized(AppError):
    """Raised when export credentials are missing or wrong."""
    status_code = 401

    def __init__(self, realm: str = "Private") -> None:
        super().__init__("unauthorized")
        self.headers = {"WWW-Authenticate": f'Basic realm="{realm}"'}

class StorageError(AppError):
    """Raised when the results log cannot be written or read."""
    status_code = 500

class StaleSession(InvalidPayload):
    """Raised when the session timestamp falls outside the freshness window."""
