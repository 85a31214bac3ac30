from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from analytics_server.api.main import create_app
from analytics_server.core.config import Settings
from analytics_server.services.authenticator import compute_mac

SECRET = "test-shared-secret"
ADMIN_PASSWORD = "test-admin-password"
NOW = datetime(2024, 1, 1, 0, 0, 30, tzinfo=timezone.utc)

SCORE_BODY = (
    b'{"sessionId":"abc-2024.01.01-00.00.00","userId":"abc","events":'
    b'[{"eventName":"Score","attributes":[{"name":"Score.Num","value":"10"}]}]}'
)

def payload(session_id: str = "abc-2024.01.01-00.00.00", events=None, **extra) -> bytes:
    doc = {"sessionId": session_id, "userId": session_id.split("-", 1)[0], "events": events or []}
    doc.update(extra)
    return json.dumps(doc).encode("utf-8")

def signed_headers(body: bytes, secret: str = SECRET) -> dict:
    return {"Content-Type": "application/json", "Authorization": compute_mac(secret, body)}

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        shared_secret=SECRET,
        admin_password=ADMIN_PASSWORD,
        data_dir=str(tmp_path),
    )

@pytest.fixture
def client(settings):
    app = create_app(settings, clock=lambda: NOW)
    with TestClient(app) as c:
        yield c

@pytest.fixture
def log_path(settings):
    return settings.results_path()
