"""
Performance analytics API.

Endpoints:
- POST /v1/user/performance      -> authenticated results submission
- GET  /v1/user/performance/csv  -> admin CSV export (HTTP Basic)
- GET  /example                  -> signed example curl command
- GET  /health

Usage:
    analytics-server            (see run())
"""
from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Callable, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.middleware.gzip import GZipMiddleware

from ..core.config import Settings, get_settings
from ..core.exceptions import (
    AppError,
    AuthenticationFailed,
    InvalidPayload,
    PayloadTooLarge,
    StaleSession,
    StorageError,
    Unauthorized,
    UnsupportedMediaType,
)
from ..core.logger import configure_logging, get_logger
from ..obs.events import record_event
from ..obs.middleware import RequestLoggingMiddleware
from ..services.authenticator import check_freshness, decode_mac, session_timestamp, verify_mac
from ..services.example import example_command
from ..services.exporter import collect_column_keys, render_csv
from ..services.results import Metadata, PerformanceResults
from ..services.results_writer import ResultWriter
from ..services.schema import validate_payload

log = get_logger("api")

INGEST_PATH = "/v1/user/performance"
EXPORT_PATH = "/v1/user/performance/csv"
REALM = "Private"

Clock = Callable[[], datetime]

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

basic_auth = HTTPBasic(realm=REALM, auto_error=False)

def _is_json(request: Request) -> bool:
    ctype = request.headers.get("content-type", "")
    return ctype.split(";", 1)[0].strip().lower() == "application/json"

def _client_ip(request: Request) -> str:
    return request.client.host if request.client else ""

async def read_capped_body(request: Request, limit: int) -> bytes:
    """Read the request body, failing with PayloadTooLarge as soon as it passes limit."""
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            size = int(declared)
        except ValueError as e:
            raise InvalidPayload("bad content-length") from e
        if size > limit:
            raise PayloadTooLarge(f"declared body of {size} bytes exceeds {limit}")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLarge(f"body exceeds {limit} bytes")
    return bytes(body)

def create_app(
    settings: Settings | None = None,
    *,
    clock: Clock = utcnow,
    writer: ResultWriter | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    writer = writer or ResultWriter(settings.results_path())
    window = timedelta(seconds=settings.freshness_window_seconds)

    if not settings.shared_secret:
        log.warning("SHARED_SECRET is empty; submissions are signed with an empty key.")
    if not settings.admin_password:
        log.warning("ADMIN_PASSWORD is empty; CSV export is disabled.")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        log.info("Closing results log.")
        writer.close()

    app = FastAPI(title="Performance Analytics API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.writer = writer

    if settings.enable_gzip:
        app.add_middleware(GZipMiddleware, minimum_size=1024)

    # Request logging middleware (observability)
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(AppError)
    async def app_error(request: Request, exc: AppError):
        return PlainTextResponse(
            HTTPStatus(exc.status_code).phrase,
            status_code=exc.status_code,
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_exc(request: Request, exc: Exception):
        log.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return PlainTextResponse(HTTPStatus.INTERNAL_SERVER_ERROR.phrase, status_code=500)

    # ----------------- Endpoints -----------------
    @app.get("/health")
    async def health():
        return {"ok": True, "env": settings.app_env}

    @app.post(INGEST_PATH)
    async def post_results(request: Request):
        if not _is_json(request):
            raise UnsupportedMediaType("expected application/json")

        ip = _client_ip(request)
        try:
            claimed = decode_mac(request.headers.get("authorization"))
            body = await read_capped_body(request, settings.max_body_bytes)
            validate_payload(body)
            try:
                results = PerformanceResults.model_validate_json(body)
            except ValidationError as e:
                raise InvalidPayload(f"cannot parse results: {e.error_count()} errors") from e

            now = clock()
            check_freshness(session_timestamp(results.session_id), now, window)
            verify_mac(settings.shared_secret, body, claimed)
        except AuthenticationFailed as e:
            record_event("auth_failed", {"ip": ip, "reason": str(e)}, level=logging.WARNING)
            raise
        except StaleSession as e:
            record_event("stale_session", {"ip": ip, "reason": str(e)}, level=logging.WARNING)
            raise
        except (InvalidPayload, PayloadTooLarge) as e:
            record_event("invalid_payload", {"ip": ip, "reason": str(e)})
            raise

        md = Metadata(date_time=now.astimezone(timezone.utc), ip=ip)
        try:
            await run_in_threadpool(writer.append_results, md, results)
        except StorageError as e:
            record_event("storage_error", {"ip": ip, "reason": str(e)}, level=logging.ERROR)
            raise

        record_event("ingest", {
            "ip": ip,
            "sessionId": results.session_id,
            "userId": results.user_id,
            "events": len(results.events),
        })
        return Response(status_code=200)

    def require_admin(credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth)) -> str:
        if credentials is None or not settings.admin_password:
            raise Unauthorized(REALM)
        user_ok = secrets.compare_digest(
            credentials.username.encode("utf-8"), settings.admin_username.encode("utf-8")
        )
        pass_ok = secrets.compare_digest(
            credentials.password.encode("utf-8"), settings.admin_password.encode("utf-8")
        )
        if not (user_ok and pass_ok):
            raise Unauthorized(REALM)
        return credentials.username

    @app.get(EXPORT_PATH)
    async def get_results_csv(username: str = Depends(require_admin)):
        path = writer.filename
        try:
            columns = await run_in_threadpool(collect_column_keys, path)
        except InvalidPayload as e:
            raise StorageError("results log is corrupt") from e
        log.info("CSV export by %s: %d event columns", username, len(columns))
        return StreamingResponse(
            render_csv(path, columns),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="results.csv"'},
        )

    @app.get("/example")
    async def example(request: Request):
        host = request.headers.get("host") or request.url.netloc
        return PlainTextResponse(example_command(settings.shared_secret, host, clock()))

    return app

def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    log.info("Data directory: %s", settings.data_dir)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        proxy_headers=settings.behind_proxy,
        forwarded_allow_ips="*" if settings.behind_proxy else None,
        access_log=False,
        log_level=settings.log_level.lower(),
    )
