"""
Lightweight event sink → one JSON log line per ingest outcome.
"""
from __future__ import annotations
import json
import logging
import time
from typing import Any, Dict

from ..core.logger import get_logger

log = get_logger("events")

def record_event(kind: str, payload: Dict[str, Any], level: int = logging.INFO) -> None:
    rec = {
        "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "kind": kind,
        "payload": payload,
    }
    log.log(level, json.dumps(rec, ensure_ascii=False, sort_keys=True))
