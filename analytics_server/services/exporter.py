"""
Flattens the results log into CSV.

Two passes over the log:
  1. collect every distinct "<eventName>.<attributeName>" key,
  2. emit a header of sessionId, buildInfo and the sorted keys, then one row
     per record in log order.

Columns must be fully known before the header goes out, so pass 1 always
finishes before any output is produced.
"""
from __future__ import annotations
import csv
import io
from pathlib import Path
from typing import Dict, Iterator, List, Set

from pydantic import ValidationError

from ..core.exceptions import InvalidPayload, StorageError
from ..core.logger import get_logger
from .results import PerformanceResults

log = get_logger("exporter")

BASE_COLUMNS = ["sessionId", "buildInfo"]
CHUNK_SIZE = 64 * 1024

def column_key(event_name: str, attribute_name: str) -> str:
    return f"{event_name}.{attribute_name}"

def iter_results(path: str | Path) -> Iterator[PerformanceResults]:
    """
    Yield every stored record in append order from an independent read handle.

    Blank lines are skipped. A last line without its newline is an append still
    in flight and is left for the next export.
    """
    try:
        f = open(path, "r", encoding="utf-8", newline="")
    except OSError as e:
        raise StorageError(f"cannot open results log: {e}") from e

    with f:
        lineno = 0
        try:
            for line in f:
                lineno += 1
                if not line.endswith("\n"):
                    log.debug("Skipping partial trailing line %d", lineno)
                    break
                if not line.strip():
                    continue
                try:
                    yield PerformanceResults.model_validate_json(line)
                except ValidationError as e:
                    log.error("Corrupt record at %s:%d", path, lineno)
                    raise InvalidPayload(f"corrupt record at line {lineno}") from e
        except UnicodeDecodeError as e:
            log.error("Undecodable bytes near %s:%d", path, lineno + 1)
            raise InvalidPayload(f"undecodable record near line {lineno + 1}") from e
        except OSError as e:
            raise StorageError(f"cannot read results log: {e}") from e

def collect_column_keys(path: str | Path) -> List[str]:
    """Pass 1: sorted, de-duplicated event.attribute keys across the whole log."""
    keys: Set[str] = set()
    for pr in iter_results(path):
        for e in pr.events:
            for a in e.attributes:
                keys.add(column_key(e.event_name, a.name))
    return sorted(keys)

def header_row(columns: List[str]) -> List[str]:
    return BASE_COLUMNS + list(columns)

def record_row(pr: PerformanceResults, columns: List[str]) -> List[str]:
    # a key repeated within one record keeps its last value
    values: Dict[str, str] = {}
    for e in pr.events:
        for a in e.attributes:
            values[column_key(e.event_name, a.name)] = a.value
    return [pr.session_id, pr.build_info] + [values.get(c, "") for c in columns]

def iter_rows(path: str | Path, columns: List[str]) -> Iterator[List[str]]:
    """Pass 2: one row per record, in log order."""
    for pr in iter_results(path):
        yield record_row(pr, columns)

def render_csv(path: str | Path, columns: List[str] | None = None) -> Iterator[str]:
    """
    Yield CSV text in chunks. When columns is None pass 1 runs here; the API
    runs it up front instead so a failing scan never starts a response.
    """
    if columns is None:
        columns = collect_column_keys(path)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header_row(columns))
    for row in iter_rows(path, columns):
        writer.writerow(row)
        if buf.tell() >= CHUNK_SIZE:
            yield buf.getvalue()
            buf.seek(0)
            buf.truncate(0)
    yield buf.getvalue()
