"""
Append-only JSON-lines log of accepted results.

A single ResultWriter owns the write handle. Every append is one full line,
written and flushed under a lock, so concurrent requests never interleave and
readers never see a torn record.
"""
from __future__ import annotations
import json
import threading
from pathlib import Path

from ..core.exceptions import StorageError
from ..core.logger import get_logger
from .results import Metadata, PerformanceResults, log_record

log = get_logger("results_writer")

class ResultWriter:
    def __init__(self, filename: str | Path) -> None:
        self._path = Path(filename)
        self._lock = threading.Lock()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._f = self._path.open("a", encoding="utf-8")
        except OSError as e:
            raise StorageError(f"cannot open results log: {e}") from e
        log.info("Results log: %s", self._path)

    @property
    def filename(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._f.closed

    def append_results(self, metadata: Metadata, results: PerformanceResults) -> None:
        line = json.dumps(log_record(metadata, results), separators=(",", ":")) + "\n"
        with self._lock:
            if self._f.closed:
                raise StorageError("results log is closed")
            try:
                self._f.write(line)
                self._f.flush()
            except (OSError, ValueError) as e:
                raise StorageError(f"cannot append to results log: {e}") from e

    def close(self) -> None:
        with self._lock:
            if not self._f.closed:
                self._f.close()
