import json
import threading

import pytest

from analytics_server.core.exceptions import StorageError
from analytics_server.services.results import Metadata, PerformanceResults
from analytics_server.services.results_writer import ResultWriter

from conftest import NOW, SCORE_BODY

def _results() -> PerformanceResults:
    return PerformanceResults.model_validate_json(SCORE_BODY)

def test_append_writes_one_json_line(tmp_path):
    path = tmp_path / "results.json"
    rw = ResultWriter(path)
    rw.append_results(Metadata(date_time=NOW, ip="10.0.0.1"), _results())
    rw.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    rec = json.loads(lines[0])
    assert list(rec) == ["datetime", "ip", "buildInfo", "sessionId", "userId", "events"]
    assert rec["datetime"] == "2024-01-01T00:00:30Z"
    assert rec["ip"] == "10.0.0.1"
    assert rec["buildInfo"] == ""
    assert rec["events"] == [{"eventName": "Score", "attributes": [{"name": "Score.Num", "value": "10"}]}]

def test_existing_lines_are_kept(tmp_path):
    path = tmp_path / "results.json"
    path.write_text('{"sessionId":"old"}\n', encoding="utf-8")
    rw = ResultWriter(path)
    rw.append_results(Metadata(date_time=NOW, ip="x"), _results())
    rw.close()
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == '{"sessionId":"old"}'
    assert len(lines) == 2

def test_creates_missing_data_dir(tmp_path):
    rw = ResultWriter(tmp_path / "nested" / "dir" / "results.json")
    assert rw.filename.exists()
    rw.close()

def test_concurrent_appends_never_interleave(tmp_path):
    path = tmp_path / "results.json"
    rw = ResultWriter(path)
    results = _results()

    def worker(n):
        for _ in range(50):
            rw.append_results(Metadata(date_time=NOW, ip=f"10.0.0.{n}"), results)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    rw.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 400
    for line in lines:
        assert json.loads(line)["sessionId"] == "abc-2024.01.01-00.00.00"

def test_append_after_close_fails(tmp_path):
    rw = ResultWriter(tmp_path / "results.json")
    rw.close()
    rw.close()
    assert rw.closed
    with pytest.raises(StorageError):
        rw.append_results(Metadata(date_time=NOW, ip="x"), _results())

def test_unopenable_path_fails(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(StorageError):
        ResultWriter(blocker / "results.json")
