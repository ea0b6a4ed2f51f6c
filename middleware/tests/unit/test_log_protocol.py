"""Tests for progress tracking and the error log sink."""

import io
import threading

import pytest

from subtitle_flow.utils import log_protocol as lp


class _FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start


@pytest.mark.unit
def test_estimate_remaining():
    assert lp.estimate_remaining(0, 10, 5.0) == 0.0
    assert lp.estimate_remaining(5, 10, 5.0) == 5.0
    assert lp.estimate_remaining(10, 10, 5.0) == 0.0


@pytest.mark.unit
def test_progress_tracker_emits_eta(monkeypatch):
    emitted = []
    clock = _FakeClock(0.0)
    monkeypatch.setattr(lp, "emit", lambda prefix, data: emitted.append((prefix, data)))
    monkeypatch.setattr(lp.time, "time", lambda: clock.now)

    tracker = lp.ProgressTracker(total_units=4)
    tracker.start_time = clock.now
    clock.now = 2.0
    tracker.advance()
    clock.now = 2.1
    tracker.advance()  # throttled

    progress = [data for prefix, data in emitted if prefix == "JSON_PROGRESS"]
    assert len(progress) == 1
    assert progress[0]["current"] == 1
    assert progress[0]["remaining"] == 6.0
    assert tracker.processed_units == 2


@pytest.mark.unit
def test_progress_tracker_final_stats(monkeypatch):
    emitted = []
    monkeypatch.setattr(lp, "emit", lambda prefix, data: emitted.append((prefix, data)))

    tracker = lp.ProgressTracker(total_units=3)
    tracker.advance(3)
    tracker.note_translated()
    tracker.note_line_failure()
    tracker.note_file_done()
    tracker.emit_final_stats(cache_hits=2, total_requests=1)

    final = [data for prefix, data in emitted if prefix == "JSON_FINAL"][-1]
    assert final["filesCompleted"] == 1
    assert final["linesTranslated"] == 1
    assert final["linesFailed"] == 1
    assert final["linesProcessed"] == 3
    assert final["cacheHits"] == 2


@pytest.mark.unit
def test_progress_tracker_disabled_is_silent(monkeypatch):
    emitted = []
    monkeypatch.setattr(lp, "emit", lambda prefix, data: emitted.append((prefix, data)))
    tracker = lp.ProgressTracker(total_units=1, emit_enabled=False)
    tracker.advance()
    tracker.emit_final_stats()
    assert emitted == []
    assert tracker.processed_units == 1


@pytest.mark.unit
def test_progress_tracker_concurrent_advance():
    tracker = lp.ProgressTracker(total_units=800, emit_enabled=False)

    def work():
        for _ in range(100):
            tracker.advance()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert tracker.processed_units == 800


@pytest.mark.unit
def test_error_log_appends_single_lines(tmp_path):
    path = tmp_path / "errors.log"
    with lp.ErrorLog(str(path)) as log:
        log.write("first")
        log.write("multi\nline")
    with lp.ErrorLog(str(path)) as log:
        log.write("third")
        assert log.count == 1

    assert path.read_text(encoding="utf-8").splitlines() == ["first", "multi line", "third"]


@pytest.mark.unit
def test_error_log_concurrent_writes_do_not_interleave():
    stream = io.StringIO()
    log = lp.ErrorLog("memory.log", stream=stream)

    def work(n):
        for i in range(50):
            log.write(f"worker {n} entry {i}")

    threads = [threading.Thread(target=work, args=(n,)) for n in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = stream.getvalue().splitlines()
    assert len(lines) == 300
    assert all(line.startswith("worker ") for line in lines)
    assert log.count == 300


@pytest.mark.unit
def test_error_log_unopenable_path_raises(tmp_path):
    with pytest.raises(OSError):
        lp.ErrorLog(str(tmp_path / "missing" / "errors.log"))
