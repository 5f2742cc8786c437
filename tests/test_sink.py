"""Tests for sink module.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import codecs
import io
import re
import tempfile
import threading

import pytest

from jobhealth.completion import (
    COMPLETION_STATUS_LABELS,
    CompletionStatus,
    UnknownCompletionStatusError,
)
from jobhealth.sink import LockedWriter, LogfileWriterSink, ShortWriteError

BASIC_EVENT_RE = re.compile(r"^\[[^\]]+\]: job:(.+) event:(.+)\n$")
KVS_EVENT_RE = re.compile(r"^\[[^\]]+\]: job:(.+) event:(.+) kvs:\[(.+)\]\n$")
BASIC_EVENT_ERR_RE = re.compile(r"^\[[^\]]+\]: job:(.+) event:(.+) err:(.+)\n$")
KVS_EVENT_ERR_RE = re.compile(r"^\[[^\]]+\]: job:(.+) event:(.+) err:(.+) kvs:\[(.+)\]\n$")
BASIC_TIMING_RE = re.compile(r"^\[[^\]]+\]: job:(.+) event:(.+) time:(.+)\n$")
KVS_TIMING_RE = re.compile(r"^\[[^\]]+\]: job:(.+) event:(.+) time:(.+) kvs:\[(.+)\]\n$")
BASIC_COMPLETION_RE = re.compile(r"^\[[^\]]+\]: job:(.+) status:(.+) time:(.+)\n$")
KVS_COMPLETION_RE = re.compile(
    r"^\[[^\]]+\]: job:(.+) status:(.+) time:(.+) kvs:\[(.+)\]\n$"
)


class TestEmitEvent:
    """Tests for emit_event."""

    def test_basic(self, sink, buffer):
        """Should write job and event with no kvs segment."""
        assert sink.emit_event("myjob", "myevent", None) is None

        line = buffer.getvalue()
        match = BASIC_EVENT_RE.match(line)
        assert match is not None
        assert match.groups() == ("myjob", "myevent")
        assert "kvs:[" not in line

    def test_empty_kvs_omits_segment(self, sink, buffer):
        """An empty mapping is treated like no mapping."""
        sink.emit_event("myjob", "myevent", {})
        assert "kvs:[" not in buffer.getvalue()

    def test_kvs(self, sink, buffer, some_kvs):
        """Should append kvs sorted by key."""
        sink.emit_event("myjob", "myevent", some_kvs)

        match = KVS_EVENT_RE.match(buffer.getvalue())
        assert match is not None
        assert match.groups() == ("myjob", "myevent", "another:thing wat:ok")

    def test_single_kv_always_emits_segment(self, sink, buffer):
        sink.emit_event("myjob", "myevent", {"a": "1"})
        assert buffer.getvalue().endswith(" kvs:[a:1]\n")

    def test_no_trailing_space(self, sink, buffer):
        sink.emit_event("myjob", "myevent")
        assert buffer.getvalue().endswith("event:myevent\n")

    def test_no_escaping(self, sink, buffer):
        """Delimiter characters are written as given."""
        sink.emit_event("my:job", "my]event", {"k": "a b"})
        assert "job:my:job event:my]event kvs:[k:a b]" in buffer.getvalue()


class TestEmitEventErr:
    """Tests for emit_event_err."""

    def test_basic(self, sink, buffer, sample_error):
        sink.emit_event_err("myjob", "myevent", sample_error, None)

        match = BASIC_EVENT_ERR_RE.match(buffer.getvalue())
        assert match is not None
        assert match.groups() == ("myjob", "myevent", str(sample_error))

    def test_kvs(self, sink, buffer, sample_error, some_kvs):
        """err field comes before the kvs field."""
        sink.emit_event_err("myjob", "myevent", sample_error, some_kvs)

        match = KVS_EVENT_ERR_RE.match(buffer.getvalue())
        assert match is not None
        assert match.groups() == (
            "myjob",
            "myevent",
            "my test error",
            "another:thing wat:ok",
        )


class TestEmitTiming:
    """Tests for emit_timing."""

    def test_basic(self, sink, buffer):
        sink.emit_timing("myjob", "myevent", 1204000, None)

        match = BASIC_TIMING_RE.match(buffer.getvalue())
        assert match is not None
        assert match.groups() == ("myjob", "myevent", "1204 μs")
        assert "job:myjob event:myevent time:1204 μs\n" in buffer.getvalue()

    def test_kvs(self, sink, buffer, some_kvs):
        sink.emit_timing("myjob", "myevent", 34567890, some_kvs)

        match = KVS_TIMING_RE.match(buffer.getvalue())
        assert match is not None
        assert match.groups() == ("myjob", "myevent", "34 ms", "another:thing wat:ok")
        assert "time:34 ms kvs:[another:thing wat:ok]" in buffer.getvalue()

    def test_negative_duration_writes_nothing(self, sink, buffer):
        with pytest.raises(ValueError):
            sink.emit_timing("myjob", "myevent", -1)
        assert buffer.getvalue() == ""


class TestEmitJobCompletion:
    """Tests for emit_job_completion."""

    @pytest.mark.parametrize("status,label", list(COMPLETION_STATUS_LABELS.items()))
    def test_basic(self, status, label):
        buffer = io.StringIO()
        sink = LogfileWriterSink(buffer)
        sink.emit_job_completion("myjob", status, 1204000, None)

        match = BASIC_COMPLETION_RE.match(buffer.getvalue())
        assert match is not None
        assert match.groups() == ("myjob", label, "1204 μs")

    @pytest.mark.parametrize("status,label", list(COMPLETION_STATUS_LABELS.items()))
    def test_kvs(self, status, label, some_kvs):
        buffer = io.StringIO()
        sink = LogfileWriterSink(buffer)
        sink.emit_job_completion("myjob", status, 34567890, some_kvs)

        match = KVS_COMPLETION_RE.match(buffer.getvalue())
        assert match is not None
        assert match.groups() == ("myjob", label, "34 ms", "another:thing wat:ok")

    def test_success_label(self, sink, buffer):
        sink.emit_job_completion("myjob", CompletionStatus.SUCCESS, 1204000)
        assert "job:myjob status:success time:1204 μs\n" in buffer.getvalue()

    def test_unknown_status_raises_and_writes_nothing(self, sink, buffer):
        with pytest.raises(UnknownCompletionStatusError):
            sink.emit_job_completion("myjob", "success", 1204000)
        assert buffer.getvalue() == ""


class TestWriters:
    """Tests for writer handling."""

    def test_one_write_per_line(self, some_kvs):
        """Each record is handed over in a single write call."""

        class RecordingWriter:
            def __init__(self):
                self.calls = []

            def write(self, data):
                self.calls.append(data)
                return len(data)

        writer = RecordingWriter()
        sink = LogfileWriterSink(writer)
        sink.emit_event("myjob", "a", some_kvs)
        sink.emit_timing("myjob", "b", 5)

        assert len(writer.calls) == 2
        assert all(call.endswith(b"\n") and call.count(b"\n") == 1 for call in writer.calls)

    def test_binary_writer_gets_utf8(self):
        buffer = io.BytesIO()
        sink = LogfileWriterSink(buffer)
        sink.emit_timing("myjob", "myevent", 1204000)
        assert "time:1204 μs".encode("utf-8") in buffer.getvalue()

    def test_write_error_propagates(self):
        """Writer failures reach the caller unchanged."""
        error = OSError("disk full")

        class FailingWriter:
            def write(self, data):
                raise error

        sink = LogfileWriterSink(FailingWriter())
        with pytest.raises(OSError) as exc_info:
            sink.emit_event("myjob", "myevent")
        assert exc_info.value is error

    def test_short_write(self):
        class ShortWriter:
            def write(self, data):
                return len(data) - 1

        sink = LogfileWriterSink(ShortWriter())
        with pytest.raises(ShortWriteError) as exc_info:
            sink.emit_event("myjob", "myevent")
        assert exc_info.value.written == exc_info.value.expected - 1

    def test_closed_file_raises(self, temp_dir):
        f = open(temp_dir / "health.log", "w")
        sink = LogfileWriterSink(f)
        f.close()
        with pytest.raises(ValueError):
            sink.emit_event("myjob", "myevent")

    def test_sink_does_not_close_writer(self, sink, buffer):
        sink.emit_event("myjob", "myevent")
        assert not buffer.closed

    def test_spooled_text_file_gets_str(self):
        with tempfile.SpooledTemporaryFile(mode="w+", encoding="utf-8") as f:
            LogfileWriterSink(f).emit_timing("myjob", "myevent", 1204000)
            f.seek(0)
            assert "job:myjob event:myevent time:1204 μs\n" in f.read()

    def test_spooled_binary_file_gets_bytes(self):
        with tempfile.SpooledTemporaryFile(mode="w+b") as f:
            LogfileWriterSink(f).emit_event("myjob", "myevent")
            f.seek(0)
            assert b"job:myjob event:myevent\n" in f.read()

    def test_codecs_writer_gets_str(self):
        raw = io.BytesIO()
        LogfileWriterSink(codecs.getwriter("utf-8")(raw)).emit_timing("myjob", "myevent", 1204000)
        assert "time:1204 μs".encode("utf-8") in raw.getvalue()

    def test_binary_file_gets_bytes(self, temp_dir):
        with open(temp_dir / "health.log", "ab") as f:
            LogfileWriterSink(f).emit_event("myjob", "myevent")
        assert (temp_dir / "health.log").read_text(encoding="utf-8").endswith("job:myjob event:myevent\n")


class TestLockedWriter:
    """Tests for LockedWriter."""

    def test_wrapped_text_writer_gets_str(self):
        buffer = io.StringIO()
        sink = LogfileWriterSink(LockedWriter(buffer))
        sink.emit_event("myjob", "myevent")
        assert "job:myjob event:myevent" in buffer.getvalue()

    def test_nested_locked_writers(self):
        buffer = io.StringIO()
        sink = LogfileWriterSink(LockedWriter(LockedWriter(buffer)))
        sink.emit_event("myjob", "myevent")
        assert buffer.getvalue().endswith("job:myjob event:myevent\n")

    def test_concurrent_lines_stay_whole(self):
        buffer = io.StringIO()
        sink = LogfileWriterSink(LockedWriter(buffer))

        def worker(n):
            for i in range(50):
                sink.emit_event(f"job{n}", f"event{i}", {"worker": str(n)})

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        lines = buffer.getvalue().splitlines()
        assert len(lines) == 200
        assert all(KVS_EVENT_RE.match(line + "\n") for line in lines)
