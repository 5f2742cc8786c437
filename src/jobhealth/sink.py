"""Line-oriented health sink.

Each emit call renders one line and hands it to the writer in a single
write() call:

    [<timestamp>]: job:<job> event:<event>[ err:<msg>][ time:<dur>][ kvs:[...]]
    [<timestamp>]: job:<job> status:<label> time:<dur>[ kvs:[...]]

The sink never opens, flushes, rotates or closes the writer.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import codecs
import io
import threading
from typing import Any, Mapping, Optional, Protocol

from jobhealth.completion import CompletionStatus, status_label
from jobhealth.formatting import format_nanoseconds, render_kvs, timestamp

Kvs = Optional[Mapping[str, str]]


class ShortWriteError(OSError):
    """Raised when a writer accepts only part of a line."""

    def __init__(self, written: int, expected: int):
        self.written = written
        self.expected = expected
        super().__init__(f"Short write: wrote {written} of {expected}")


class Sink(Protocol):
    """Anything that can receive the four kinds of health records."""

    def emit_event(self, job: str, event: str, kvs: Kvs = None) -> None: ...

    def emit_event_err(
        self, job: str, event: str, err: BaseException, kvs: Kvs = None
    ) -> None: ...

    def emit_timing(
        self, job: str, event: str, duration_ns: int, kvs: Kvs = None
    ) -> None: ...

    def emit_job_completion(
        self, job: str, status: CompletionStatus, duration_ns: int, kvs: Kvs = None
    ) -> None: ...


class LockedWriter:
    """Serializes write() calls to a shared writer across threads."""

    def __init__(self, writer: Any):
        self.writer = writer
        self._lock = threading.Lock()

    def write(self, data):
        with self._lock:
            return self.writer.write(data)


def _is_text_writer(writer: Any) -> bool:
    """Whether writer takes str rather than bytes."""
    while isinstance(writer, LockedWriter):
        writer = writer.writer

    if isinstance(writer, (io.TextIOBase, codecs.StreamWriter, codecs.StreamReaderWriter)):
        return True
    # File-like wrappers such as SpooledTemporaryFile expose mode/encoding
    mode = getattr(writer, "mode", None)
    if isinstance(mode, str):
        return "b" not in mode
    return getattr(writer, "encoding", None) is not None


class LogfileWriterSink:
    """Writes health records as text lines to any writer."""

    def __init__(self, writer: Any):
        """
        Initialize the sink.

        Args:
            writer: Destination with a write() method. Text streams get str,
                anything else gets UTF-8 encoded bytes.
        """
        self.writer = writer
        self._text = _is_text_writer(writer)

    def emit_event(self, job: str, event: str, kvs: Kvs = None) -> None:
        self._write_line(f"job:{job} event:{event}", kvs)

    def emit_event_err(
        self, job: str, event: str, err: BaseException, kvs: Kvs = None
    ) -> None:
        self._write_line(f"job:{job} event:{event} err:{err}", kvs)

    def emit_timing(
        self, job: str, event: str, duration_ns: int, kvs: Kvs = None
    ) -> None:
        self._write_line(
            f"job:{job} event:{event} time:{format_nanoseconds(duration_ns)}", kvs
        )

    def emit_job_completion(
        self, job: str, status: CompletionStatus, duration_ns: int, kvs: Kvs = None
    ) -> None:
        """Write a completion line.

        Raises:
            UnknownCompletionStatusError: status is not a CompletionStatus;
                nothing is written.
        """
        label = status_label(status)
        self._write_line(
            f"job:{job} status:{label} time:{format_nanoseconds(duration_ns)}", kvs
        )

    def _write_line(self, fields: str, kvs: Kvs) -> None:
        line = f"[{timestamp()}]: {fields}"
        if kvs:
            line += f" kvs:[{render_kvs(kvs)}]"
        line += "\n"

        data = line if self._text else line.encode("utf-8")
        written = self.writer.write(data)
        # Writers returning None (e.g. some wrappers) are trusted to be complete
        if isinstance(written, int) and written < len(data):
            raise ShortWriteError(written, len(data))
