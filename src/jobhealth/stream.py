"""Instrumentation front-end: streams and jobs.

A Stream fans records out to its sinks. A Job is one named unit of work on a
stream; it carries its own kvs and start time so callers only pass what
changes per record.

    stream = Stream([LogfileWriterSink(sys.stdout)])
    stream.key_value("host", "web-1")

    with stream.job("import_contacts") as job:
        job.event("fetched", {"count": "42"})
        with job.timed("write"):
            ...

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Optional

from jobhealth.completion import CompletionStatus, status_label
from jobhealth.formatting import format_nanoseconds
from jobhealth.sink import Kvs, Sink

logger = logging.getLogger(__name__)

# Raised by broken writers; ValueError covers writes to a closed file
WRITER_ERRORS = (OSError, ValueError)


def _merge_kvs(*layers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge kvs mappings; later layers win."""
    merged: Dict[str, str] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


class Stream:
    """Sends every record to all registered sinks."""

    def __init__(self, sinks: Optional[List[Sink]] = None):
        self.sinks: List[Sink] = list(sinks or [])
        self.kvs: Dict[str, str] = {}

    def add_sink(self, sink: Sink) -> None:
        self.sinks.append(sink)

    def key_value(self, key: str, value: str) -> None:
        """Attach a kv to every job created from now on."""
        self.kvs[key] = value

    def job(self, name: str) -> "Job":
        return Job(self, name)

    def emit_event(self, job: str, event: str, kvs: Kvs = None) -> None:
        for sink in self.sinks:
            try:
                sink.emit_event(job, event, kvs)
            except WRITER_ERRORS as e:
                self._log_sink_failure(sink, e)

    def emit_event_err(
        self, job: str, event: str, err: BaseException, kvs: Kvs = None
    ) -> None:
        for sink in self.sinks:
            try:
                sink.emit_event_err(job, event, err, kvs)
            except WRITER_ERRORS as e:
                self._log_sink_failure(sink, e)

    def emit_timing(
        self, job: str, event: str, duration_ns: int, kvs: Kvs = None
    ) -> None:
        # Malformed durations are the caller's error, not a sink failure
        format_nanoseconds(duration_ns)
        for sink in self.sinks:
            try:
                sink.emit_timing(job, event, duration_ns, kvs)
            except WRITER_ERRORS as e:
                self._log_sink_failure(sink, e)

    def emit_job_completion(
        self, job: str, status: CompletionStatus, duration_ns: int, kvs: Kvs = None
    ) -> None:
        status_label(status)
        format_nanoseconds(duration_ns)
        for sink in self.sinks:
            try:
                sink.emit_job_completion(job, status, duration_ns, kvs)
            except WRITER_ERRORS as e:
                self._log_sink_failure(sink, e)

    @staticmethod
    def _log_sink_failure(sink: Sink, error: Exception) -> None:
        logger.error(f"Sink {type(sink).__name__} failed to write: {error}")


class Job:
    """A named unit of work reporting to a Stream."""

    def __init__(self, stream: Stream, name: str):
        self.stream = stream
        self.name = name
        self.kvs: Dict[str, str] = dict(stream.kvs)
        self.start_ns = time.monotonic_ns()
        self.completed = False

    def key_value(self, key: str, value: str) -> None:
        self.kvs[key] = value

    def event(self, event: str, kvs: Kvs = None) -> None:
        self.stream.emit_event(self.name, event, _merge_kvs(self.kvs, kvs))

    def event_err(self, event: str, err: BaseException, kvs: Kvs = None) -> BaseException:
        """Report an error and hand it back, so callers can ``raise job.event_err(...)``."""
        self.stream.emit_event_err(self.name, event, err, _merge_kvs(self.kvs, kvs))
        return err

    def timing(self, event: str, duration_ns: int, kvs: Kvs = None) -> None:
        self.stream.emit_timing(self.name, event, duration_ns, _merge_kvs(self.kvs, kvs))

    @contextmanager
    def timed(self, event: str, kvs: Kvs = None) -> Iterator[None]:
        """Time the enclosed block and report it, even when it raises."""
        start = time.monotonic_ns()
        try:
            yield
        finally:
            self.timing(event, time.monotonic_ns() - start, kvs)

    def complete(self, status: CompletionStatus, kvs: Kvs = None) -> None:
        """Report the job outcome with the time elapsed since the job started."""
        duration_ns = time.monotonic_ns() - self.start_ns
        self.stream.emit_job_completion(
            self.name, status, duration_ns, _merge_kvs(self.kvs, kvs)
        )
        self.completed = True

    def __enter__(self) -> "Job":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.completed:
            return False
        if exc is None:
            self.complete(CompletionStatus.SUCCESS)
        else:
            self.event_err("exception", exc)
            self.complete(CompletionStatus.ERROR)
        return False
