"""
jobhealth - job instrumentation rendered as plain text log lines.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from jobhealth.completion import (
    COMPLETION_STATUS_LABELS,
    CompletionStatus,
    UnknownCompletionStatusError,
    status_label,
)
from jobhealth.formatting import format_nanoseconds, render_kvs
from jobhealth.sink import LockedWriter, LogfileWriterSink, ShortWriteError, Sink
from jobhealth.stream import Job, Stream

__version__ = "0.1.0"

__all__ = [
    "COMPLETION_STATUS_LABELS",
    "CompletionStatus",
    "Job",
    "LockedWriter",
    "LogfileWriterSink",
    "ShortWriteError",
    "Sink",
    "Stream",
    "UnknownCompletionStatusError",
    "format_nanoseconds",
    "render_kvs",
    "status_label",
]
