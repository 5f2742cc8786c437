# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Completion statuses for job runs.

Each status is bound to exactly one label, looked up from a fixed table.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class CompletionStatus(Enum):
    """Terminal outcome of a job run."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    PANIC = "panic"
    ERROR = "error"
    JUNK = "junk"


class UnknownCompletionStatusError(KeyError):
    """Raised when a status outside CompletionStatus is looked up."""

    def __init__(self, status: object):
        self.status = status
        super().__init__(
            f"Unknown completion status {status!r}. "
            f"Allowed: {sorted(COMPLETION_STATUS_LABELS.values())}"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


# Read-only for the life of the process
COMPLETION_STATUS_LABELS: Mapping[CompletionStatus, str] = MappingProxyType(
    {status: status.value for status in CompletionStatus}
)

_STATUSES_BY_LABEL: Mapping[str, CompletionStatus] = MappingProxyType(
    {label: status for status, label in COMPLETION_STATUS_LABELS.items()}
)


def status_label(status: CompletionStatus) -> str:
    """Return the canonical label for a completion status.

    Raises UnknownCompletionStatusError for anything that is not a
    CompletionStatus member, including plain strings.
    """
    if not isinstance(status, CompletionStatus):
        raise UnknownCompletionStatusError(status)
    try:
        return COMPLETION_STATUS_LABELS[status]
    except KeyError:
        raise UnknownCompletionStatusError(status) from None


def parse_status(label: str) -> CompletionStatus:
    """Return the status whose label is ``label`` (case-insensitive)."""
    try:
        return _STATUSES_BY_LABEL[label.strip().lower()]
    except (KeyError, AttributeError):
        raise UnknownCompletionStatusError(label) from None
