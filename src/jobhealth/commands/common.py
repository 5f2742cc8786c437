# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Helpers shared by the emit and run commands.
"""

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO

from jobhealth.config import get_stream_kvs

logger = logging.getLogger(__name__)


def parse_kv_options(pairs: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse repeated --kv key=value options.

    Raises:
        ValueError: If a pair has no '=' or an empty key
    """
    kvs: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid --kv '{pair}'. Expected key=value")
        kvs[key] = value
    return kvs


def command_kvs(state: Dict[str, Any], pairs: Optional[List[str]]) -> Dict[str, str]:
    """Config kvs overlaid with kvs given on the command line."""
    kvs = get_stream_kvs(state.get("config", {}))
    kvs.update(parse_kv_options(pairs))
    return kvs


@contextmanager
def open_destination(log_file: Optional[Path]) -> Iterator[TextIO]:
    """
    Yield the writer records should go to.

    Standard output is used as-is and left open; a log file is opened for
    appending and closed on exit.
    """
    if log_file is None:
        yield sys.stdout
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Appending to: {log_file}")
    with open(log_file, "a", encoding="utf-8") as f:
        yield f
