# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Configuration validation for jobhealth.

Validates YAML configuration structure and provides helpful error messages.
"""

import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

VALID_TOP_LEVEL_KEYS = {"log_file", "kvs"}

# Characters that make kvs ambiguous to split back apart
RESERVED_KV_CHARS = (":", " ", "]")


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration structure and return list of warnings.

    Args:
        config: Configuration dictionary loaded from YAML

    Returns:
        List of warning messages (empty if valid)
    """
    issues = []

    if not isinstance(config, dict):
        return [f"Config must be a dictionary, got {type(config).__name__}"]

    unknown_keys = set(config.keys()) - VALID_TOP_LEVEL_KEYS
    if unknown_keys:
        issues.append(
            f"Unknown top-level config keys: {', '.join(sorted(map(str, unknown_keys)))}. "
            f"Valid keys are: {', '.join(sorted(VALID_TOP_LEVEL_KEYS))}"
        )

    if "log_file" in config and not isinstance(config["log_file"], str):
        issues.append(
            f"'log_file' must be a string, got {type(config['log_file']).__name__}"
        )

    if "kvs" in config:
        issues.extend(_validate_kvs(config["kvs"]))

    return issues


def _validate_kvs(kvs: Any) -> List[str]:
    """Check stream-level kvs for type and delimiter problems."""
    if kvs is None:
        return []
    if not isinstance(kvs, dict):
        return [f"'kvs' must be a dictionary, got {type(kvs).__name__}"]

    issues = []
    for key, value in kvs.items():
        for part in (str(key), str(value)):
            if any(ch in part for ch in RESERVED_KV_CHARS):
                issues.append(
                    f"kvs.{key}: '{part}' contains a reserved character "
                    f"({' '.join(repr(c) for c in RESERVED_KV_CHARS)})"
                )
                break
    return issues
