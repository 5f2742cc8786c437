"""
Configuration loader for jobhealth.

Loads and validates YAML configuration files.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "jobhealth.yml"

# log_file value meaning standard output
STDOUT_MARKER = "-"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, tries ~/jobhealth.yml
            then ./jobhealth.yml

    Returns:
        Dictionary containing configuration

    Raises:
        FileNotFoundError: If config file not found
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path:
        path = Path(config_path).expanduser()
    else:
        home_config = Path.home() / CONFIG_FILENAME
        local_config = Path.cwd() / CONFIG_FILENAME

        if home_config.exists():
            path = home_config
        elif local_config.exists():
            path = local_config
        else:
            raise FileNotFoundError(
                "No config file found. Tried:\n"
                f"  - {home_config}\n"
                f"  - {local_config}\n"
                "Use --config to specify a custom location."
            )

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error parsing config file {path}: {e}")

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise yaml.YAMLError(
            f"Error parsing config file {path}: expected a mapping, got {type(config).__name__}"
        )

    if isinstance(config.get("log_file"), str) and config["log_file"] != STDOUT_MARKER:
        config["log_file"] = str(Path(config["log_file"]).expanduser())

    from jobhealth.validation import validate_config
    issues = validate_config(config)
    if issues:
        logger.warning("Configuration validation warnings:")
        for issue in issues:
            logger.warning(f"  - {issue}")

    return config


def get_log_file(config: Dict[str, Any]) -> Optional[Path]:
    """
    Get the log destination from config.

    Returns:
        Path to append records to, or None for standard output
    """
    log_file = config.get("log_file")
    if not isinstance(log_file, str) or log_file in ("", STDOUT_MARKER):
        return None
    return Path(log_file).expanduser()


def get_stream_kvs(config: Dict[str, Any]) -> Dict[str, str]:
    """Get stream-level kvs from config, with values coerced to strings."""
    kvs = config.get("kvs") or {}
    if not isinstance(kvs, dict):
        return {}
    return {str(k): str(v) for k, v in kvs.items()}
