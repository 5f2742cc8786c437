# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Pytest configuration and shared fixtures."""

import io
import tempfile
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from jobhealth.sink import LogfileWriterSink


class SampleError(Exception):
    """Error with a fixed message used across tests."""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def buffer():
    """Text buffer standing in for a log file."""
    return io.StringIO()


@pytest.fixture
def sink(buffer):
    """Sink writing into the text buffer."""
    return LogfileWriterSink(buffer)


@pytest.fixture
def sample_error():
    return SampleError("my test error")


@pytest.fixture
def some_kvs() -> Dict[str, str]:
    return {"wat": "ok", "another": "thing"}


@pytest.fixture
def sample_config(temp_dir) -> Dict[str, Any]:
    """Sample configuration for testing."""
    return {
        "log_file": str(temp_dir / "logs" / "health.log"),
        "kvs": {"host": "web-1", "env": "test"},
    }


@pytest.fixture
def config_file(temp_dir, sample_config):
    """Create a temporary config file."""
    config_path = temp_dir / "jobhealth.yml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path
