"""
Pytest configuration and shared fixtures.
"""

import logging

import pytest

from hlsgrab.models.config import DownloadConfig


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="hlsgrab")


@pytest.fixture
def make_config(tmp_path):
    """Factory for validated configs rooted in a temporary directory."""

    def _make(**overrides) -> DownloadConfig:
        values = {
            "output_dir": str(tmp_path / "out"),
            "config_path": str(tmp_path),
            "base_delay": 0.01,
        }
        values.update(overrides)
        return DownloadConfig(**values)

    return _make
