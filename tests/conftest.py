"""
Pytest configuration and fixtures for Failsim tests.
"""

import logging

import pytest
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import Config
from core.state import SimulationState
from core.stats import RunStats


@pytest.fixture
def state():
    """Fresh simulation state."""
    return SimulationState()


@pytest.fixture
def stats():
    """Fresh run statistics."""
    return RunStats()


@pytest.fixture
def fast_config():
    """Config with every wait shrunk so a whole run takes well under a second."""
    config = Config()
    config.set('write_count', 1000)
    config.set('write_interval', 0.01)
    config.set('read_interval', 0.01)
    config.set('retry_max_attempts', 3)
    config.set('retry_delay', 0.01)
    config.set('initial_wait', 0.05)
    config.set('failover_wait', 0.05)
    config.set('reelection_wait', 0.05)
    config.set('shutdown_timeout', 5)
    return config


@pytest.fixture(autouse=True)
def info_logging(caplog):
    """Capture INFO-level timeline lines in every test."""
    caplog.set_level(logging.INFO)
    yield
