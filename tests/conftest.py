"""Shared fixtures for the Smart Stairs test suite."""
import sys
import os
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from smart_stairs import DEFAULT_CONFIG, DEFAULT_RUNS
from stair_run import Run


@pytest.fixture
def default_config():
    """Returns a copy of the default stair configuration."""
    return DEFAULT_CONFIG.copy()


@pytest.fixture
def default_runs():
    """Returns a copy of the default L-shaped run points."""
    return [list(run) for run in DEFAULT_RUNS]


@pytest.fixture
def north_run():
    """Compliant run climbing along +Y: 9 steps, slope 0.5."""
    return Run((0, 0, 0), (0, 100, 50), width=40)


@pytest.fixture
def east_run():
    """Compliant run along +X starting right of the north run's top."""
    return Run((30, 120, 50), (130, 120, 100), width=40)


@pytest.fixture
def south_run():
    """Run coming back down the left of the north run (switchback)."""
    return Run((-50, 100, 50), (-50, 0, 100), width=40)
