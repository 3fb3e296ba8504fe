"""
Test configuration — repo root on sys.path, fixed clock, default policy.

Every test evaluates at tests.factories.NOW. Nothing reads the wall clock.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import nextmove.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from nextmove.policy import PlanningPolicy, default_policy  # noqa: E402
from tests.factories import NOW, TODAY  # noqa: E402


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def policy():
    """Built-in defaults, independent of config/planning_policy.yaml."""
    return PlanningPolicy()


@pytest.fixture(autouse=True)
def _policy_env(monkeypatch):
    """Keep an exported NEXTMOVE_POLICY_PATH from leaking into tests."""
    monkeypatch.delenv("NEXTMOVE_POLICY_PATH", raising=False)
    default_policy.cache_clear()
    yield
    default_policy.cache_clear()


@pytest.fixture(autouse=True)
def _reset_root_logger():
    """configure_logging() replaces root handlers; restore pytest's afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
