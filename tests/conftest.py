# tests/conftest.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Test configuration and shared fixtures for pytest

"""Test configuration and shared fixtures for Ballotrace tests.

The configuration handles:
- Python path setup for module imports
- Test environment initialization
- Common fixtures for models, engines and schedulers
"""

import sys
import pytest
from pathlib import Path

# Ensure project modules can be imported
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Verify that the project packages import before any test runs.

    Raises:
        pytest.skip: If required modules cannot be imported
    """
    try:
        import core
        import logic
        import model
        import parser
        import protocols
        import utils
    except ImportError as e:
        pytest.skip(f"Cannot import required modules: {e}")

    # keep test output to warnings and errors
    from utils import configure_logging

    configure_logging()

    yield


@pytest.fixture
def traces_dir() -> Path:
    """Directory holding the sample trace scripts."""
    return project_root / "traces"


@pytest.fixture
def voting_bundle():
    """A freshly built simple_voting model with its restrictions and queries."""
    from protocols import get_protocol

    return get_protocol("simple_voting")


@pytest.fixture
def voting_model(voting_bundle):
    return voting_bundle.model


@pytest.fixture
def voting_scheduler(voting_model):
    """Scheduler over simple_voting; Admin#1 already exists."""
    from core.scheduler import Scheduler

    return Scheduler(voting_model)


@pytest.fixture
def engine():
    """Term engine over the voting theory."""
    from core.term_engine import TermEngine
    from core.theories import voting_theory

    return TermEngine(voting_theory())
