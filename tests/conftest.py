"""Shared fixtures for the test suite."""

import sys
from pathlib import Path

import pytest

# Add the repository root to the path so absolute imports work
# (tests/ is inside the root, so parent is the root)
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from protocol.config import StarkConfig  # noqa: E402
from protocol.pcs import FriPcs, FriPcsConfig  # noqa: E402
from tests.helpers import TEST_NUM_QUERIES, make_config  # noqa: E402


@pytest.fixture
def config() -> StarkConfig:
    return make_config()


@pytest.fixture
def pcs() -> FriPcs:
    return FriPcs(FriPcsConfig(num_queries=TEST_NUM_QUERIES))
