import os
import sys

import pytest


# Allow running pytest from the repo root or from within `tests/` without
# installing the project: tests import `core` and `config` directly.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


@pytest.fixture
def directory():
    from fake_directory import FakeDirectory
    return FakeDirectory()
