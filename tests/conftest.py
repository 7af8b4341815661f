from __future__ import annotations

import pytest

from helpers import make_blocks, make_character
from sales.store import clear_sessions


@pytest.fixture(autouse=True)
def _clean_store():
    clear_sessions()
    yield
    clear_sessions()


@pytest.fixture
def character():
    return make_character()


@pytest.fixture
def blocks():
    return make_blocks()
