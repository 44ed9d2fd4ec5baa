import pytest

from helpers import build_table


@pytest.fixture
def table():
    return build_table
