import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"


class StubBuilder:
    """Minimal object exposing build(), standing in for a nested query."""

    def __init__(self, sql):
        self.sql = sql

    def build(self):
        return self.sql


@pytest.fixture
def stub_builder():
    return StubBuilder
