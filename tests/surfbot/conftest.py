import pytest

from fakes import FakeConnection, FakeConnector


@pytest.fixture
def make_connector():
    def factory(messages: list) -> FakeConnector:
        return FakeConnector(FakeConnection(messages))

    return factory
