import pytest

from tests.unit.fakes import FakeDriver


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()
