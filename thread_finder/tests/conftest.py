import pytest

from thread_finder.config import Config
from thread_finder.tests.fakes import fast_config


@pytest.fixture
def config() -> Config:
    return fast_config()
