import pytest

from reelrank.core.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)
