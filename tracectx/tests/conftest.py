import pytest

from tracectx.config import reset_config


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from the default, freshly loaded config."""
    reset_config()
    yield
    reset_config()
