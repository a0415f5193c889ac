import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    # The CLI reconfigures structlog globally; each test starts from defaults
    yield
    structlog.reset_defaults()
