"""Shared pytest configuration."""

import pytest
import structlog


@pytest.fixture(autouse=True, scope="session")
def quiet_structlog():
    """Keep dispatcher logs out of stdout so CLI output stays parseable."""
    structlog.configure(
        processors=[structlog.processors.KeyValueRenderer()],
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()
