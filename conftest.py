"""Shared pytest fixtures for the marketplace and vendor tests."""

import pytest


@pytest.fixture(autouse=True)
def fresh_services():
    """Every test starts with an empty query cache and newly built services."""
    from infrastructure.container import container
    from marketplace.services import reset_query_cache

    reset_query_cache()
    container.reset()
    yield
    container.reset()
