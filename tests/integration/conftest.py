"""Integration test fixtures - disable autouse fixtures from root conftest."""
import pytest


@pytest.fixture(autouse=True)
def reset_environment_for_tests():
    """Override the autouse fixture from root conftest to do nothing.

    Integration tests need to use the real QASE_API_TOKEN and QASE_API_URL,
    which the root conftest fixture clears.
    """
    pass  # Do nothing - let real env vars through
