"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For standard test utilities, see tests/__init__.py
"""

import pytest


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


@pytest.fixture(scope="session")
def test_db_url():
    """URL of an external test database, skipping when none is reachable."""
    from tests import check_db_available, get_test_db_url

    if not check_db_available():
        pytest.skip("Test database not available")
    return get_test_db_url()
