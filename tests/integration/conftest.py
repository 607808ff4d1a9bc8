"""Pytest configuration and fixtures for integration tests.

Loads .env and skips the whole suite unless a live substitution catalog
is configured.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load environment variables from the project .env before collection."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)


@pytest.fixture(scope="session", autouse=True)
def check_catalog_url():
    """Skip integration tests when CATALOG_URL is not configured."""
    if not os.getenv("CATALOG_URL"):
        pytest.skip(
            "Integration tests skipped. Set CATALOG_URL (and CATALOG_API_KEY) in your .env file.",
            allow_module_level=True,
        )
