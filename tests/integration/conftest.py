"""Integration test configuration and fixtures."""

import os
import uuid
from typing import Generator

import httpx
import pytest

from avrocache import ConfluentClient, RegistryConfig

REGISTRY_URL = os.getenv("SCHEMA_REGISTRY_URL", "http://localhost:8081")


def pytest_configure(config):
    """Register integration test marker."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests requiring a schema registry"
    )


def pytest_runtest_setup(item):
    """Skip integration tests if the schema registry is not available."""
    if "integration" in [mark.name for mark in item.iter_markers()]:
        if not is_registry_available():
            pytest.skip(f"Schema registry not available on {REGISTRY_URL}")


def is_registry_available() -> bool:
    """Check if a schema registry answers on REGISTRY_URL."""
    try:
        response = httpx.get(f"{REGISTRY_URL}/subjects", timeout=5.0)
    except httpx.HTTPError:
        return False
    return response.status_code == 200


@pytest.fixture
def registry_config() -> RegistryConfig:
    """Configuration for the local schema registry."""
    return RegistryConfig(base_url=REGISTRY_URL)


@pytest.fixture
def registry_client(registry_config: RegistryConfig) -> Generator[ConfluentClient, None, None]:
    """Registry client for integration tests."""
    with ConfluentClient(registry_config) as client:
        yield client


@pytest.fixture
def subject(registry_client: ConfluentClient) -> Generator[str, None, None]:
    """Unique subject for test isolation, deleted afterwards."""
    name = f"test-event-{uuid.uuid4().hex[:8]}-value"
    yield name
    if name in registry_client.subjects():
        registry_client.delete_subject(name)
