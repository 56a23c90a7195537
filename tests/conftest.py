"""
Shared test fixtures and configuration for pytest.
This file is automatically discovered by pytest.
"""

import pytest

from git_provider.adapters.base import AdapterConfig, PlatformType
from git_provider.adapters.bitbucket import BitbucketAdapter
from git_provider.core import InMemoryCredentialStore, OAuthCredential
from git_provider.core.models import now_ms
from git_provider.config import Settings

from tests.utils import API, OAUTH, FakeBitbucket

TENANT = "tenant-1"


@pytest.fixture
def adapter_config():
    """Adapter configuration pointing at the real Bitbucket hosts."""
    return AdapterConfig(
        platform=PlatformType.BITBUCKET,
        client_id="consumer-key",
        client_secret="consumer-secret",
        api_base_url=API,
        oauth_base_url=OAUTH,
        clone_host="bitbucket.org",
        refresh_lead_seconds=60,
        default_page_size=10,
    )


@pytest.fixture
def fresh_credential():
    """Credential valid for another hour."""
    return OAuthCredential(
        access_token="access-0",
        refresh_token="refresh-0",
        expires_at=now_ms() + 3600 * 1000,
        scopes=("repository",),
    )


@pytest.fixture
def expired_credential():
    """Credential that expired a minute ago."""
    return OAuthCredential(
        access_token="access-0",
        refresh_token="refresh-0",
        expires_at=now_ms() - 60 * 1000,
    )


@pytest.fixture
def store(fresh_credential):
    """Credential store seeded with a fresh credential."""
    return InMemoryCredentialStore({TENANT: fresh_credential})


@pytest.fixture
def fake():
    """Fake Bitbucket API."""
    return FakeBitbucket()


@pytest.fixture
def adapter(adapter_config, store, fresh_credential, fake):
    """Bitbucket adapter wired to the fake API."""
    return BitbucketAdapter(
        adapter_config,
        TENANT,
        store,
        credential=fresh_credential,
        http_client=fake.client(),
    )


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary config file for testing."""
    config_content = """
app:
  name: "Test Git Provider Adapter"
  debug: true
  log_level: "DEBUG"

bitbucket:
  timeout: 45
  default_page_size: 50
"""
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content)
    return config_file


@pytest.fixture
def mock_settings():
    """Create a Settings object for testing."""
    return Settings()


# Pytest configuration hooks
def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
