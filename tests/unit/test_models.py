"""Tests for canonical models, lookup results and exceptions."""

import dataclasses

import pytest

from git_provider.core import (
    OAuthCredential,
    RemoteRepository,
    Branch,
    Page,
    PaginatedRepos,
    Found,
    NotFound,
    NOT_FOUND,
    ValidationError,
    AuthError,
    AuthRefreshError,
    AuthExchangeError,
    GitProviderError,
    RateLimitError,
    APIError,
)
from git_provider.core.models import now_ms


class TestOAuthCredential:
    """Test the OAuth credential value object."""

    def test_requires_access_token(self):
        """Test that an empty access token is rejected."""
        with pytest.raises(ValidationError):
            OAuthCredential(access_token="", refresh_token="r", expires_at=now_ms())

    def test_expiry(self):
        """Test expiry checks against a given instant."""
        credential = OAuthCredential(access_token="a", refresh_token="r", expires_at=1_000)

        assert credential.is_expired(at_ms=1_000) is True
        assert credential.is_expired(at_ms=999) is False

    def test_repr_hides_tokens(self):
        """Test that tokens never show up in the representation."""
        credential = OAuthCredential(access_token="secret-a", refresh_token="secret-r", expires_at=1)

        assert "secret" not in repr(credential)

    def test_is_immutable(self):
        """Test that credentials cannot be mutated."""
        credential = OAuthCredential(access_token="a", refresh_token="r", expires_at=1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            credential.access_token = "b"


class TestEntities:
    """Test canonical entities."""

    def test_entities_are_immutable(self):
        """Test that mapped entities are frozen."""
        branch = Branch(name="main", sha="abc")

        with pytest.raises(dataclasses.FrozenInstanceError):
            branch.sha = "def"

    def test_paginated_repos_exposes_page_fields(self):
        """Test the shortcut properties of a page of repositories."""
        repo = RemoteRepository(
            name="service",
            url="https://bitbucket.org/acme/service",
            private=True,
            full_name="acme/service",
            admin=False,
            default_branch="main",
        )
        page = PaginatedRepos(page=Page(total=11, page=2, page_size=10, next="n", previous="p"), repos=[repo])

        assert page.total == 11
        assert page.next == "n"
        assert page.previous == "p"
        assert page.page.has_next is True


class TestLookupResults:
    """Test Found/NotFound results."""

    def test_not_found_is_singleton_and_falsy(self):
        """Test the NOT_FOUND sentinel."""
        assert NotFound() is NOT_FOUND
        assert not NOT_FOUND
        assert repr(NOT_FOUND) == "NOT_FOUND"

    def test_found_carries_value(self):
        """Test that Found wraps the payload."""
        found = Found({"name": "main"})

        assert found.value == {"name": "main"}
        assert not isinstance(found, NotFound)


class TestExceptions:
    """Test the exception hierarchy."""

    def test_auth_errors_share_base(self):
        """Test that exchange and refresh failures are auth errors."""
        assert issubclass(AuthExchangeError, AuthError)
        assert issubclass(AuthRefreshError, AuthError)
        assert issubclass(AuthError, GitProviderError)

    def test_provider_context_is_kept(self):
        """Test that status and body are attached for diagnostics."""
        error = APIError("boom", details='{"error": {}}', status_code=502)

        assert error.status_code == 502
        assert error.details == '{"error": {}}'
        assert str(error) == "boom"

    def test_rate_limit_error(self):
        """Test rate limit error defaults."""
        error = RateLimitError("slow down", reset_at=30)

        assert error.status_code == 429
        assert error.reset_at == 30
        assert isinstance(error, APIError)
