"""Core functionality shared by all provider adapters."""

from .models import (
    OAuthCredential,
    CurrentUser,
    RemoteGitGroup,
    RemoteRepository,
    Branch,
    Commit,
    PullRequest,
    GitFile,
    Bot,
    Page,
    PaginatedGitGroup,
    PaginatedRepos,
)

from .exceptions import (
    GitProviderError,
    ConfigurationError,
    ValidationError,
    AuthError,
    AuthExchangeError,
    AuthRefreshError,
    AccessPermissionError,
    NotFoundError,
    ConflictError,
    MappingError,
    UnsupportedOperationError,
    APIError,
    RateLimitError,
)

from .result import Found, NotFound, NOT_FOUND, Lookup
from .pagination import EnvelopeFields, BITBUCKET_ENVELOPE, normalize_page
from .credentials import (
    CredentialState,
    CredentialStore,
    InMemoryCredentialStore,
    TokenCell,
)

__all__ = [
    # Models
    "OAuthCredential",
    "CurrentUser",
    "RemoteGitGroup",
    "RemoteRepository",
    "Branch",
    "Commit",
    "PullRequest",
    "GitFile",
    "Bot",
    "Page",
    "PaginatedGitGroup",
    "PaginatedRepos",
    # Exceptions
    "GitProviderError",
    "ConfigurationError",
    "ValidationError",
    "AuthError",
    "AuthExchangeError",
    "AuthRefreshError",
    "AccessPermissionError",
    "NotFoundError",
    "ConflictError",
    "MappingError",
    "UnsupportedOperationError",
    "APIError",
    "RateLimitError",
    # Lookups
    "Found",
    "NotFound",
    "NOT_FOUND",
    "Lookup",
    # Pagination
    "EnvelopeFields",
    "BITBUCKET_ENVELOPE",
    "normalize_page",
    # Credentials
    "CredentialState",
    "CredentialStore",
    "InMemoryCredentialStore",
    "TokenCell",
]
