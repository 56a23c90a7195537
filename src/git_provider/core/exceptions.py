"""Exception taxonomy shared by every provider adapter."""

from typing import Optional

from git_provider.utils import get_logger

logger = get_logger(__name__)


class GitProviderError(Exception):
    """Base exception for git provider adapters.

    ``status_code`` and ``details`` carry the provider's original HTTP status
    and error body when the failure came from the provider.
    """

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.status_code = status_code

        logger.error(f"Exception raised: {message}")
        if details:
            logger.debug(f"Exception details: {details}")


class ConfigurationError(GitProviderError):
    """Raised when there's a configuration problem."""
    pass


class ValidationError(GitProviderError):
    """Raised when a required input is missing or malformed."""
    pass


class AuthError(GitProviderError):
    """Raised when an access token is expired or invalid."""
    pass


class AuthExchangeError(AuthError):
    """Raised when an authorization code cannot be exchanged for tokens."""
    pass


class AuthRefreshError(AuthError):
    """Raised when a refresh token is rejected; the tenant must re-authorize."""
    pass


class AccessPermissionError(GitProviderError):
    """Raised when lacking required permissions."""
    pass


class NotFoundError(GitProviderError):
    """Raised when a resource is not found."""
    pass


class ConflictError(GitProviderError):
    """Raised when a resource already exists or its state conflicts."""
    pass


class MappingError(GitProviderError):
    """Raised when a provider payload lacks a field the canonical entity needs."""
    pass


class UnsupportedOperationError(GitProviderError):
    """Raised when the provider has no equivalent for an operation."""
    pass


class APIError(GitProviderError):
    """Raised when API calls fail."""
    pass


class RateLimitError(APIError):
    """Raised when hitting rate limits."""

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        details: Optional[str] = None
    ):
        super().__init__(message, details=details, status_code=429)
        self.reset_at = reset_at
