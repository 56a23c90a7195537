"""
Base adapter interface for git hosting providers.
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict
from dataclasses import dataclass
from enum import Enum

from git_provider.core.models import (
    OAuthCredential,
    CurrentUser,
    PaginatedGitGroup,
    PaginatedRepos,
    RemoteRepository,
    Branch,
    Commit,
    PullRequest,
    GitFile,
    Bot,
)
from git_provider.core.exceptions import ValidationError
from git_provider.utils import get_logger

logger = get_logger(__name__)


class PlatformType(Enum):
    """Supported git hosting providers."""
    BITBUCKET = "bitbucket"
    GITHUB = "github"
    GITLAB = "gitlab"


@dataclass
class AdapterConfig:
    """Configuration for adapter instances."""
    platform: PlatformType
    client_id: str
    client_secret: str
    api_base_url: str
    oauth_base_url: str
    clone_host: str
    timeout: int = 30
    verify_ssl: bool = True
    refresh_lead_seconds: int = 300
    default_page_size: int = 30
    custom_headers: Optional[Dict[str, str]] = None

    def __repr__(self) -> str:
        return (
            f"AdapterConfig(platform={self.platform.value}, "
            f"api_base_url={self.api_base_url}, client_id={self.client_id})"
        )


class BaseAdapter(ABC):
    """
    Canonical git provider contract.

    Each provider implements every operation below against its own API.
    Group-scoped operations take the provider's group identifier (organization,
    workspace) and reject a missing one before any network call.
    """

    def __init__(self, config: AdapterConfig):
        """
        Initialize the adapter.

        Args:
            config: Adapter configuration
        """
        self.config = config
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self.logger.info(f"Initializing {self.__class__.__name__}")

    @property
    def platform(self) -> PlatformType:
        return self.config.platform

    @abstractmethod
    def get_installation_url(self, tenant_id: str) -> str:
        """
        Build the provider's OAuth authorize URL.

        Args:
            tenant_id: Opaque value echoed back as OAuth ``state``

        Returns:
            URL the user is sent to
        """
        pass

    @abstractmethod
    async def exchange_code(self, code: str) -> OAuthCredential:
        """
        Exchange a single-use authorization code for a token pair.

        Raises:
            AuthExchangeError: If the code is invalid or expired
        """
        pass

    @abstractmethod
    async def refresh(self, refresh_token: str) -> OAuthCredential:
        """
        Exchange a refresh token for a new token pair.

        The provider may rotate the refresh token, so callers must persist
        the returned credential.

        Raises:
            AuthRefreshError: If the refresh token was revoked
        """
        pass

    @abstractmethod
    async def get_current_user(self, access_token: str) -> CurrentUser:
        """
        Get the user owning ``access_token``.

        Raises:
            AuthError: If the token is expired or invalid
        """
        pass

    @abstractmethod
    async def list_groups(self, cursor: Optional[str] = None) -> PaginatedGitGroup:
        """
        List one page of groups the user belongs to.

        Args:
            cursor: ``next``/``previous`` value of an earlier page, or None
                for the first page
        """
        pass

    @abstractmethod
    async def get_organization(self):
        """
        Get the installation organization.

        Raises:
            UnsupportedOperationError: On providers without that concept
        """
        pass

    @abstractmethod
    async def get_repository(self, group_id: str, repo_name: str) -> RemoteRepository:
        """
        Get a repository.

        Raises:
            ValidationError: If ``group_id`` is missing
            NotFoundError: If the repository doesn't exist
        """
        pass

    @abstractmethod
    async def list_repositories(
        self,
        group_id: str,
        page: int = 1,
        limit: Optional[int] = None
    ) -> PaginatedRepos:
        """
        List one page of repositories in a group.

        Raises:
            ValidationError: If ``group_id`` is missing
        """
        pass

    @abstractmethod
    async def create_repository(
        self,
        group_id: str,
        name: str,
        private: bool,
        owner_group_name: str
    ) -> RemoteRepository:
        """
        Create a repository named ``{owner_group_name}/{name}``.

        Raises:
            ValidationError: If ``group_id`` is missing
            ConflictError: If the name is taken in the group
        """
        pass

    @abstractmethod
    async def delete_installation(self) -> bool:
        """Revoke whatever the provider keeps for this installation."""
        pass

    @abstractmethod
    async def get_file(
        self,
        group_id: str,
        repo_name: str,
        path: str,
        ref: Optional[str] = None
    ) -> Optional[GitFile]:
        """
        Read a file.

        Args:
            group_id: Group owning the repository
            repo_name: Repository name
            path: File path inside the repository
            ref: Branch, tag or commit; the default branch when omitted

        Returns:
            The file, or None if the path does not exist

        Raises:
            ValidationError: If ``group_id`` is missing or ``path`` is a directory
        """
        pass

    @abstractmethod
    async def create_pull_request_from_files(self, *args, **kwargs) -> str:
        """
        Commit files and open a pull request in one step.

        Raises:
            UnsupportedOperationError: On providers without a one-step flow
        """
        pass

    @abstractmethod
    async def get_pull_request_for_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str
    ) -> Optional[PullRequest]:
        """
        Find the open pull request whose source branch is ``branch_name``.

        Returns:
            The first match, or None when none is open
        """
        pass

    @abstractmethod
    async def create_pull_request(
        self,
        group_id: str,
        repo_name: str,
        source_branch: str,
        target_branch: str,
        title: str,
        body: str
    ) -> PullRequest:
        """
        Open a pull request.

        Raises:
            ConflictError: If an identical pull request is already open
        """
        pass

    @abstractmethod
    async def get_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str
    ) -> Optional[Branch]:
        """
        Get a branch.

        Returns:
            The branch, or None if it does not exist
        """
        pass

    @abstractmethod
    async def create_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str,
        pointing_sha: str
    ) -> Branch:
        """
        Create a branch at ``pointing_sha``.

        Raises:
            ConflictError: If the branch exists
            ValidationError: If ``pointing_sha`` is not a commit of the repository
        """
        pass

    @abstractmethod
    async def get_first_commit_on_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str
    ) -> Commit:
        """Get the oldest commit reachable from the branch tip."""
        pass

    @abstractmethod
    def get_clone_url(self, group_id: str, repo_name: str) -> str:
        """
        Build an HTTPS clone URL carrying the current access token.

        The result is a secret and must not be logged or persisted.
        """
        pass

    @abstractmethod
    async def create_pull_request_comment(
        self,
        group_id: str,
        repo_name: str,
        pull_request_number: int,
        body: str
    ) -> None:
        """
        Comment on a pull request.

        Raises:
            NotFoundError: If the pull request doesn't exist
        """
        pass

    @abstractmethod
    async def get_bot_identity(self) -> Optional[Bot]:
        """Get the provider bot account, or None if the provider has none."""
        pass

    async def aclose(self) -> None:
        """Release network resources. Override if the adapter holds any."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def require_group(self, group_id: Optional[str]) -> str:
        """
        Reject a missing group identifier.

        Raises:
            ValidationError: If ``group_id`` is empty
        """
        if not group_id:
            self.logger.error("Missing group id")
            raise ValidationError(
                f"Missing group id; it is mandatory for the {self.platform.value} provider"
            )
        return group_id

    def __repr__(self) -> str:
        """String representation of adapter."""
        return (
            f"{self.__class__.__name__}("
            f"platform={self.config.platform.value}, "
            f"api_base_url={self.config.api_base_url})"
        )
