"""
Bitbucket Cloud adapter.

Bitbucket authenticates on behalf of the user with a plain OAuth2 consumer, so
there is no installed app to revoke and no bot account. Repositories are
grouped by workspace, which every repository-scoped call needs as its group id.
"""
from dataclasses import replace
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from git_provider.core.credentials import CredentialState, CredentialStore, TokenCell
from git_provider.core.exceptions import (
    AuthError,
    AuthExchangeError,
    AuthRefreshError,
    ConfigurationError,
    GitProviderError,
    NotFoundError,
    UnsupportedOperationError,
    ValidationError,
)
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
from git_provider.core.pagination import normalize_page, page_items
from git_provider.core.result import NotFound
from git_provider.utils import get_logger
from ..base import BaseAdapter, AdapterConfig
from . import mapper
from .api import BitbucketApi

logger = get_logger(__name__)

T = TypeVar("T")

# invalid_grant and invalid_client answers from the token endpoint
GRANT_REJECTED_STATUSES = (400, 401)


def _grant_rejected(error: GitProviderError) -> bool:
    return error.status_code in GRANT_REJECTED_STATUSES


class BitbucketAdapter(BaseAdapter):
    """
    Bitbucket-specific adapter implementation.

    One instance serves one tenant. Calls are independent and may run
    concurrently; they share only the tenant's ``TokenCell``.
    """

    def __init__(
        self,
        config: AdapterConfig,
        tenant_id: str,
        credential_store: CredentialStore,
        credential: Optional[OAuthCredential] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Bitbucket adapter.

        Args:
            config: Adapter configuration with the OAuth consumer key and secret
            tenant_id: Installation the credential belongs to
            credential_store: Where refreshed credentials are saved
            credential: Working credential, loaded from the store when omitted
            http_client: Client to send requests with; the adapter owns and
                closes one it creates itself

        Raises:
            ConfigurationError: If the consumer key or secret is missing
        """
        super().__init__(config)

        if not config.client_id or not config.client_secret:
            self.logger.error("Missing Bitbucket configuration")
            raise ConfigurationError("Missing Bitbucket configuration")

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(float(config.timeout)),
            verify=config.verify_ssl,
            headers={"Accept": "application/json", **(config.custom_headers or {})},
        )
        self.api = BitbucketApi(
            self._client,
            api_base_url=config.api_base_url,
            oauth_base_url=config.oauth_base_url,
            client_id=config.client_id,
            client_secret=config.client_secret,
        )
        self.tokens = TokenCell(
            tenant_id,
            credential_store,
            refresher=self.refresh,
            lead_seconds=config.refresh_lead_seconds,
        )
        if credential is not None:
            self.tokens.reset(credential)

        logger.info("BitbucketAdapter initialized successfully")

    async def init(self) -> None:
        self.logger.info(f"BitbucketAdapter ready for tenant {self.tokens.tenant_id}")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _authorized(self, request: Callable[..., Awaitable[T]], *args) -> T:
        """
        Call ``request(*args, access_token)``.

        When the token is rejected the cell refreshes it (once across all
        concurrent callers) and the call is re-issued with the new token.
        """
        access_token = await self.tokens.access_token()
        try:
            return await request(*args, access_token)
        except (AuthExchangeError, AuthRefreshError):
            raise
        except AuthError:
            self.logger.info("Access token rejected, refreshing")
            credential = await self.tokens.refresh(access_token)
            return await request(*args, credential.access_token)

    # Authentication

    def get_installation_url(self, tenant_id: str) -> str:
        return self.api.authorize_url(tenant_id)

    async def exchange_code(self, code: str) -> OAuthCredential:
        """
        Exchange an authorization code for a token pair.

        Codes are single-use; a failed exchange is not retried. Only a
        rejected code is an ``AuthExchangeError``, other failures propagate
        unchanged. The new credential becomes this adapter's working
        credential, persisting it is up to the caller.
        """
        if not code:
            raise ValidationError("Missing authorization code")
        try:
            payload = await self.api.token({"grant_type": "authorization_code", "code": code})
        except GitProviderError as e:
            if not _grant_rejected(e):
                raise
            raise AuthExchangeError(
                f"Bitbucket rejected the authorization code: {e.message}",
                details=e.details,
                status_code=e.status_code,
            ) from e

        credential = mapper.to_credential(payload)
        self.tokens.reset(credential)
        self.logger.info("BitbucketAdapter: exchanged authorization code")
        return credential

    async def refresh(self, refresh_token: str) -> OAuthCredential:
        """
        Trade a refresh token for a new token pair.

        Raises:
            AuthRefreshError: If Bitbucket rejects the refresh token
            APIError: If the token endpoint fails for any other reason; the
                refresh token stays usable
        """
        if not refresh_token:
            raise AuthRefreshError("Missing refresh token; re-authorization is required")
        try:
            payload = await self.api.token({"grant_type": "refresh_token", "refresh_token": refresh_token})
        except GitProviderError as e:
            if not _grant_rejected(e):
                raise
            raise AuthRefreshError(
                f"Bitbucket rejected the refresh token: {e.message}",
                details=e.details,
                status_code=e.status_code,
            ) from e

        self.logger.info("BitbucketAdapter: refreshed access token")
        return mapper.to_credential(payload)

    async def get_current_user(self, access_token: str) -> CurrentUser:
        user = mapper.to_current_user(await self.api.current_user(access_token))
        self.logger.info(f"BitbucketAdapter: current user is {user.username}")
        return user

    # Groups and repositories

    async def list_groups(self, cursor: Optional[str] = None) -> PaginatedGitGroup:
        envelope = await self._authorized(self.api.workspaces, cursor)
        page = normalize_page(envelope)
        groups = [mapper.to_group(value) for value in page_items(envelope)]

        self.logger.info(f"BitbucketAdapter: listed {len(groups)} workspaces (page {page.page})")
        return PaginatedGitGroup(page=page, groups=groups)

    async def get_organization(self):
        raise UnsupportedOperationError("Bitbucket has no installation organization")

    async def get_repository(self, group_id: str, repo_name: str) -> RemoteRepository:
        workspace = self.require_group(group_id)
        payload = await self._authorized(self.api.repository, workspace, repo_name)
        return mapper.to_repository(payload)

    async def list_repositories(
        self,
        group_id: str,
        page: int = 1,
        limit: Optional[int] = None
    ) -> PaginatedRepos:
        workspace = self.require_group(group_id)
        limit = limit or self.config.default_page_size

        envelope = await self._authorized(self.api.repositories, workspace, page, limit)
        repos = [mapper.to_repository(value) for value in page_items(envelope)]

        self.logger.info(f"BitbucketAdapter: listed {len(repos)} repositories in {workspace}")
        return PaginatedRepos(
            page=normalize_page(envelope, requested_page=page, requested_page_size=limit),
            repos=repos,
        )

    async def create_repository(
        self,
        group_id: str,
        name: str,
        private: bool,
        owner_group_name: str
    ) -> RemoteRepository:
        workspace = self.require_group(group_id)
        body = {
            "scm": "git",
            "is_private": private,
            "name": name,
            "full_name": f"{owner_group_name}/{name}",
        }
        payload = await self._authorized(self.api.create_repository, workspace, name, body)

        repository = mapper.to_repository(payload)
        repository = replace(
            repository, url=f"https://{self.config.clone_host}/{repository.full_name}"
        )
        self.logger.info(f"BitbucketAdapter: created repository {repository.full_name}")
        return repository

    async def delete_installation(self) -> bool:
        # Access is granted per user; nothing is installed on Bitbucket's side
        return True

    # Files

    async def get_file(
        self,
        group_id: str,
        repo_name: str,
        path: str,
        ref: Optional[str] = None
    ) -> Optional[GitFile]:
        workspace = self.require_group(group_id)

        if not ref:
            ref = (await self.get_repository(workspace, repo_name)).default_branch

        meta = await self._authorized(self.api.file_meta, workspace, repo_name, ref, path)
        if isinstance(meta, NotFound):
            self.logger.info(f"BitbucketAdapter getFile: {path} not found at {ref}")
            return None

        if mapper.is_directory(meta.value):
            self.logger.error("BitbucketAdapter getFile: Path points to a directory, please provide a file path")
            raise ValidationError("Path points to a directory, please provide a file path")

        content = await self._authorized(self.api.file_content, workspace, repo_name, ref, path)
        if isinstance(content, NotFound):
            return None

        self.logger.info(f"BitbucketAdapter getFile: {path} at {ref}")
        return mapper.to_git_file(meta.value, content.value)

    # Pull requests

    async def create_pull_request_from_files(self, *args, **kwargs) -> str:
        raise UnsupportedOperationError("Bitbucket adapter cannot open a pull request from files")

    async def get_pull_request_for_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str
    ) -> Optional[PullRequest]:
        workspace = self.require_group(group_id)
        envelope = await self._authorized(
            self.api.pull_requests_from_branch, workspace, repo_name, branch_name
        )
        values = page_items(envelope)
        if not values:
            return None
        return mapper.to_pull_request(values[0])

    async def create_pull_request(
        self,
        group_id: str,
        repo_name: str,
        source_branch: str,
        target_branch: str,
        title: str,
        body: str
    ) -> PullRequest:
        workspace = self.require_group(group_id)
        data = {
            "title": title,
            "description": body,
            "source": {"branch": {"name": source_branch}},
            "destination": {"branch": {"name": target_branch}},
        }
        payload = await self._authorized(self.api.create_pull_request, workspace, repo_name, data)

        pull_request = mapper.to_pull_request(payload)
        self.logger.info(f"BitbucketAdapter: opened pull request #{pull_request.number} from {source_branch}")
        return pull_request

    async def create_pull_request_comment(
        self,
        group_id: str,
        repo_name: str,
        pull_request_number: int,
        body: str
    ) -> None:
        workspace = self.require_group(group_id)
        await self._authorized(
            self.api.create_pull_request_comment, workspace, repo_name, pull_request_number, body
        )
        self.logger.info(f"BitbucketAdapter: commented on pull request #{pull_request_number}")

    # Branches and commits

    async def get_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str
    ) -> Optional[Branch]:
        workspace = self.require_group(group_id)
        found = await self._authorized(self.api.branch, workspace, repo_name, branch_name)
        if isinstance(found, NotFound):
            return None
        return mapper.to_branch(found.value)

    async def create_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str,
        pointing_sha: str
    ) -> Branch:
        workspace = self.require_group(group_id)
        body = {"name": branch_name, "target": {"hash": pointing_sha}}
        created = await self._authorized(self.api.create_branch, workspace, repo_name, body)
        if isinstance(created, NotFound):
            raise ValidationError(
                f"Commit {pointing_sha} does not exist in {workspace}/{repo_name}"
            )

        branch = mapper.to_branch(created.value)
        self.logger.info(f"BitbucketAdapter: created branch {branch.name}")
        return branch

    async def get_first_commit_on_branch(
        self,
        group_id: str,
        repo_name: str,
        branch_name: str
    ) -> Commit:
        workspace = self.require_group(group_id)

        # History is listed newest first, so the oldest commit ends the last page
        oldest = None
        cursor = None
        while True:
            envelope = await self._authorized(
                self.api.commits, workspace, repo_name, branch_name, cursor
            )
            values = page_items(envelope)
            if values:
                oldest = values[-1]
            cursor = normalize_page(envelope).next
            if cursor is None:
                break

        if oldest is None:
            raise NotFoundError(f"Branch {branch_name} in {workspace}/{repo_name} has no commits")
        return mapper.to_commit(oldest)

    def get_clone_url(self, group_id: str, repo_name: str) -> str:
        """
        Build an HTTPS clone URL carrying the current access token.

        The URL embeds the token already held by the adapter; it does not load
        or refresh one. Await any other operation (or ``tokens.access_token()``)
        first so a fresh token is in place.

        Raises:
            AuthError: If no credential is loaded or it has expired
        """
        workspace = self.require_group(group_id)
        credential = self.tokens.credential
        if credential is None:
            raise AuthError("No credential loaded; cannot build an authenticated clone URL")
        if self.tokens.state() in (CredentialState.EXPIRED, CredentialState.FATAL):
            raise AuthError("Access token is no longer usable; refresh it before building a clone URL")
        return (
            f"https://x-token-auth:{credential.access_token}"
            f"@{self.config.clone_host}/{workspace}/{repo_name}.git"
        )

    async def get_bot_identity(self) -> Optional[Bot]:
        return None
