"""
Canonical entities shared by every provider adapter.

All entities are immutable and request-scoped: adapters build them fresh from
provider responses and never mutate them afterwards.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import time

from git_provider.utils import get_logger
from .exceptions import ValidationError

logger = get_logger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class OAuthCredential:
    """
    Access/refresh token pair for one installation.

    Attributes:
        access_token: Bearer token sent with API calls
        refresh_token: Token used to obtain the next pair
        expires_at: Expiry of ``access_token`` in epoch milliseconds
        scopes: Scopes granted to the token
        token_type: Token type reported by the provider
    """
    access_token: str
    refresh_token: str
    expires_at: int
    scopes: Tuple[str, ...] = ()
    token_type: str = "bearer"

    def __post_init__(self):
        if not self.access_token:
            raise ValidationError("OAuth credential requires a non-empty access token")

    def is_expired(self, at_ms: Optional[int] = None) -> bool:
        """Check whether the access token has expired."""
        return (now_ms() if at_ms is None else at_ms) >= self.expires_at

    def __repr__(self) -> str:
        return (
            f"OAuthCredential(expires_at={self.expires_at}, "
            f"scopes={self.scopes}, token_type={self.token_type!r})"
        )


@dataclass(frozen=True)
class CurrentUser:
    """The user a token was issued to."""
    username: str
    display_name: str
    uuid: str
    avatar_url: Optional[str] = None
    use_grouping_for_repositories: bool = True


@dataclass(frozen=True)
class RemoteGitGroup:
    """An organization or workspace that owns repositories."""
    id: str
    name: str
    slug: str


@dataclass(frozen=True)
class RemoteRepository:
    """
    A hosted repository.

    Attributes:
        name: Repository name
        url: Browser URL of the repository
        private: Whether the repository is private
        full_name: ``{group}/{name}``, unique within the provider
        admin: Whether the token owner administers the repository
        default_branch: Name of the main branch
    """
    name: str
    url: str
    private: bool
    full_name: str
    admin: bool
    default_branch: str


@dataclass(frozen=True)
class Branch:
    """A branch and the commit it pointed at when observed."""
    name: str
    sha: str


@dataclass(frozen=True)
class Commit:
    """A commit identified by its provider hash."""
    sha: str


@dataclass(frozen=True)
class PullRequest:
    """A pull request, numbered per repository."""
    url: str
    number: int


@dataclass(frozen=True)
class GitFile:
    """
    A file read from a repository at a given ref.

    Attributes:
        content: UTF-8 decoded file body
        html_url: Browser URL of the file
        name: File name without directory or extension
        path: Path of the file inside the repository
    """
    content: str
    html_url: str
    name: str
    path: str


@dataclass(frozen=True)
class Bot:
    """A provider service account acting on behalf of the platform."""
    id: str
    login: str


@dataclass(frozen=True)
class Page:
    """
    Canonical pagination envelope.

    ``next`` and ``previous`` are opaque cursors; callers hand them back
    verbatim to fetch the neighbouring page.
    """
    total: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    next: Optional[str] = None
    previous: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return self.next is not None


@dataclass(frozen=True)
class PaginatedGitGroup:
    """One page of groups."""
    page: Page
    groups: List[RemoteGitGroup] = field(default_factory=list)

    @property
    def total(self) -> Optional[int]:
        return self.page.total

    @property
    def next(self) -> Optional[str]:
        return self.page.next

    @property
    def previous(self) -> Optional[str]:
        return self.page.previous


@dataclass(frozen=True)
class PaginatedRepos:
    """One page of repositories."""
    page: Page
    repos: List[RemoteRepository] = field(default_factory=list)

    @property
    def total(self) -> Optional[int]:
        return self.page.total

    @property
    def next(self) -> Optional[str]:
        return self.page.next

    @property
    def previous(self) -> Optional[str]:
        return self.page.previous

