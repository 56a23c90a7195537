"""
Bitbucket Cloud response shapes.

Only the fields the adapter reads are declared; everything else in a payload
is ignored so additive API changes don't break parsing.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Link(_Payload):
    href: str


class HtmlLinks(_Payload):
    html: Link


class AvatarLinks(_Payload):
    avatar: Optional[Link] = None


class TokenResponse(_Payload):
    access_token: str
    refresh_token: str
    expires_in: int
    scopes: str = ""
    token_type: str = "bearer"


class UserPayload(_Payload):
    username: str
    display_name: str
    uuid: str
    links: AvatarLinks = Field(default_factory=AvatarLinks)


class WorkspacePayload(_Payload):
    uuid: str
    name: str
    slug: str


class WorkspaceMembershipPayload(_Payload):
    workspace: WorkspacePayload


class MainBranch(_Payload):
    name: str


class RepositoryPayload(_Payload):
    name: str
    full_name: str
    is_private: bool
    links: HtmlLinks
    mainbranch: MainBranch
    access_level: Optional[str] = Field(default=None, alias="accessLevel")


class CommitRef(_Payload):
    hash: str


class BranchPayload(_Payload):
    name: str
    target: CommitRef


class CommitPayload(_Payload):
    hash: str


class FileCommit(_Payload):
    links: HtmlLinks


class TreeEntryPayload(_Payload):
    path: str
    type: str
    commit: FileCommit


class PullRequestPayload(_Payload):
    id: int
    links: HtmlLinks

