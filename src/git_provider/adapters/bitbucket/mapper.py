"""
Pure translation of Bitbucket payloads into canonical entities.
"""
from pathlib import PurePosixPath
from typing import Any, Mapping, Type, TypeVar

import pydantic

from git_provider.core.exceptions import MappingError
from git_provider.core.models import (
    OAuthCredential,
    CurrentUser,
    RemoteGitGroup,
    RemoteRepository,
    Branch,
    Commit,
    PullRequest,
    GitFile,
    now_ms,
)
from . import payloads

P = TypeVar("P", bound=pydantic.BaseModel)

# Marker a paged directory listing carries and a single tree entry does not
DIRECTORY_MARKER = "values"
DIRECTORY_TYPE = "commit_directory"


def _parse(model: Type[P], payload: Any) -> P:
    if not isinstance(payload, Mapping):
        raise MappingError(
            f"Expected a JSON object for {model.__name__}",
            details=type(payload).__name__
        )
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        missing = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
        raise MappingError(
            f"Bitbucket {model.__name__} is missing required fields: {missing}",
            details=str(e)
        )


def to_credential(payload: Mapping[str, Any]) -> OAuthCredential:
    token = _parse(payloads.TokenResponse, payload)
    if not token.access_token:
        raise MappingError("Bitbucket token response has an empty access token")
    return OAuthCredential(
        access_token=token.access_token,
        refresh_token=token.refresh_token,
        expires_at=now_ms() + token.expires_in * 1000,
        scopes=tuple(token.scopes.split()),
        token_type=token.token_type,
    )


def to_current_user(payload: Mapping[str, Any]) -> CurrentUser:
    user = _parse(payloads.UserPayload, payload)
    avatar = user.links.avatar
    return CurrentUser(
        username=user.username,
        display_name=user.display_name,
        uuid=user.uuid,
        avatar_url=avatar.href if avatar else None,
        use_grouping_for_repositories=True,
    )


def to_group(payload: Mapping[str, Any]) -> RemoteGitGroup:
    """Map one workspace membership entry."""
    workspace = _parse(payloads.WorkspaceMembershipPayload, payload).workspace
    return RemoteGitGroup(id=workspace.uuid, name=workspace.name, slug=workspace.slug)


def to_repository(payload: Mapping[str, Any]) -> RemoteRepository:
    repo = _parse(payloads.RepositoryPayload, payload)
    return RemoteRepository(
        name=repo.name,
        url=repo.links.html.href,
        private=repo.is_private,
        full_name=repo.full_name,
        admin=repo.access_level == "admin",
        default_branch=repo.mainbranch.name,
    )


def to_branch(payload: Mapping[str, Any]) -> Branch:
    branch = _parse(payloads.BranchPayload, payload)
    return Branch(name=branch.name, sha=branch.target.hash)


def to_commit(payload: Mapping[str, Any]) -> Commit:
    return Commit(sha=_parse(payloads.CommitPayload, payload).hash)


def to_pull_request(payload: Mapping[str, Any]) -> PullRequest:
    pull_request = _parse(payloads.PullRequestPayload, payload)
    return PullRequest(url=pull_request.links.html.href, number=pull_request.id)


def is_directory(meta: Mapping[str, Any]) -> bool:
    """Check whether file metadata describes a directory or its listing."""
    return DIRECTORY_MARKER in meta or meta.get("type") == DIRECTORY_TYPE


def to_git_file(meta: Mapping[str, Any], content: bytes) -> GitFile:
    """Map file metadata plus its raw body."""
    entry = _parse(payloads.TreeEntryPayload, meta)
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MappingError(f"File {entry.path} is not valid UTF-8", details=str(e))
    return GitFile(
        content=text,
        html_url=entry.commit.links.html.href,
        name=PurePosixPath(entry.path).stem,
        path=entry.path,
    )

