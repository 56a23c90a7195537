"""
Utility functions for testing.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import json

import httpx

from git_provider.adapters.base import BaseAdapter
from git_provider.core.models import (
    Branch,
    Commit,
    CurrentUser,
    OAuthCredential,
    Page,
    PaginatedGitGroup,
    PaginatedRepos,
    PullRequest,
    RemoteRepository,
)

API = "https://api.bitbucket.org/2.0"
API_PATH = "/2.0"
OAUTH = "https://bitbucket.org/site/oauth2"

Route = Union[Callable[[httpx.Request], httpx.Response], Tuple[int, Any]]


def error_body(message: str) -> Dict[str, Any]:
    """Bitbucket's error envelope."""
    return {"type": "error", "error": {"message": message}}


class FakeBitbucket:
    """
    In-memory stand-in for the Bitbucket API.

    Routes are keyed by method and URL path. Unrouted requests get
    Bitbucket's 404 envelope.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None, handler=None) -> None:
        """
        Register a response.

        Args:
            method: HTTP method
            path: URL path; API paths may omit the ``/2.0`` prefix
            status: Status code of the canned response
            body: JSON body, or bytes for a raw body
            handler: Callable building the response instead
        """
        if not path.startswith(("/2.0", "/site")):
            path = API_PATH + path
        self.routes[(method, path)] = handler if handler is not None else (status, body)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json=error_body("Resource not found"))
        if callable(route):
            return route(request)
        status, body = route
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        if not path.startswith(("/2.0", "/site")):
            path = API_PATH + path
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def json_of(request: httpx.Request) -> Dict[str, Any]:
        return json.loads(request.content)


def repository_payload(
    workspace: str = "acme",
    name: str = "service",
    private: bool = True,
    main: str = "main",
    access_level: Optional[str] = "admin",
    **extra
) -> Dict[str, Any]:
    payload = {
        "type": "repository",
        "name": name,
        "full_name": f"{workspace}/{name}",
        "is_private": private,
        "links": {"html": {"href": f"https://bitbucket.org/{workspace}/{name}"}},
        "mainbranch": {"type": "branch", "name": main},
        "uuid": "{7f1c0d11-9d21-4c59-a4e4-0c2f7e12a001}",
    }
    if access_level is not None:
        payload["accessLevel"] = access_level
    payload.update(extra)
    return payload


def branch_payload(name: str = "main", sha: str = "a" * 40) -> Dict[str, Any]:
    return {"type": "branch", "name": name, "target": {"type": "commit", "hash": sha}}


def workspace_membership(slug: str, name: str = None, uuid: str = None) -> Dict[str, Any]:
    return {
        "type": "workspace_membership",
        "permission": "owner",
        "workspace": {
            "type": "workspace",
            "uuid": uuid or "{" + slug + "-uuid}",
            "name": name or slug.title(),
            "slug": slug,
        },
    }


def pull_request_payload(number: int = 7, workspace: str = "acme", repo: str = "service") -> Dict[str, Any]:
    return {
        "type": "pullrequest",
        "id": number,
        "state": "OPEN",
        "links": {"html": {"href": f"https://bitbucket.org/{workspace}/{repo}/pull-requests/{number}"}},
    }


def file_meta_payload(path: str = "docs/README.md", commit: str = "c" * 40) -> Dict[str, Any]:
    return {
        "type": "commit_file",
        "path": path,
        "size": 12,
        "commit": {
            "type": "commit",
            "hash": commit,
            "links": {"html": {"href": f"https://bitbucket.org/acme/service/commits/{commit}"}},
        },
    }


def directory_listing_payload(path: str = "docs") -> Dict[str, Any]:
    return {
        "pagelen": 10,
        "page": 1,
        "values": [{"type": "commit_file", "path": f"{path}/README.md"}],
    }


def directory_meta_payload(path: str = "docs", commit: str = "c" * 40) -> Dict[str, Any]:
    return {
        "type": "commit_directory",
        "path": path,
        "commit": {"type": "commit", "hash": commit},
        "links": {"self": {"href": f"https://api.bitbucket.org/2.0/repositories/acme/service/src/{commit}/{path}/"}},
    }


def token_payload(access: str = "access-1", refresh: str = "refresh-1", expires_in: int = 7200) -> Dict[str, Any]:
    return {
        "access_token": access,
        "refresh_token": refresh,
        "expires_in": expires_in,
        "scopes": "repository:write pullrequest:write account",
        "token_type": "bearer",
        "state": "tenant",
    }


class DummyAdapter(BaseAdapter):
    """Adapter answering every operation from memory."""

    def get_installation_url(self, tenant_id):
        return f"https://example.test/install?state={tenant_id}"

    async def exchange_code(self, code):
        return OAuthCredential(access_token=code, refresh_token="r", expires_at=0)

    async def refresh(self, refresh_token):
        return OAuthCredential(access_token="a", refresh_token=refresh_token, expires_at=0)

    async def get_current_user(self, access_token):
        return CurrentUser(username="dummy", display_name="Dummy", uuid="{dummy}")

    async def list_groups(self, cursor=None):
        return PaginatedGitGroup(page=Page(), groups=[])

    async def get_organization(self):
        return None

    async def get_repository(self, group_id, repo_name):
        group = self.require_group(group_id)
        return RemoteRepository(
            name=repo_name,
            url=f"https://example.test/{group}/{repo_name}",
            private=True,
            full_name=f"{group}/{repo_name}",
            admin=True,
            default_branch="main",
        )

    async def list_repositories(self, group_id, page=1, limit=None):
        self.require_group(group_id)
        return PaginatedRepos(page=Page(page=page), repos=[])

    async def create_repository(self, group_id, name, private, owner_group_name):
        return await self.get_repository(group_id, name)

    async def delete_installation(self):
        return True

    async def get_file(self, group_id, repo_name, path, ref=None):
        return None

    async def create_pull_request_from_files(self, *args, **kwargs):
        return ""

    async def get_pull_request_for_branch(self, group_id, repo_name, branch_name):
        return None

    async def create_pull_request(self, group_id, repo_name, source_branch, target_branch, title, body):
        return PullRequest(number=1, url="https://example.test/pr/1")

    async def get_branch(self, group_id, repo_name, branch_name):
        return None

    async def create_branch(self, group_id, repo_name, branch_name, pointing_sha):
        return Branch(name=branch_name, sha=pointing_sha)

    async def get_first_commit_on_branch(self, group_id, repo_name, branch_name):
        return Commit(sha="0" * 40)

    def get_clone_url(self, group_id, repo_name):
        return f"https://example.test/{self.require_group(group_id)}/{repo_name}.git"

    async def create_pull_request_comment(self, group_id, repo_name, pull_request_number, body):
        return None

    async def get_bot_identity(self):
        return None
