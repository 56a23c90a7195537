"""
Request layer for the Bitbucket Cloud REST 2.0 API.

Every call takes its path parameters plus the access token and returns the
decoded payload. Lookups whose absence is an expected outcome return
``Found``/``NOT_FOUND``; every other failure is raised as a typed error
carrying the HTTP status and the provider's error body.
"""
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import httpx

from git_provider.core.exceptions import (
    APIError,
    AccessPermissionError,
    AuthError,
    ConflictError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from git_provider.core.result import Found, Lookup, NOT_FOUND
from git_provider.utils import get_logger

logger = get_logger(__name__)

COMMITS_PAGE_SIZE = 100


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body.get("error_description"):
            return str(body["error_description"])
    return response.text


def _raise_for_status(response: httpx.Response, action: str) -> None:
    """Translate an unsuccessful response into the matching error."""
    if response.is_success:
        return

    status = response.status_code
    message = _error_message(response)
    details = response.text

    if status == 401:
        raise AuthError(f"{action}: access token rejected ({message})", details=details, status_code=status)
    if status == 403:
        raise AccessPermissionError(f"{action}: access denied ({message})", details=details, status_code=status)
    if status == 404:
        raise NotFoundError(f"{action}: not found ({message})", details=details, status_code=status)
    if status == 409 or (status == 400 and "already exists" in message.lower()):
        raise ConflictError(f"{action}: {message}", details=details, status_code=status)
    if status == 429:
        reset_at = response.headers.get("Retry-After")
        raise RateLimitError(
            f"{action}: rate limit exceeded",
            reset_at=int(reset_at) if reset_at and reset_at.isdigit() else None,
            details=details,
        )
    raise APIError(f"{action}: {message}", details=details, status_code=status)


def _is_missing(response: httpx.Response) -> bool:
    return response.status_code == 404


class BitbucketApi:
    """Thin async wrapper over the Bitbucket endpoints the adapter uses."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_base_url: str,
        oauth_base_url: str,
        client_id: str,
        client_secret: str,
    ):
        self._client = client
        self.api_base_url = api_base_url.rstrip("/")
        self.oauth_base_url = oauth_base_url.rstrip("/")
        self._client_id = client_id
        self._client_secret = client_secret

    def _url(self, *segments: str) -> str:
        return "/".join([self.api_base_url, *segments])

    def _repo_url(self, workspace: str, repo: str, *segments: str) -> str:
        return self._url("repositories", _segment(workspace), _segment(repo), *segments)

    @staticmethod
    def _auth(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def _get(self, url: str, access_token: str, action: str, params: Optional[dict] = None) -> Any:
        response = await self._client.get(url, params=params, headers=self._auth(access_token))
        _raise_for_status(response, action)
        return response.json()

    async def _lookup(self, url: str, access_token: str, action: str, params: Optional[dict] = None) -> Lookup:
        response = await self._client.get(url, params=params, headers=self._auth(access_token))
        if _is_missing(response):
            return NOT_FOUND
        _raise_for_status(response, action)
        return Found(response.json())

    async def _post(self, url: str, access_token: str, action: str, body: dict) -> Any:
        response = await self._client.post(url, json=body, headers=self._auth(access_token))
        _raise_for_status(response, action)
        return response.json()

    def check_cursor(self, cursor: str) -> str:
        """
        Make sure a pagination cursor points back at the API.

        Raises:
            ValidationError: If the cursor targets another host
        """
        if not cursor.startswith(self.api_base_url + "/"):
            raise ValidationError("Pagination cursor does not belong to the Bitbucket API")
        return cursor

    # OAuth

    def authorize_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self._client_id,
            "response_type": "code",
            "state": state,
        })
        return f"{self.oauth_base_url}/authorize?{query}"

    async def token(self, grant: Dict[str, str]) -> Dict[str, Any]:
        """POST a grant to the token endpoint with the consumer's basic auth."""
        response = await self._client.post(
            f"{self.oauth_base_url}/access_token",
            data=grant,
            auth=(self._client_id, self._client_secret),
        )
        _raise_for_status(response, f"Token request ({grant.get('grant_type')})")
        return response.json()

    # Users and workspaces

    async def current_user(self, access_token: str) -> Dict[str, Any]:
        return await self._get(self._url("user"), access_token, "Get current user")

    async def workspaces(self, cursor: Optional[str], access_token: str) -> Dict[str, Any]:
        url = self.check_cursor(cursor) if cursor else self._url("user", "permissions", "workspaces")
        return await self._get(url, access_token, "List workspaces")

    # Repositories

    async def repository(self, workspace: str, repo: str, access_token: str) -> Dict[str, Any]:
        return await self._get(
            self._repo_url(workspace, repo), access_token, f"Get repository {workspace}/{repo}"
        )

    async def repositories(self, workspace: str, page: int, pagelen: int, access_token: str) -> Dict[str, Any]:
        return await self._get(
            self._url("repositories", _segment(workspace)),
            access_token,
            f"List repositories in {workspace}",
            params={"page": page, "pagelen": pagelen},
        )

    async def create_repository(self, workspace: str, repo: str, body: dict, access_token: str) -> Dict[str, Any]:
        return await self._post(
            self._repo_url(workspace, repo), access_token, f"Create repository {workspace}/{repo}", body
        )

    # Source

    def _src_url(self, workspace: str, repo: str, ref: str, path: str) -> str:
        return self._repo_url(workspace, repo, "src", _segment(ref), quote(path.lstrip("/"), safe="/"))

    async def file_meta(self, workspace: str, repo: str, ref: str, path: str, access_token: str) -> Lookup:
        return await self._lookup(
            self._src_url(workspace, repo, ref, path),
            access_token,
            f"Get metadata of {path}",
            params={"format": "meta"},
        )

    async def file_content(self, workspace: str, repo: str, ref: str, path: str, access_token: str) -> Lookup:
        """Read a raw file body; the connection is released on every exit path."""
        async with self._client.stream(
            "GET", self._src_url(workspace, repo, ref, path), headers=self._auth(access_token)
        ) as response:
            if _is_missing(response):
                return NOT_FOUND
            if not response.is_success:
                await response.aread()
                _raise_for_status(response, f"Get content of {path}")
            return Found(await response.aread())

    # Branches and commits

    async def branch(self, workspace: str, repo: str, name: str, access_token: str) -> Lookup:
        return await self._lookup(
            self._repo_url(workspace, repo, "refs", "branches", _segment(name)),
            access_token,
            f"Get branch {name}",
        )

    async def create_branch(self, workspace: str, repo: str, body: dict, access_token: str) -> Lookup:
        """Create a branch; ``NOT_FOUND`` when its target commit doesn't exist."""
        response = await self._client.post(
            self._repo_url(workspace, repo, "refs", "branches"),
            json=body,
            headers=self._auth(access_token),
        )
        if _is_missing(response):
            return NOT_FOUND
        if response.status_code == 400:
            message = _error_message(response).lower()
            if "already exists" not in message and ("not found" in message or "does not exist" in message):
                return NOT_FOUND
        _raise_for_status(response, f"Create branch {body.get('name')}")
        return Found(response.json())

    async def commits(
        self,
        workspace: str,
        repo: str,
        branch: str,
        cursor: Optional[str],
        access_token: str,
    ) -> Dict[str, Any]:
        """List commits reachable from a branch, newest first."""
        if cursor:
            return await self._get(self.check_cursor(cursor), access_token, f"List commits on {branch}")
        return await self._get(
            self._repo_url(workspace, repo, "commits", _segment(branch)),
            access_token,
            f"List commits on {branch}",
            params={"pagelen": COMMITS_PAGE_SIZE},
        )

    # Pull requests

    async def pull_requests_from_branch(self, workspace: str, repo: str, branch: str, access_token: str) -> Dict[str, Any]:
        escaped = branch.replace("\\", "\\\\").replace('"', '\\"')
        return await self._get(
            self._repo_url(workspace, repo, "pullrequests"),
            access_token,
            f"Find pull requests from {branch}",
            params={"q": f'source.branch.name="{escaped}" AND state="OPEN"'},
        )

    async def create_pull_request(self, workspace: str, repo: str, body: dict, access_token: str) -> Dict[str, Any]:
        return await self._post(
            self._repo_url(workspace, repo, "pullrequests"),
            access_token,
            f"Create pull request in {workspace}/{repo}",
            body,
        )

    async def create_pull_request_comment(
        self,
        workspace: str,
        repo: str,
        pull_request_id: int,
        body: str,
        access_token: str,
    ) -> Dict[str, Any]:
        return await self._post(
            self._repo_url(workspace, repo, "pullrequests", str(pull_request_id), "comments"),
            access_token,
            f"Comment on pull request #{pull_request_id}",
            {"content": {"raw": body}},
        )
