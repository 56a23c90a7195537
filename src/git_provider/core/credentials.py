"""
Credential storage contract and the shared token cell.

One adapter instance serves one tenant. Its ``TokenCell`` is the only state
shared between concurrent operations: it holds the working credential and
makes sure at most one refresh is in flight at a time.
"""
import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from git_provider.utils import get_logger
from .exceptions import AuthError, AuthRefreshError, GitProviderError
from .models import OAuthCredential, now_ms

logger = get_logger(__name__)

Refresher = Callable[[str], Awaitable[OAuthCredential]]


class CredentialState(Enum):
    """Lifecycle of the working credential."""
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    FATAL = "fatal"


class CredentialStore(ABC):
    """Persists OAuth credentials per tenant."""

    @abstractmethod
    async def load(self, tenant_id: str) -> OAuthCredential:
        """
        Load the credential of a tenant.

        Raises:
            AuthError: If the tenant has no stored credential
        """
        pass

    @abstractmethod
    async def save(self, tenant_id: str, credential: OAuthCredential) -> None:
        """Store the credential of a tenant, replacing any previous one."""
        pass


class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store."""

    def __init__(self, credentials: Optional[Dict[str, OAuthCredential]] = None):
        self._credentials: Dict[str, OAuthCredential] = dict(credentials or {})

    async def load(self, tenant_id: str) -> OAuthCredential:
        try:
            return self._credentials[tenant_id]
        except KeyError:
            raise AuthError(
                f"No credential stored for tenant {tenant_id}; authorization is required"
            )

    async def save(self, tenant_id: str, credential: OAuthCredential) -> None:
        self._credentials[tenant_id] = credential


class TokenCell:
    """
    Single-writer holder of one tenant's working credential.

    Readers call :meth:`access_token`, which refreshes pre-emptively once the
    token is inside the lead window. Callers whose token was rejected call
    :meth:`refresh` with that token; if another caller already replaced it,
    the newer credential is returned without contacting the provider again.
    """

    def __init__(
        self,
        tenant_id: str,
        store: CredentialStore,
        refresher: Refresher,
        lead_seconds: int = 300,
    ):
        self.tenant_id = tenant_id
        self._store = store
        self._refresher = refresher
        self._lead_ms = lead_seconds * 1000
        self._credential: Optional[OAuthCredential] = None
        self._fatal: Optional[AuthRefreshError] = None
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def _get_lock(self) -> asyncio.Lock:
        # A lock serves a single event loop; each asyncio.run gets its own
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    @property
    def credential(self) -> Optional[OAuthCredential]:
        return self._credential

    def state(self, at_ms: Optional[int] = None) -> CredentialState:
        """Report the credential state at the given time (default now)."""
        if self._fatal is not None:
            return CredentialState.FATAL
        if self._credential is None:
            return CredentialState.EXPIRED

        at_ms = now_ms() if at_ms is None else at_ms
        if at_ms >= self._credential.expires_at:
            return CredentialState.EXPIRED
        if at_ms >= self._credential.expires_at - self._lead_ms:
            return CredentialState.EXPIRING
        return CredentialState.VALID

    async def access_token(self) -> str:
        """Return a usable access token, refreshing first if needed."""
        if self._fatal is not None:
            raise self._fatal

        if self._credential is None:
            async with self._get_lock():
                if self._credential is None:
                    self._credential = await self._store.load(self.tenant_id)

        state = self.state()
        if state is CredentialState.EXPIRING:
            try:
                await self.refresh(self._credential.access_token)
            except AuthError:
                raise
            except GitProviderError as e:
                # The current token has not expired yet
                logger.warning(f"Pre-emptive refresh failed for tenant {self.tenant_id}: {e.message}")
                return self._credential.access_token
        elif state is not CredentialState.VALID:
            await self.refresh(self._credential.access_token)

        return self._credential.access_token

    async def refresh(self, stale_access_token: str) -> OAuthCredential:
        """
        Replace the credential whose access token is ``stale_access_token``.

        Concurrent callers holding the same stale token converge on one
        refresh and all receive its result.

        Raises:
            AuthRefreshError: If the provider rejects the refresh token. The
                cell then stays fatal until re-authorization.
            GitProviderError: Any other failure of the refresher propagates
                and leaves the current credential in place.
        """
        async with self._get_lock():
            if self._fatal is not None:
                raise self._fatal

            current = self._credential
            if current is not None and current.access_token != stale_access_token:
                logger.debug(f"Reusing credential already refreshed for tenant {self.tenant_id}")
                return current

            if current is None:
                current = await self._store.load(self.tenant_id)

            logger.info(f"Refreshing access token for tenant {self.tenant_id}")
            try:
                refreshed = await self._refresher(current.refresh_token)
            except AuthRefreshError as e:
                self._fatal = e
                raise
            except AuthError as e:
                self._fatal = AuthRefreshError(
                    f"Refresh failed for tenant {self.tenant_id}; re-authorization is required",
                    details=e.details,
                    status_code=e.status_code,
                )
                raise self._fatal from e

            await self._store.save(self.tenant_id, refreshed)
            self._credential = refreshed
            return refreshed

    def reset(self, credential: OAuthCredential) -> None:
        """Install a freshly authorized credential and clear any fatal state."""
        self._credential = credential
        self._fatal = None
