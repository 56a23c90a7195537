"""
Factory for creating provider-specific adapters.
"""
from typing import Dict, Optional, Type

from git_provider.utils import get_logger
from git_provider.config import get_settings
from git_provider.core.credentials import CredentialStore
from git_provider.core.exceptions import ConfigurationError
from git_provider.core.models import OAuthCredential
from .base import BaseAdapter, AdapterConfig, PlatformType
from .bitbucket import BitbucketAdapter

logger = get_logger(__name__)


class AdapterFactory:
    """Factory for creating provider adapters."""

    _adapters: Dict[PlatformType, Type[BaseAdapter]] = {}

    @classmethod
    def register_adapter(cls, platform: PlatformType, adapter_class: type):
        """
        Register an adapter class for a platform.

        Args:
            platform: Platform type
            adapter_class: Adapter class to register
        """
        cls._adapters[platform] = adapter_class
        logger.debug(f"Registered adapter for {platform.value}: {adapter_class.__name__}")

    @classmethod
    def build_config(cls, platform: PlatformType, **overrides) -> AdapterConfig:
        """
        Build adapter configuration from settings.

        Args:
            platform: Platform type
            **overrides: Values replacing the configured ones

        Raises:
            ConfigurationError: If the OAuth consumer is not configured
        """
        provider = getattr(get_settings(), platform.value, None)
        if provider is None:
            raise ConfigurationError(f"No settings section for {platform.value}")

        values = dict(
            platform=platform,
            client_id=provider.client_id,
            client_secret=provider.client_secret,
            api_base_url=provider.api_base_url,
            oauth_base_url=provider.oauth_base_url,
            clone_host=provider.clone_host,
            timeout=provider.timeout,
            verify_ssl=provider.verify_ssl,
            refresh_lead_seconds=provider.refresh_lead_seconds,
            default_page_size=provider.default_page_size,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})

        if not values["client_id"] or not values["client_secret"]:
            raise ConfigurationError(
                f"OAuth client id and secret are required for {platform.value}"
            )
        return AdapterConfig(**values)

    @classmethod
    def create_adapter(
        cls,
        platform: PlatformType,
        tenant_id: str,
        credential_store: CredentialStore,
        credential: Optional[OAuthCredential] = None,
        **kwargs
    ) -> BaseAdapter:
        """
        Create an adapter instance for the specified platform.

        Args:
            platform: Platform type
            tenant_id: Installation the adapter acts for
            credential_store: Store holding the tenant's credential
            credential: Working credential, if already known
            **kwargs: Configuration overrides (client_id, timeout, ...) and
                ``http_client``

        Returns:
            Configured adapter instance

        Raises:
            ValueError: If platform is not supported
            ConfigurationError: If required configuration is missing
        """
        if platform not in cls._adapters:
            available = ", ".join(p.value for p in cls._adapters.keys())
            raise ValueError(
                f"Unsupported platform: {platform.value}. "
                f"Available platforms: {available}"
            )

        http_client = kwargs.pop("http_client", None)
        config = cls.build_config(platform, **kwargs)

        adapter_class = cls._adapters[platform]
        adapter = adapter_class(
            config,
            tenant_id,
            credential_store,
            credential=credential,
            http_client=http_client,
        )

        logger.info(f"Created {platform.value} adapter")
        return adapter

    @classmethod
    def list_available_platforms(cls) -> list[str]:
        """Get list of available platforms."""
        return [platform.value for platform in cls._adapters.keys()]


AdapterFactory.register_adapter(PlatformType.BITBUCKET, BitbucketAdapter)
