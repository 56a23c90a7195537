"""Adapters for git hosting providers."""

from .base import (
    BaseAdapter,
    AdapterConfig,
    PlatformType,
)
from .bitbucket import BitbucketAdapter
from .factory import AdapterFactory

__all__ = [
    "BaseAdapter",
    "AdapterConfig",
    "PlatformType",
    "BitbucketAdapter",
    "AdapterFactory",
]
