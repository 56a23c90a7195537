"""Bitbucket Cloud adapter."""

from .adapter import BitbucketAdapter
from .api import BitbucketApi

__all__ = ["BitbucketAdapter", "BitbucketApi"]
