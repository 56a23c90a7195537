"""
Normalization of provider paging envelopes into the canonical ``Page``.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from git_provider.utils import get_logger
from .exceptions import MappingError
from .models import Page

logger = get_logger(__name__)


@dataclass(frozen=True)
class EnvelopeFields:
    """Names a provider uses for the paging fields of its list responses."""
    items: str
    total: Optional[str] = None
    page: Optional[str] = None
    page_size: Optional[str] = None
    next: Optional[str] = None
    previous: Optional[str] = None


BITBUCKET_ENVELOPE = EnvelopeFields(
    items="values",
    total="size",
    page="page",
    page_size="pagelen",
    next="next",
    previous="previous",
)


def _optional_int(envelope: Mapping[str, Any], key: Optional[str]) -> Optional[int]:
    if key is None or envelope.get(key) is None:
        return None
    try:
        return int(envelope[key])
    except (TypeError, ValueError):
        raise MappingError(
            f"Paging field '{key}' is not an integer",
            details=repr(envelope[key])
        )


def _optional_cursor(envelope: Mapping[str, Any], key: Optional[str]) -> Optional[str]:
    if key is None:
        return None
    value = envelope.get(key)
    return str(value) if value else None


def normalize_page(
    envelope: Mapping[str, Any],
    fields: EnvelopeFields = BITBUCKET_ENVELOPE,
    requested_page: Optional[int] = None,
    requested_page_size: Optional[int] = None,
) -> Page:
    """
    Build a canonical page from a provider list response.

    Cursor links returned by the provider are passed through untouched and are
    never rebuilt from page numbers. The requested page and page size only fill
    in numbers the provider left out of the envelope.

    Args:
        envelope: Decoded list response
        fields: Field names used by the provider
        requested_page: Page number the caller asked for
        requested_page_size: Page size the caller asked for

    Returns:
        Page with ``total``, ``page``, ``page_size``, ``next`` and ``previous``

    Raises:
        MappingError: If the envelope has no item list
    """
    if not isinstance(envelope.get(fields.items), list):
        raise MappingError(
            f"Paged response is missing its '{fields.items}' list",
            details=", ".join(sorted(envelope.keys()))
        )

    page = _optional_int(envelope, fields.page)
    page_size = _optional_int(envelope, fields.page_size)

    normalized = Page(
        total=_optional_int(envelope, fields.total),
        page=page if page is not None else requested_page,
        page_size=page_size if page_size is not None else requested_page_size,
        next=_optional_cursor(envelope, fields.next),
        previous=_optional_cursor(envelope, fields.previous),
    )
    logger.debug(
        f"Normalized page {normalized.page} "
        f"({len(envelope[fields.items])} items, total={normalized.total})"
    )
    return normalized


def page_items(envelope: Mapping[str, Any], fields: EnvelopeFields = BITBUCKET_ENVELOPE) -> list:
    """Return the item list of a provider list response."""
    items = envelope.get(fields.items)
    if not isinstance(items, list):
        raise MappingError(f"Paged response is missing its '{fields.items}' list")
    return items
