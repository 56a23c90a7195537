"""Tests for pagination normalization."""

import pytest

from git_provider.core import EnvelopeFields, MappingError, normalize_page
from git_provider.core.pagination import page_items


class TestNormalizePage:
    """Test page envelope normalization."""

    def test_bitbucket_envelope(self):
        """Test Bitbucket's size/page/pagelen/next/previous fields."""
        envelope = {
            "size": 42,
            "page": 2,
            "pagelen": 10,
            "next": "https://api.bitbucket.org/2.0/repositories/acme?page=3",
            "previous": "https://api.bitbucket.org/2.0/repositories/acme?page=1",
            "values": [{}, {}],
        }

        page = normalize_page(envelope)

        assert page.total == 42
        assert page.page == 2
        assert page.page_size == 10
        assert page.next == envelope["next"]
        assert page.previous == envelope["previous"]

    def test_cursor_links_win_over_requested_numbers(self):
        """Test that provider cursors are passed through, never rebuilt."""
        envelope = {"page": 5, "pagelen": 10, "next": "opaque-cursor", "values": []}

        page = normalize_page(envelope, requested_page=1, requested_page_size=99)

        assert page.page == 5
        assert page.page_size == 10
        assert page.next == "opaque-cursor"

    def test_requested_numbers_fill_gaps(self):
        """Test that missing numbers fall back to the request."""
        page = normalize_page({"values": []}, requested_page=3, requested_page_size=25)

        assert page.page == 3
        assert page.page_size == 25
        assert page.total is None
        assert page.next is None
        assert page.previous is None

    def test_no_cursor_is_not_fabricated(self):
        """Test that a last page has no next cursor."""
        page = normalize_page({"size": 3, "page": 1, "pagelen": 10, "values": [1, 2, 3]})

        assert page.next is None
        assert page.has_next is False

    def test_other_provider_field_names(self):
        """Test an envelope using different field names."""
        fields = EnvelopeFields(
            items="items",
            total="total_count",
            page="current",
            page_size="per_page",
            next="next_cursor",
        )

        page = normalize_page(
            {"items": [1], "total_count": "7", "current": 1, "per_page": 1, "next_cursor": "abc"},
            fields=fields,
        )

        assert page.total == 7
        assert page.next == "abc"
        assert page.previous is None

    def test_missing_items_is_mapping_error(self):
        """Test that an envelope without an item list is rejected."""
        with pytest.raises(MappingError):
            normalize_page({"size": 1})

    def test_non_numeric_total_is_mapping_error(self):
        """Test that a malformed number is rejected."""
        with pytest.raises(MappingError):
            normalize_page({"size": "many", "values": []})

    def test_page_items(self):
        """Test extracting items."""
        assert page_items({"values": [1, 2]}) == [1, 2]
        with pytest.raises(MappingError):
            page_items({"values": None})
