"""Tests for cover and info links."""
from unittest.mock import MagicMock

import requests

from bookscout.covers import (
    PLACEHOLDER_COVER_URL,
    cover_image_url,
    info_url,
    resolve_cover_url,
)
from bookscout.models import BookRecord


def test_cover_prefers_cover_id():
    book = BookRecord(id="/works/OL1W", title="T", cover_id=42, isbn_list=("123",))

    assert cover_image_url(book) == "https://covers.openlibrary.org/b/id/42-M.jpg"


def test_cover_falls_back_to_isbn_then_placeholder():
    with_isbn = BookRecord(id="/works/OL1W", title="T", isbn_list=("9780141439518",))
    bare = BookRecord(id="/works/OL2W", title="T")

    assert cover_image_url(with_isbn, size="L") == "https://covers.openlibrary.org/b/isbn/9780141439518-L.jpg"
    assert cover_image_url(bare) == PLACEHOLDER_COVER_URL


def test_resolve_cover_uses_placeholder_on_404():
    http = MagicMock()
    http.head.return_value = MagicMock(ok=False, status_code=404)
    book = BookRecord(id="/works/OL1W", title="T", cover_id=42)

    assert resolve_cover_url(book, http) == PLACEHOLDER_COVER_URL
    assert http.head.call_args.kwargs["params"] == {"default": "false"}


def test_resolve_cover_keeps_existing_cover():
    http = MagicMock()
    http.head.return_value = MagicMock(ok=True, status_code=200)
    book = BookRecord(id="/works/OL1W", title="T", cover_id=42)

    assert resolve_cover_url(book, http) == cover_image_url(book)


def test_resolve_cover_network_error():
    http = MagicMock()
    http.head.side_effect = requests.exceptions.Timeout("slow")
    book = BookRecord(id="/works/OL1W", title="T", cover_id=42)

    assert resolve_cover_url(book, http) == PLACEHOLDER_COVER_URL


def test_info_url_prefers_edition():
    edition = BookRecord(id="/works/OL1W", title="T", edition_keys=("OL7M",))
    work = BookRecord(id="/works/OL1W", title="T")
    nothing = BookRecord(id="", title="T")

    assert info_url(edition) == "https://openlibrary.org/books/OL7M"
    assert info_url(work) == "https://openlibrary.org/works/OL1W"
    assert info_url(nothing) is None
