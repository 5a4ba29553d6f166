"""Cover image and detail-page links for search results."""
import logging
from typing import Optional

import requests

from bookscout.config import Config
from bookscout.models import BookRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_COVER_URL = "https://placehold.co/200x300.png"
OPEN_LIBRARY_URL = "https://openlibrary.org"


def cover_image_url(book: BookRecord, size: str = "M", covers_url: Optional[str] = None) -> str:
    """
    Cover URL for a book: cover id first, then first ISBN, then placeholder.

    Args:
        book: Search result
        size: Open Library size letter (S, M or L)
        covers_url: Cover host base, defaults to Config.OPEN_LIBRARY_COVERS_URL
    """
    base = (covers_url or Config.OPEN_LIBRARY_COVERS_URL).rstrip("/")
    if book.cover_id:
        return f"{base}/id/{book.cover_id}-{size}.jpg"
    if book.isbn_list:
        return f"{base}/isbn/{book.isbn_list[0]}-{size}.jpg"
    return PLACEHOLDER_COVER_URL


def resolve_cover_url(
    book: BookRecord,
    http: Optional[requests.Session] = None,
    size: str = "M",
    timeout: Optional[float] = None
) -> str:
    """
    Cover URL that is known to load, else the placeholder.

    Open Library serves a blank image for unknown covers unless asked
    with default=false, in which case it answers 404.
    """
    url = cover_image_url(book, size)
    if url == PLACEHOLDER_COVER_URL:
        return url

    try:
        response = (http or requests).head(
            url, params={"default": "false"}, allow_redirects=True, timeout=timeout
        )
    except requests.exceptions.RequestException as e:
        logger.warning(f"Cover check failed for {book.id}: {e}")
        return PLACEHOLDER_COVER_URL

    if not response.ok:
        logger.info(f"No cover for {book.id} ({response.status_code}), using placeholder")
        return PLACEHOLDER_COVER_URL
    return url


def info_url(book: BookRecord) -> Optional[str]:
    """Prefer the first edition's page, else the work page."""
    if book.edition_keys:
        return f"{OPEN_LIBRARY_URL}/books/{book.edition_keys[0]}"
    if book.id:
        return f"{OPEN_LIBRARY_URL}{book.id}"
    return None
