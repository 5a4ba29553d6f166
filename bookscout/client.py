"""HTTP client for the Open Library search API."""
import logging
from typing import Any, Dict, Optional

import requests

from bookscout.errors import SearchFailure, TransportFailure, UpstreamContractFailure
from bookscout.models import SearchCriteria, SearchPage
from bookscout.parse import extract_error_message, parse_search_response
from bookscout.query import build_search_params

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12
MAX_MESSAGE_LENGTH = 200
MAX_LOGGED_DETAIL = 500


def paged_params(params: Dict[str, str], limit: int, offset: int) -> Dict[str, Any]:
    """Attach limit/offset to a built query."""
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")
    if offset < 0:
        raise ValueError(f"offset must be non-negative, got {offset}")
    return {**params, "limit": limit, "offset": offset}


def failure_from_error_body(status: int, body: Any, status_text: str) -> SearchFailure:
    """Build the SearchFailure for a non-2xx response."""
    details = extract_error_message(body, status_text or f"HTTP {status}")
    logger.error(f"Open Library API error: {status} {details[:MAX_LOGGED_DETAIL]}")
    return SearchFailure(status, details[:MAX_MESSAGE_LENGTH])


def page_from_body(body: Any, offset: int) -> SearchPage:
    """Turn a decoded 2xx body into a SearchPage."""
    if not isinstance(body, dict):
        raise UpstreamContractFailure(
            f"Expected a JSON object from Open Library, got {type(body).__name__}"
        )
    page = parse_search_response(body, offset)
    logger.info(f"Fetched {len(page)} of {page.total_matching} books (offset={offset})")
    return page


class OpenLibraryClient:
    """Single-attempt client for the Open Library search endpoint."""

    BASE_URL = "https://openlibrary.org/search.json"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: Search endpoint (defaults to the public API)
            timeout: Request timeout in seconds; None leaves requests' default
            session: Pre-built session, mostly for tests
        """
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout

        # Create session for connection pooling
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def search(
        self,
        criteria: SearchCriteria,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> SearchPage:
        """
        Search for books.

        Args:
            criteria: Search terms and sort order
            limit: Page size
            offset: Pagination offset

        Returns:
            SearchPage; empty without any request when no term is given
        """
        params = build_search_params(criteria)
        if params is None:
            logger.info("No search terms given, skipping request")
            return SearchPage(offset_consumed=offset)

        return self.fetch_page(params, limit, offset)

    def fetch_page(
        self,
        params: Dict[str, str],
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> SearchPage:
        """
        Fetch one page for an already built query.

        Raises:
            SearchFailure: Non-2xx status
            TransportFailure: No response received
            UpstreamContractFailure: 2xx body is not a JSON object
        """
        query = paged_params(params, limit, offset)
        logger.info(f"Request: {self.base_url} (offset={offset}, limit={limit})")

        try:
            response = self.session.get(self.base_url, params=query, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to reach Open Library: {e}")
            raise TransportFailure(f"Failed to reach Open Library: {e}", cause=e) from e

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                # Not JSON, fall back to the status text
                body = None
            raise failure_from_error_body(response.status_code, body, response.reason)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamContractFailure(f"Open Library returned invalid JSON: {e}") from e

        return page_from_body(body, offset)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
