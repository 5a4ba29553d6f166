"""Async HTTP client for the Open Library search API."""
import logging
from typing import Dict, Optional

import httpx

from bookscout.client import (
    DEFAULT_PAGE_SIZE,
    OpenLibraryClient,
    failure_from_error_body,
    page_from_body,
    paged_params,
)
from bookscout.errors import TransportFailure, UpstreamContractFailure
from bookscout.models import SearchCriteria, SearchPage
from bookscout.query import build_search_params

logger = logging.getLogger(__name__)


class AsyncOpenLibraryClient:
    """Async twin of OpenLibraryClient; same contract, awaited."""

    BASE_URL = OpenLibraryClient.BASE_URL

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            base_url: Search endpoint
            timeout: Request timeout; None keeps httpx's default
            transport: Custom transport (e.g. httpx.MockTransport in tests)
        """
        self.base_url = base_url or self.BASE_URL

        client_kwargs = {
            "headers": {"Accept": "application/json"},
            "transport": transport,
        }
        if timeout is not None:
            client_kwargs["timeout"] = timeout

        # Create async HTTP client
        self.client = httpx.AsyncClient(**client_kwargs)

    async def search(
        self,
        criteria: SearchCriteria,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> SearchPage:
        """Search for books; no request when no term is given."""
        params = build_search_params(criteria)
        if params is None:
            logger.info("No search terms given, skipping request")
            return SearchPage(offset_consumed=offset)

        return await self.fetch_page(params, limit, offset)

    async def fetch_page(
        self,
        params: Dict[str, str],
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> SearchPage:
        """Fetch one page for an already built query."""
        query = paged_params(params, limit, offset)
        logger.info(f"Async request: {self.base_url} (offset={offset}, limit={limit})")

        try:
            response = await self.client.get(self.base_url, params=query)
        except httpx.RequestError as e:
            # TransportError, plus DecodingError and TooManyRedirects
            logger.error(f"Failed to reach Open Library: {e}")
            raise TransportFailure(f"Failed to reach Open Library: {e}", cause=e) from e

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            raise failure_from_error_body(response.status_code, body, response.reason_phrase)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamContractFailure(f"Open Library returned invalid JSON: {e}") from e

        return page_from_body(body, offset)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
