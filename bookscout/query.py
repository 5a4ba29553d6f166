"""Translate search criteria into Open Library query parameters."""
from typing import Dict, Optional

from bookscout.models import SearchCriteria, SortOrder

# Bulk search results never include descriptions, so we only ask for
# what a result card shows.
SEARCH_FIELDS = ",".join([
    "key",
    "title",
    "author_name",
    "first_publish_year",
    "isbn",
    "cover_i",
    "subject",
    "edition_key",
])

NO_CRITERIA_MESSAGE = "Please enter at least one search criteria (title, author, or genre)."


def build_search_params(criteria: SearchCriteria) -> Optional[Dict[str, str]]:
    """
    Build the query string for a search.

    Args:
        criteria: Title/author/genre terms and sort order

    Returns:
        Query parameters without paging, or None when no search term is set
    """
    params: Dict[str, str] = {}

    if criteria.title and criteria.title.strip():
        params["title"] = criteria.title.strip()
    if criteria.author and criteria.author.strip():
        params["author"] = criteria.author.strip()
    if criteria.genre and criteria.genre.strip():
        # Open Library calls genres "subjects"
        params["subject"] = criteria.genre.strip()

    if not params:
        return None

    # Relevance is the upstream default and cannot be requested explicitly
    if criteria.sort_order is not SortOrder.RELEVANCE:
        params["sort"] = criteria.sort_order.value

    params["fields"] = SEARCH_FIELDS
    return params
