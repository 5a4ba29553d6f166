"""Parse and normalize Open Library search responses."""
import logging
from typing import Any, Dict, List, Optional

from bookscout.models import BookRecord, SearchPage

logger = logging.getLogger(__name__)


def _as_tuple(value: Any) -> tuple:
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def parse_doc(doc: Dict[str, Any]) -> Optional[BookRecord]:
    """
    Parse a single document from the search API.

    Args:
        doc: One entry of the response's `docs` array

    Returns:
        BookRecord or None if the entry is not a JSON object
    """
    if not isinstance(doc, dict):
        logger.warning(f"Skipping non-object search doc: {doc!r:.80}")
        return None

    edition_keys = _as_tuple(doc.get("edition_key"))

    # Keyless docs are kept so the page length still matches the offset
    key = doc.get("key")
    if not key and edition_keys:
        key = f"/books/{edition_keys[0]}"

    return BookRecord(
        id=str(key or ""),
        title=doc.get("title") or "Unknown Title",
        authors=_as_tuple(doc.get("author_name")),
        first_publish_year=_as_int(doc.get("first_publish_year")),
        isbn_list=_as_tuple(doc.get("isbn")),
        cover_id=_as_int(doc.get("cover_i")),
        subjects=_as_tuple(doc.get("subject")),
        edition_keys=edition_keys,
    )


def parse_search_response(payload: Dict[str, Any], offset: int = 0) -> SearchPage:
    """
    Parse a full search response.

    Args:
        payload: Decoded JSON body
        offset: Offset the page was requested at

    Returns:
        SearchPage (empty if the API sent no docs)
    """
    docs = payload.get("docs") or []
    records: List[BookRecord] = []

    for doc in docs:
        record = parse_doc(doc)
        if record:
            records.append(record)

    return SearchPage(
        items=tuple(records),
        total_matching=_as_int(payload.get("numFound")) or 0,
        offset_consumed=offset,
        docs_consumed=len(docs),
    )


def extract_error_message(payload: Any, fallback: str) -> str:
    """Pick the human-readable part of an error body."""
    if isinstance(payload, dict):
        detail = payload.get("error") or payload.get("message")
        if detail:
            return str(detail)
    return fallback
