"""
Pytest configuration for bookscout tests.

Provides canned Open Library payloads and a scripted search client.
"""
import os

import pytest

from bookscout.parse import parse_search_response

# Never talk to a real model from tests
os.environ.setdefault("GOOGLE_API_KEY", "test-google-api-key")


def make_doc(n: int) -> dict:
    """A minimal search doc with a unique work key."""
    return {
        "key": f"/works/OL{n}W",
        "title": f"Book {n}",
        "author_name": [f"Author {n}"],
        "first_publish_year": 1900 + n,
    }


def make_payload(start: int, count: int, num_found: int) -> dict:
    return {
        "numFound": num_found,
        "docs": [make_doc(n) for n in range(start, start + count)],
    }


class ScriptedClient:
    """
    Stand-in for OpenLibraryClient that returns queued responses.

    Each queued entry is either a payload dict or an exception to raise.
    Every call is recorded as (params, limit, offset).
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def fetch_page(self, params, limit=12, offset=0):
        self.calls.append((params, limit, offset))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return parse_search_response(response, offset)


@pytest.fixture
def scripted_client():
    return ScriptedClient()
