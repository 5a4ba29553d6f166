#!/usr/bin/env python3
"""Book Explorer CLI - Open Library search and description-based recommendations."""
import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from tabulate import tabulate

from bookscout.async_client import AsyncOpenLibraryClient
from bookscout.client import OpenLibraryClient
from bookscout.config import Config
from bookscout.covers import cover_image_url, info_url, resolve_cover_url
from bookscout.errors import BookScoutError, SearchFailure, ValidationFailure
from bookscout.models import BookRecord, SearchCriteria, SortOrder
from bookscout.recommend import RecommendationClient, RecommendedBook
from bookscout.session import AsyncResultAccumulator, PageOutcome, ResultAccumulator

logger = logging.getLogger(__name__)

FORBIDDEN_MESSAGE = (
    "Access to the book service is currently forbidden. "
    "Please check API key or service permissions."
)
LOCATION_MESSAGE = (
    "Book service access failed due to geographic restrictions. "
    "Please check your API key's settings."
)
NO_RESULTS_MESSAGE = "We couldn't find any books matching your search. Try different keywords."
NO_MORE_RESULTS_MESSAGE = "It seems there are no more books to load for this search."
NO_RECOMMENDATIONS_MESSAGE = (
    "We couldn't find any specific recommendations based on that description. "
    "Try being more detailed."
)


def describe_search_error(error: Exception, loading_more: bool = False) -> str:
    """Turn a search failure into text for the user."""
    if isinstance(error, ValidationFailure):
        return str(error)
    if isinstance(error, SearchFailure) and error.forbidden:
        return FORBIDDEN_MESSAGE
    if "cannot determine user location" in str(error).lower():
        return LOCATION_MESSAGE
    prefix = "Failed to fetch more books" if loading_more else "Failed to fetch books"
    return f"{prefix}: {error}"


def criteria_from_args(args) -> SearchCriteria:
    return SearchCriteria(
        title=args.title,
        author=args.author,
        genre=args.genre,
        sort_order=SortOrder.from_name(args.sort),
    )


def _truncate(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


def display_books(books: List[BookRecord], format_type: str, covers: Optional[List[str]] = None):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["#", "Title", "Authors", "First Published", "Genre"]
        rows = [
            [
                i,
                _truncate(book.title, 50),
                _truncate(book.authors_str, 30),
                book.first_publish_year or "N/A",
                _truncate(book.genre_str, 30),
            ]
            for i, book in enumerate(books, 1)
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        covers = covers or [cover_image_url(book) for book in books]
        books_dict = [
            {
                "id": book.id,
                "title": book.title,
                "authors": list(book.authors),
                "first_publish_year": book.first_publish_year,
                "genre": book.genre_str,
                "isbn": list(book.isbn_list),
                "cover_url": cover,
                "info_url": info_url(book),
            }
            for book, cover in zip(books, covers)
        ]
        print(json.dumps(books_dict, indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.authors_str}")


def display_recommendations(books: List[RecommendedBook], format_type: str):
    """Display recommendations in specified format."""
    if format_type == "json":
        print(json.dumps([book.model_dump() for book in books], indent=2))
        return

    rows = [
        [book.title, book.author, book.genre or "N/A", book.reason]
        for book in books
    ]
    print("\n" + tabulate(rows, headers=["Title", "Author", "Genre", "Why"],
                          tablefmt="grid", maxcolwidths=[None, None, None, 60]))


def report_search(accumulator, args) -> int:
    """Print the accumulated session; returns the exit code."""
    session = accumulator.snapshot()
    if session is None or not session.items:
        print(NO_RESULTS_MESSAGE)
        return 0

    covers = None
    if args.check_covers:
        covers = [resolve_cover_url(book, timeout=Config.HTTP_TIMEOUT) for book in session.items]

    display_books(session.items, args.format, covers)
    if args.format != "json":
        print(f"\nShowing {len(session.items)} of {session.total_matching} books")
    return 0


def _log_outcome(outcome: PageOutcome):
    if outcome is PageOutcome.NO_MORE_RESULTS:
        print(NO_MORE_RESULTS_MESSAGE)


def search_books_sync(args, config: Config) -> int:
    """Search using the blocking client, paging with load_more."""
    with OpenLibraryClient(config.OPEN_LIBRARY_SEARCH_URL, timeout=config.HTTP_TIMEOUT) as client:
        accumulator = ResultAccumulator(client, page_size=args.limit)

        try:
            outcome = accumulator.start_new_search(criteria_from_args(args))
        except BookScoutError as e:
            print(describe_search_error(e), file=sys.stderr)
            return 1

        for _ in range(args.pages - 1):
            if outcome is not PageOutcome.RESULTS:
                break
            try:
                outcome = accumulator.load_more()
            except BookScoutError as e:
                print(describe_search_error(e, loading_more=True), file=sys.stderr)
                break
            _log_outcome(outcome)

        return report_search(accumulator, args)


async def search_books_async(args, config: Config) -> int:
    """Search using the async client."""
    async with AsyncOpenLibraryClient(config.OPEN_LIBRARY_SEARCH_URL, timeout=config.HTTP_TIMEOUT) as client:
        accumulator = AsyncResultAccumulator(client, page_size=args.limit)

        try:
            outcome = await accumulator.start_new_search(criteria_from_args(args))
        except BookScoutError as e:
            print(describe_search_error(e), file=sys.stderr)
            return 1

        for _ in range(args.pages - 1):
            if outcome is not PageOutcome.RESULTS:
                break
            try:
                outcome = await accumulator.load_more()
            except BookScoutError as e:
                print(describe_search_error(e, loading_more=True), file=sys.stderr)
                break
            _log_outcome(outcome)

        return report_search(accumulator, args)


def recommend_books(args, config: Config) -> int:
    """Ask the model for books similar to a description."""
    client = RecommendationClient()

    try:
        result = client.invoke(args.description)
    except ValidationFailure as e:
        print(str(e), file=sys.stderr)
        return 1
    except BookScoutError as e:
        logger.error(f"Recommendation failed: {e}")
        print("Failed to get recommendations. Please try again.", file=sys.stderr)
        return 1

    if not result.recommendations:
        print(NO_RECOMMENDATIONS_MESSAGE)
        return 0

    print(f"Here are {len(result.recommendations)} books you might like.")
    display_recommendations(result.recommendations, args.format)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Book Explorer - Open Library search and AI recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search by title
  %(prog)s search --title "the great gatsby"

  # Newest science fiction, three pages of results
  %(prog)s search --genre "science fiction" --sort newest --pages 3

  # Recommend books like a description
  %(prog)s recommend "A lonely lighthouse keeper finds a message in a bottle"
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Search command
    search_parser = subparsers.add_parser("search", help="Search for books")
    search_parser.add_argument("--title", help="Book title (or keyword)")
    search_parser.add_argument("--author", help="Author name")
    search_parser.add_argument("--genre", help="Genre/subject")
    search_parser.add_argument(
        "--sort", choices=["relevance", "title", "newest", "oldest"], default="relevance",
        help="Sort order (default: relevance)"
    )
    search_parser.add_argument(
        "--limit", type=int, default=Config.RESULTS_PER_PAGE,
        help=f"Results per page (default: {Config.RESULTS_PER_PAGE})"
    )
    search_parser.add_argument("--pages", type=int, default=1, help="Pages to load (default: 1)")
    search_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    search_parser.add_argument("--check-covers", action="store_true", help="Verify cover images exist (json output)")
    search_parser.add_argument("--async", dest="use_async", action="store_true", help="Use async client")

    # Recommend command
    recommend_parser = subparsers.add_parser("recommend", help="Recommend books from a description")
    recommend_parser.add_argument("description", help="Description of a book you liked (20+ characters)")
    recommend_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = Config()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        if args.command == "search":
            if args.limit < 1 or args.pages < 1:
                parser.error("--limit and --pages must be positive")
            if args.use_async:
                return asyncio.run(search_books_async(args, config))
            return search_books_sync(args, config)

        elif args.command == "recommend":
            return recommend_books(args, config)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
