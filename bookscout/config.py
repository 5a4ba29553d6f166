"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_float(name: str):
    value = os.getenv(name)
    return float(value) if value else None


class Config:
    """Application configuration."""

    # Open Library
    OPEN_LIBRARY_SEARCH_URL = os.getenv("OPEN_LIBRARY_SEARCH_URL", "https://openlibrary.org/search.json")
    OPEN_LIBRARY_COVERS_URL = os.getenv("OPEN_LIBRARY_COVERS_URL", "https://covers.openlibrary.org/b")
    RESULTS_PER_PAGE = int(os.getenv("RESULTS_PER_PAGE", "12"))

    # None keeps the HTTP library's own default
    HTTP_TIMEOUT = _optional_float("HTTP_TIMEOUT")

    # Gemini
    GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
