"""Root pytest configuration."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)


@pytest.fixture(autouse=True)
def _reader_env(monkeypatch):
    """Keep reader page sizes at their defaults unless a test overrides them."""
    monkeypatch.delenv("READER_MAX_PAGE_CHARS", raising=False)
    monkeypatch.delenv("READER_LINES_PER_PAGE", raising=False)
