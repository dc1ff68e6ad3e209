import pytest

from catalog.config import DEFAULT_FIELD_TABLE
from catalog.reconcile import ImportReconciler
from catalog.rows import resolve_headers
from catalog.storage import Store
from extraction.cache import ExtractionCache
from extraction.client import Extraction
from extraction.enricher import DescriptionEnricher

HEADERS = [
    "Apply Sales Tax? (Y/N)",
    "ITEM ID",
    "15 CHARACTER DESCRIPTION",
    "100 CHARACTER DESCRIPTION",
    "1500 CHARACTER DESCRIPTION (OPTIONAL)",
    "FAIR MARKET VALUE",
    "CATEGORIES (OPTIONAL)",
]


class FakeClient:
    """Stands in for AnthropicClient; records every description it is asked about."""

    def __init__(self, result=None, error=None):
        self.result = result or Extraction(
            expiration_notice="Expires 12/31/2026",
            notes="Call ahead to book",
            description="Two nights at the AC Hotel",
        )
        self.error = error
        self.calls = []

    def extract(self, description):
        self.calls.append(description)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def headers():
    return list(HEADERS)


@pytest.fixture
def header_map():
    return resolve_headers(HEADERS, DEFAULT_FIELD_TABLE)


@pytest.fixture
def make_row():
    def _make_row(
        item_id,
        short_title="AC Hotel",
        title="AC Hotel Weekend",
        description="Two nights at the AC Hotel",
        value="$450",
        categories="TRAVEL",
    ):
        return ["", str(item_id), short_title, title, description, value, categories]

    return _make_row


@pytest.fixture
def store(tmp_path):
    s = Store(str(tmp_path / "db" / "receipts.sqlite3"))
    s.ensure_db()
    return s


@pytest.fixture
def cache(tmp_path):
    return ExtractionCache(str(tmp_path / "cache"))


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def make_client():
    return FakeClient


@pytest.fixture
def enricher(fake_client, cache):
    return DescriptionEnricher(fake_client, cache)


@pytest.fixture
def reconciler(store, enricher):
    return ImportReconciler(store, enricher)
