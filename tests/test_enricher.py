import json
import logging

from catalog.models import LineItemAttrs
from extraction.cache import ExtractionCache
from extraction.client import Extraction, MissingApiKeyError, TransportError
from extraction.enricher import DescriptionEnricher

DESCRIPTION = "Two nights at the AC Hotel. Call ahead to book. Expires 12/31/2026."


def attrs(**overrides):
    base = dict(item_identifier=139, title="AC Hotel Weekend", description=DESCRIPTION, value=450)
    base.update(overrides)
    return LineItemAttrs(**base)


class TestSkipping:
    def test_skip_flag_returns_attrs_unchanged(self, enricher, fake_client):
        a = attrs()
        assert enricher.process(a, skip_enrichment=True) == a
        assert fake_client.calls == []

    def test_empty_description_returns_attrs_unchanged(self, enricher, fake_client):
        a = attrs(description="")
        assert enricher.process(a) == a
        assert fake_client.calls == []


class TestExtraction:
    def test_applies_extracted_fields(self, enricher):
        result = enricher.process(attrs())
        assert result.description == "Two nights at the AC Hotel"
        assert result.notes == "Call ahead to book"
        assert result.expiration_notice == "Expires 12/31/2026"
        assert result.title == "AC Hotel Weekend"

    def test_empty_extracted_fields_do_not_overwrite(self, cache, make_client):
        client = make_client(result=Extraction(expiration_notice="", notes="", description=""))
        enricher = DescriptionEnricher(client, cache)
        a = attrs(notes="Existing note")
        assert enricher.process(a) == a

    def test_result_is_cached(self, enricher, fake_client, cache):
        enricher.process(attrs())
        assert cache.get(DESCRIPTION) == fake_client.result.as_dict()

    def test_same_description_extracted_once(self, enricher, fake_client):
        first = enricher.process(attrs(item_identifier=139))
        second = enricher.process(attrs(item_identifier=140, title="Other"))
        assert len(fake_client.calls) == 1
        assert second.description == first.description
        assert second.title == "Other"

    def test_cache_survives_new_enricher(self, fake_client, tmp_path):
        cache_dir = str(tmp_path / "cache")
        DescriptionEnricher(fake_client, ExtractionCache(cache_dir)).process(attrs())
        DescriptionEnricher(fake_client, ExtractionCache(cache_dir)).process(attrs())
        assert len(fake_client.calls) == 1

    def test_unusable_cache_entry_triggers_extraction(self, enricher, fake_client, cache):
        cache.put(DESCRIPTION, {"something": "else"})
        result = enricher.process(attrs())
        assert len(fake_client.calls) == 1
        assert result.notes == "Call ahead to book"
        with open(cache.path_for(DESCRIPTION), encoding="utf-8") as f:
            assert json.load(f) == fake_client.result.as_dict()


class TestFailures:
    def test_missing_key_logs_and_returns_unchanged(self, cache, caplog, make_client):
        client = make_client(error=MissingApiKeyError("ANTHROPIC_API_KEY is not set"))
        enricher = DescriptionEnricher(client, cache)
        a = attrs(item_identifier=123)
        with caplog.at_level(logging.WARNING):
            assert enricher.process(a) == a
        assert "Failed to process description" in caplog.text
        assert "item 123" in caplog.text

    def test_failure_is_not_cached(self, cache, make_client):
        client = make_client(error=TransportError("timed out"))
        enricher = DescriptionEnricher(client, cache)
        enricher.process(attrs())
        enricher.process(attrs())
        assert len(client.calls) == 2
        assert cache.get(DESCRIPTION) is None
