# extraction/enricher.py
import dataclasses
from typing import Optional

from catalog.logger import get_logger
from catalog.models import LineItemAttrs
from .cache import ExtractionCache
from .client import Extraction, ExtractionError, UnexpectedShapeError

logger = get_logger(__name__)


def apply_extraction(attrs: LineItemAttrs, extraction: Extraction) -> LineItemAttrs:
    """Overwrite a field only when the extraction produced something for it."""
    changes = {}
    if extraction.expiration_notice:
        changes["expiration_notice"] = extraction.expiration_notice
    if extraction.notes:
        changes["notes"] = extraction.notes
    if extraction.description:
        changes["description"] = extraction.description
    return dataclasses.replace(attrs, **changes)


class DescriptionEnricher:
    """
    Pulls expiration notices and special instructions out of a description.

    Results are cached by description hash, so the external call is paid at
    most once per distinct description across all rows and all runs. An
    extraction failure is logged and the attrs come back unchanged; it never
    blocks the row from being saved.
    """

    def __init__(self, client, cache: ExtractionCache):
        self.client = client
        self.cache = cache

    def _cached(self, description: str) -> Optional[Extraction]:
        data = self.cache.get(description)
        if data is None:
            return None
        try:
            return Extraction.from_payload(data)
        except UnexpectedShapeError as e:
            logger.warning("Ignoring unusable cache entry: %s", e)
            return None

    def process(self, attrs: LineItemAttrs, skip_enrichment: bool = False) -> LineItemAttrs:
        description = attrs.description
        if skip_enrichment or not description:
            return attrs

        extraction = self._cached(description)
        if extraction is not None:
            logger.debug("Cache hit for item %s description.", attrs.item_identifier)
            return apply_extraction(attrs, extraction)

        try:
            extraction = self.client.extract(description)
        except ExtractionError as e:
            logger.warning(
                "Failed to process description for item %s: %s",
                attrs.item_identifier,
                e,
            )
            return attrs

        self.cache.put(description, extraction.as_dict())
        logger.info("Extracted description fields for item %s", attrs.item_identifier)
        return apply_extraction(attrs, extraction)
