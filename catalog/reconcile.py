# catalog/reconcile.py
import dataclasses
import hashlib
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .errors import ParseError, PersistenceError, RowValidationError
from .html_formatter import format_description
from .logger import get_logger
from .models import (
    Item,
    LineItemAttrs,
    ReconcileOptions,
    RowIssue,
    RunStats,
    parse_amount,
    parse_integer,
)
from .normalizer import normalize
from .rows import HeaderMap, is_blank_row, raw_line, row_fields
from .storage import Store

logger = get_logger(__name__)

# (item_identifier, position)
RowKey = Tuple[int, int]


def content_hash(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def validate_row(row: Sequence[str], header_map: HeaderMap) -> LineItemAttrs:
    """
    Build typed attrs for a data row, or raise RowValidationError for
    placeholder rows (unused template lines in the export) and rows whose item
    id is not a number.
    """
    fields = row_fields(row, header_map)
    raw_id = fields.get("item_id", "")
    raw_value = fields.get("value", "")

    if not raw_id:
        raise RowValidationError("placeholder row: blank item id", raw_id)
    item_identifier = parse_integer(raw_id)
    if item_identifier is None:
        raise RowValidationError(f"non-numeric item id {raw_id!r}", raw_id)
    if item_identifier <= 0:
        raise RowValidationError("placeholder row: item id is zero", raw_id)

    if not raw_value:
        raise RowValidationError("placeholder row: blank value", raw_id)
    value = parse_amount(raw_value)
    if value is None:
        raise RowValidationError(f"unparsable value {raw_value!r}", raw_id)
    if value == 0:
        raise RowValidationError(f"placeholder row: zero value {raw_value!r}", raw_id)

    # negative amounts are clamped to 0 by from_fields
    return LineItemAttrs.from_fields(fields)


def prepare_text(attrs: LineItemAttrs) -> LineItemAttrs:
    """Normalize text fields and render the description as HTML."""
    return dataclasses.replace(
        attrs,
        short_title=normalize(attrs.short_title),
        title=normalize(attrs.title),
        notes=normalize(attrs.notes),
        expiration_notice=normalize(attrs.expiration_notice),
        description=format_description(normalize(attrs.description)),
    )


class ImportReconciler:
    """
    Syncs one export against the store.

    Rows are keyed by (item id, position within that item id) where position is
    the 1-based order of the row among rows with the same item id. A row whose
    raw text hashes the same as the stored line item at that key is skipped
    outright; anything else is enriched, normalized and written. Line items
    whose key did not appear in the run are deleted, but only after every row
    has been examined.
    """

    def __init__(self, store: Store, enricher=None):
        self.store = store
        self.enricher = enricher

    def prepare(self, attrs: LineItemAttrs, options: ReconcileOptions) -> LineItemAttrs:
        if self.enricher is not None:
            attrs = self.enricher.process(attrs, skip_enrichment=options.skip_enrichment)
        return prepare_text(attrs)

    def _collect(
        self, rows: Iterable[Sequence[str]], header_map: HeaderMap, stats: RunStats
    ) -> Dict[int, List[Tuple[int, Sequence[str], LineItemAttrs]]]:
        try:
            materialized = list(rows)
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(f"Failed to read rows: {e}") from e

        groups: Dict[int, List[Tuple[int, Sequence[str], LineItemAttrs]]] = {}
        for row_number, row in enumerate(materialized, 1):
            if is_blank_row(row):
                continue
            try:
                attrs = validate_row(row, header_map)
            except RowValidationError as e:
                logger.warning("Skipping row %d (item id %r): %s", row_number, e.item_identifier, e.reason)
                stats.issues.append(RowIssue(row_number, e.item_identifier, e.reason))
                continue
            groups.setdefault(attrs.item_identifier, []).append((row_number, row, attrs))
        return groups

    def _sync_row(
        self,
        items: Dict[int, Item],
        position: int,
        row: Sequence[str],
        attrs: LineItemAttrs,
        options: ReconcileOptions,
        stats: RunStats,
    ):
        raw = raw_line(row)
        row_hash = content_hash(raw)

        item = items.get(attrs.item_identifier)
        if item is None:
            item, created = self.store.find_or_create_item(attrs.item_identifier)
            if created:
                stats.new_items += 1
            items[attrs.item_identifier] = item

        existing = self.store.get_line_item(item.id, position)
        if existing is not None and existing.csv_row_hash == row_hash:
            stats.skipped += 1
            return

        prepared = self.prepare(attrs, options)
        if existing is None:
            self.store.insert_line_item(item.id, position, prepared, row_hash, raw)
            stats.new_line_items += 1
            logger.info("Created line item %s #%d", attrs.item_identifier, position)
        else:
            self.store.update_line_item(existing.id, prepared, row_hash, raw)
            stats.updated += 1
            logger.info("Updated line item %s #%d", attrs.item_identifier, position)

    def _prune(self, seen: Set[RowKey], stats: RunStats):
        if not seen:
            existing = self.store.count_line_items()
            if existing > 0:
                logger.error(
                    "Export has zero valid rows but the store holds %d line items; skipping orphan cleanup.",
                    existing,
                )
                stats.pruning_skipped = True
                return

        orphans = [
            line_item_id
            for line_item_id, item_identifier, identifier in self.store.line_item_keys()
            if (item_identifier, identifier) not in seen
        ]
        if orphans:
            logger.info("Deleting %d orphan line items.", len(orphans))
        stats.deleted = self.store.delete_line_items(orphans)
        stats.deleted_items = self.store.delete_empty_items()

    def reconcile(
        self,
        rows: Iterable[Sequence[str]],
        header_map: HeaderMap,
        options: Optional[ReconcileOptions] = None,
    ) -> RunStats:
        options = options or ReconcileOptions()
        stats = RunStats()

        groups = self._collect(rows, header_map, stats)
        total = sum(len(g) for g in groups.values())
        logger.info("Reconciling %d valid rows across %d items.", total, len(groups))

        items: Dict[int, Item] = {}
        seen: Set[RowKey] = set()

        for item_identifier, group in groups.items():
            for position, (row_number, row, attrs) in enumerate(group, 1):
                # A failed write keeps its key so the stored record survives pruning.
                seen.add((item_identifier, position))
                try:
                    self._sync_row(items, position, row, attrs, options, stats)
                except PersistenceError as e:
                    logger.error(
                        "Failed to save row %d (item %s #%d): %s",
                        row_number, item_identifier, position, e,
                    )
                    stats.failed += 1
                    stats.issues.append(
                        RowIssue(row_number, str(item_identifier), f"persistence error: {e}")
                    )

        self._prune(seen, stats)

        logger.info(
            "Import done: %d new items, %d new line items, %d updated, %d skipped, "
            "%d deleted, %d items deleted, %d failed.",
            stats.new_items,
            stats.new_line_items,
            stats.updated,
            stats.skipped,
            stats.deleted,
            stats.deleted_items,
            stats.failed,
        )
        return stats
