# catalog/models.py
import re
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

_LEADING_INT_RE = re.compile(r"[+-]?\d+")
_SLUG_RE = re.compile(r"[^a-z0-9]+")


def parse_integer(value: str | None) -> Optional[int]:
    """
    Parse the leading integer of ``value`` ("103", " 42 ", "1200.50" -> 1200).
    Returns None when there is no leading integer at all.
    """
    if value is None:
        return None
    m = _LEADING_INT_RE.match(str(value).strip())
    if not m:
        return None
    return int(m.group(0))


def parse_amount(value: str | None) -> Optional[int]:
    """Parse a whole-dollar amount such as "$1,200" or "450.00"."""
    if value is None:
        return None
    s = str(value).strip().replace("$", "").replace(",", "").replace(" ", "")
    return parse_integer(s)


def coerce_non_negative(value: int | None) -> int:
    if value is None or value < 0:
        return 0
    return value


def slugify(text: str) -> str:
    return _SLUG_RE.sub("_", (text or "").lower()).strip("_")


@dataclass
class LineItemAttrs:
    """
    Typed attributes of one export row, before or after enrichment.
    Text fields default to "" and numbers to 0; nothing here ever raises.
    """
    item_identifier: int = 0
    short_title: str = ""
    title: str = ""
    description: str = ""
    value: int = 0
    categories: str = ""
    notes: str = ""
    expiration_notice: str = ""

    @classmethod
    def from_fields(cls, fields: Dict[str, str]) -> "LineItemAttrs":
        def text(name: str) -> str:
            return (fields.get(name) or "").strip()

        return cls(
            item_identifier=coerce_non_negative(parse_integer(fields.get("item_id"))),
            short_title=text("short_title"),
            title=text("title"),
            description=text("description"),
            value=coerce_non_negative(parse_amount(fields.get("value"))),
            categories=text("categories"),
            notes=text("notes"),
            expiration_notice=text("expiration_notice"),
        )

    @property
    def slug(self) -> str:
        return slugify(self.short_title) or slugify(self.title)


@dataclass
class Item:
    id: int
    item_identifier: int
    inserted_at: str = ""
    updated_at: str = ""


@dataclass
class LineItem:
    """A stored line item, as handed to the receipt renderer."""
    id: int
    item_id: int
    identifier: int
    short_title: str = ""
    title: str = ""
    slug: str = ""
    description: str = ""
    value: int = 0
    categories: str = ""
    notes: str = ""
    expiration_notice: str = ""
    csv_row_hash: str = ""
    csv_raw_line: str = ""
    inserted_at: str = ""
    updated_at: str = ""
    item_identifier: int = 0


def receipt_basename(line_item: LineItem, total: int) -> str:
    """
    Base filename for a line item's receipt.
      - single line item:   receipt_103_landscaping
      - several line items: receipt_139_1_of_3_ac_hotel
    """
    slug = line_item.slug or slugify(line_item.short_title) or slugify(line_item.title)
    if total > 1:
        base = f"receipt_{line_item.item_identifier}_{line_item.identifier}_of_{total}"
    else:
        base = f"receipt_{line_item.item_identifier}"
    return f"{base}_{slug}" if slug else base


@dataclass
class RowIssue:
    row_number: int
    item_identifier: str
    reason: str


@dataclass
class ReconcileOptions:
    skip_enrichment: bool = False


@dataclass
class RunStats:
    new_items: int = 0
    new_line_items: int = 0
    updated: int = 0
    skipped: int = 0
    deleted: int = 0
    deleted_items: int = 0
    failed: int = 0
    pruning_skipped: bool = False
    issues: List[RowIssue] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.new_items or self.new_line_items or self.updated
            or self.deleted or self.deleted_items
        )

    def as_dict(self) -> dict:
        return asdict(self)
