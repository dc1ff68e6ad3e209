# catalog/rows.py
import csv
import io
from typing import Dict, List, Sequence, Tuple

from .errors import ParseError
from .logger import get_logger

logger = get_logger(__name__)

# field name -> column index
HeaderMap = Dict[str, int]


def resolve_headers(header_row: Sequence[str], field_table: Dict[str, str]) -> HeaderMap:
    """
    Map semantic fields to column indexes. Header names are matched trimmed and
    case-insensitively; the first column that resolves to a field wins.
    """
    header_map: HeaderMap = {}
    for index, name in enumerate(header_row):
        field_name = field_table.get(str(name).strip().upper())
        if field_name and field_name not in header_map:
            header_map[field_name] = index
    return header_map


def row_fields(row: Sequence[str], header_map: HeaderMap) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for field_name, index in header_map.items():
        out[field_name] = str(row[index]).strip() if index < len(row) else ""
    return out


def raw_line(row: Sequence[str]) -> str:
    """Re-serialize a row as a single CSV line; this is what gets hashed."""
    buf = io.StringIO()
    csv.writer(buf, lineterminator="").writerow(row)
    return buf.getvalue()


def is_blank_row(row: Sequence[str]) -> bool:
    return all(not str(v).strip() for v in row)


def read_rows(path: str, field_table: Dict[str, str]) -> Tuple[HeaderMap, List[List[str]]]:
    """
    Read the export at ``path`` and return (header_map, data_rows).

    The export carries a title row and blank rows above the real header, so
    the header is the first row where the item id column resolves. The whole
    file is read before returning: a tokenizing failure must surface before
    anything touches the store.
    """
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            rows = list(csv.reader(f))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ParseError(f"Failed to read export {path}: {e}") from e

    for pos, row in enumerate(rows):
        header_map = resolve_headers(row, field_table)
        if "item_id" in header_map:
            if "value" not in header_map:
                raise ParseError(f"Header row in {path} has no value column")
            logger.debug(
                "Header row found at line %d of %s: %s", pos + 1, path, header_map
            )
            return header_map, rows[pos + 1:]

    raise ParseError(f"No header row with an item id column found in {path}")
