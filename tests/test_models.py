import pytest

from catalog.models import (
    LineItem,
    LineItemAttrs,
    RunStats,
    parse_amount,
    parse_integer,
    receipt_basename,
    slugify,
)


class TestParsing:
    @pytest.mark.parametrize(
        "raw, expected",
        [("103", 103), ("  103  ", 103), ("1200.50", 1200), ("-5", -5), ("abc", None), ("", None), (None, None)],
    )
    def test_parse_integer(self, raw, expected):
        assert parse_integer(raw) == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [("$1,200", 1200), ("$0", 0), ("$0.00", 0), ("450", 450), ("$ 75", 75), ("TBD", None)],
    )
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == expected


class TestLineItemAttrs:
    def test_defaults(self):
        a = LineItemAttrs.from_fields({})
        assert a == LineItemAttrs(
            item_identifier=0,
            short_title="",
            title="",
            description="",
            value=0,
            categories="",
            notes="",
            expiration_notice="",
        )

    def test_from_fields_trims_and_parses(self):
        a = LineItemAttrs.from_fields(
            {"item_id": " 103 ", "value": "$1,200", "categories": "  HOME  ", "short_title": "Landscaping"}
        )
        assert a.item_identifier == 103
        assert a.value == 1200
        assert a.categories == "HOME"
        assert a.slug == "landscaping"

    def test_negative_and_unparsable_numbers_coerce_to_zero(self):
        assert LineItemAttrs.from_fields({"item_id": "-4", "value": "-100"}).value == 0
        assert LineItemAttrs.from_fields({"item_id": "-4"}).item_identifier == 0
        assert LineItemAttrs.from_fields({"value": "call us"}).value == 0

    def test_slug_falls_back_to_title(self):
        assert LineItemAttrs(title="AC Hotel & Spa!").slug == "ac_hotel_spa"


class TestReceiptBasename:
    def line_item(self, **kw):
        base = dict(id=1, item_id=1, identifier=1, slug="landscaping", item_identifier=103)
        base.update(kw)
        return LineItem(**base)

    def test_single_line_item(self):
        assert receipt_basename(self.line_item(), 1) == "receipt_103_landscaping"

    def test_several_line_items(self):
        li = self.line_item(identifier=1, slug="ac_hotel", item_identifier=139)
        assert receipt_basename(li, 3) == "receipt_139_1_of_3_ac_hotel"

    def test_without_any_title(self):
        assert receipt_basename(self.line_item(slug=""), 1) == "receipt_103"

    def test_slugify(self):
        assert slugify("  Wine Trip -- Portugal ") == "wine_trip_portugal"
        assert slugify("") == ""


class TestRunStats:
    def test_has_changes(self):
        assert not RunStats(skipped=4).has_changes
        assert RunStats(updated=1).has_changes
        assert RunStats(deleted_items=1).has_changes
