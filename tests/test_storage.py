import pytest

from catalog.errors import PersistenceError
from catalog.models import LineItemAttrs


def attrs(**kw):
    base = dict(item_identifier=139, short_title="AC Hotel", title="AC Hotel Weekend", value=450)
    base.update(kw)
    return LineItemAttrs(**base)


class TestItems:
    def test_ensure_db_is_idempotent(self, store):
        store.ensure_db()
        store.ensure_db()
        assert store.count_items() == 0

    def test_find_or_create(self, store):
        item, created = store.find_or_create_item(139)
        again, created_again = store.find_or_create_item(139)
        assert created is True
        assert created_again is False
        assert again.id == item.id
        assert item.item_identifier == 139
        assert item.inserted_at.endswith("+00:00")

    def test_identifier_must_be_positive(self, store):
        with pytest.raises(PersistenceError):
            store.find_or_create_item(0)


class TestLineItems:
    def test_insert_and_get(self, store):
        item, _ = store.find_or_create_item(139)
        store.insert_line_item(item.id, 1, attrs(description="<p>Two nights</p>"), "h1", "raw,1")

        li = store.get_line_item(item.id, 1)
        assert li.identifier == 1
        assert li.item_identifier == 139
        assert li.slug == "ac_hotel"
        assert li.description == "<p>Two nights</p>"
        assert li.csv_row_hash == "h1"
        assert li.csv_raw_line == "raw,1"
        assert store.get_line_item(item.id, 2) is None

    def test_position_is_unique_per_item(self, store):
        item, _ = store.find_or_create_item(139)
        store.insert_line_item(item.id, 1, attrs(), "h1", "raw")
        with pytest.raises(PersistenceError):
            store.insert_line_item(item.id, 1, attrs(), "h2", "raw2")
        assert store.count_line_items() == 1

    def test_update_in_place(self, store):
        item, _ = store.find_or_create_item(139)
        line_item_id = store.insert_line_item(item.id, 1, attrs(), "h1", "raw")
        store.update_line_item(line_item_id, attrs(title="Changed"), "h2", "raw2")

        li = store.get_line_item(item.id, 1)
        assert li.id == line_item_id
        assert li.title == "Changed"
        assert li.csv_row_hash == "h2"

    def test_delete_and_prune_empty_items(self, store):
        a, _ = store.find_or_create_item(103)
        b, _ = store.find_or_create_item(139)
        a1 = store.insert_line_item(a.id, 1, attrs(item_identifier=103), "h", "r")
        store.insert_line_item(b.id, 1, attrs(), "h", "r")

        assert store.delete_line_items([a1]) == 1
        assert store.delete_empty_items() == 1
        assert store.count_items() == 1
        assert store.delete_line_items([]) == 0

    def test_keys_and_listing_order(self, store):
        b, _ = store.find_or_create_item(139)
        a, _ = store.find_or_create_item(103)
        store.insert_line_item(b.id, 2, attrs(), "h", "r")
        store.insert_line_item(b.id, 1, attrs(), "h", "r")
        store.insert_line_item(a.id, 1, attrs(item_identifier=103), "h", "r")

        listed = [(li.item_identifier, li.identifier) for li in store.list_line_items()]
        assert listed == [(103, 1), (139, 1), (139, 2)]
        assert sorted(k[1:] for k in store.line_item_keys()) == [(103, 1), (139, 1), (139, 2)]
        assert store.count_for_item(b.id) == 2
