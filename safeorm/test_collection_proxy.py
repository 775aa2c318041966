"""
CollectionProxy forwarding and reads
"""
from types import SimpleNamespace

import pytest

from safeorm.base import Record
from safeorm.collection_proxy import CollectionProxy
from safeorm.orm_types import Text, Number, HasMany, BelongsTo


class SpyAssociation:
    def __init__(self):
        self.calls = []
        self.reflection = SimpleNamespace(name="items")

    def build(self, *args):
        self.calls.append(("build", args))
        return "built"

    def create(self, *args):
        self.calls.append(("create", args))
        return "created"

    def create_or_fail(self, *args):
        self.calls.append(("create_or_fail", args))
        return "created!"


class Shelf(Record):
    id = Number(pk=True)
    label = Text()
    items = HasMany("Item", inverse_of="shelf")

    class Meta:
        table_name = "px_shelves"
        attr_accessible = ("label",)


class Item(Record):
    id = Number(pk=True)
    name = Text(nullable=False)
    shelf = BelongsTo("Shelf")

    class Meta:
        table_name = "px_items"
        attr_accessible = ("name",)


@pytest.fixture
def shelf(make_session):
    session = make_session(Shelf, Item)
    shelf = Shelf(label="top")
    session.add(shelf)
    session.commit()
    return shelf


def test_construction_is_forwarded_unchanged():
    spy = SpyAssociation()
    proxy = CollectionProxy(spy)

    def customizer(record):
        pass
    attrs = {"name": "a"}

    assert proxy.build(attrs, customizer, "admin") == "built"
    assert proxy.new(attrs) == "built"
    assert proxy.create(attrs, role="admin") == "created"
    assert proxy.create_or_fail([attrs], customizer) == "created!"

    assert spy.calls == [
        ("build", (attrs, customizer, "admin")),
        ("build", (attrs, None, None)),
        ("create", (attrs, None, "admin")),
        ("create_or_fail", ([attrs], customizer, None)),
    ]
    assert spy.calls[0][1][0] is attrs


def test_reader_returns_the_same_proxy(shelf):
    assert shelf.items is shelf.items
    assert shelf.items.association is shelf.association("items")


def test_collection_reads(shelf):
    first = shelf.items.create({"name": "lamp"})
    second = shelf.items.build({"name": "vase"})

    assert len(shelf.items) == 2
    assert list(shelf.items) == [first, second]
    assert shelf.items[1] is second
    assert first in shelf.items
    assert "items" in repr(shelf.items)


def test_reload_drops_unsaved_records(shelf):
    saved = shelf.items.create({"name": "lamp"})
    shelf.items.build({"name": "vase"})

    assert shelf.items.reload().to_list() == [saved]


def test_collection_cannot_be_assigned(shelf):
    with pytest.raises(AttributeError):
        shelf.items = []
