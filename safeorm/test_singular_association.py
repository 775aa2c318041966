"""
has_one / belongs_to build and create
"""
import pytest

from safeorm.base import Record
from safeorm.orm_types import Text, Number, HasOne, BelongsTo
from safeorm.errors import ForbiddenAttributeError, RecordInvalid, AssociationTypeMismatch


class Owner(Record):
    id = Number(pk=True)
    name = Text()
    passport = HasOne("Passport", inverse_of="owner")
    company = BelongsTo("Company", inverse_of="owner")

    class Meta:
        table_name = "sg_owners"
        attr_accessible = ("name",)


class Passport(Record):
    id = Number(pk=True)
    number = Text(nullable=False)
    verified = Text(default="no")
    owner = BelongsTo("Owner")

    class Meta:
        table_name = "sg_passports"
        attr_accessible = ("number",)


class Company(Record):
    id = Number(pk=True)
    title = Text(nullable=False)
    owner = HasOne("Owner")

    class Meta:
        table_name = "sg_companies"
        attr_accessible = ("title",)


@pytest.fixture
def session(make_session):
    return make_session(Owner, Passport, Company)


@pytest.fixture
def owner(session):
    owner = Owner(name="Ada")
    session.add(owner)
    session.commit()
    return owner


def test_build_assigns_target_and_foreign_key(owner):
    passport = owner.association("passport").build({"number": "X1"})

    assert owner.passport is passport
    assert passport.owner_id == owner.id
    assert passport.owner is owner
    assert passport.new_record


def test_build_rejects_protected_attribute(owner):
    with pytest.raises(ForbiddenAttributeError):
        owner.association("passport").build({"number": "X1", "verified": "yes"})
    assert owner.passport is None


def test_build_replaces_unsaved_target(owner):
    first = owner.association("passport").build({"number": "A"})
    second = owner.association("passport").build({"number": "B"})

    assert owner.passport is second
    assert first.owner_id is None


def test_create_saves_record(session, owner):
    passport = owner.association("passport").create({"number": "P-1"})

    assert passport.persisted
    assert session.query(Passport).filter(owner_id=owner.id).first() is passport


def test_create_keeps_invalid_record_as_target(session, owner):
    passport = owner.association("passport").create({"number": ""})

    assert passport.new_record
    assert passport.errors["number"] == ["can't be blank"]
    assert owner.passport is passport
    assert session.query(Passport).count() == 0


def test_create_or_fail_raises_after_assigning_target(owner):
    with pytest.raises(RecordInvalid) as exc:
        owner.association("passport").create_or_fail({"number": ""})

    assert owner.passport is exc.value.record


def test_create_replaces_previous_target(session, owner):
    old = owner.association("passport").create({"number": "OLD"})
    new = owner.association("passport").create({"number": "NEW"})

    assert owner.passport is new
    assert old.owner_id is None
    assert old.owner is None
    assert session.query(Passport).filter(owner_id=owner.id).all() == [new]


def test_replaced_target_stays_detached_after_reload(session, owner):
    owner.association("passport").create({"number": "OLD"})
    owner.association("passport").create({"number": "NEW"})

    rows = session.engine.execute("SELECT number, owner_id FROM sg_passports ORDER BY id")
    assert [tuple(row) for row in rows] == [("OLD", None), ("NEW", owner.id)]

    session.identity_map.clear()
    fresh = session.get(Owner, owner.id)
    assert fresh.passport.number == "NEW"


def test_create_does_not_require_saved_owner(session):
    owner = Owner(name="Unsaved")
    session.add(owner)

    passport = owner.association("passport").create({"number": "N"})
    assert passport.persisted
    assert passport.owner_id is None

    session.commit()
    assert passport.owner_id == owner.id


def test_belongs_to_build_links_owner_after_save(session):
    owner = Owner(name="Founder")
    company = owner.association("company").build({"title": "Acme"})

    assert owner.company is company
    assert owner.company_id is None
    assert company.owner is owner

    session.add(owner)
    session.commit()
    assert company.persisted
    assert owner.company_id == company.id


def test_belongs_to_create_sets_foreign_key(owner):
    company = owner.association("company").create({"title": "Initech"})
    assert owner.company_id == company.id


def test_assigning_wrong_type_fails(owner):
    with pytest.raises(AssociationTypeMismatch):
        owner.company = Passport(number="nope")
