"""
Whitelist policy, sanitizers and settings
"""
import logging

import pytest

from safeorm.base import Record
from safeorm.config import configure, get_settings
from safeorm.orm_types import Text, Number
from safeorm.security import MassAssignmentPolicy
from safeorm.errors import ConfigurationError, ForbiddenAttributeError, UnknownAttributeError


class Note(Record):
    id = Number(pk=True)
    title = Text()
    body = Text()
    secret = Text()

    class Meta:
        table_name = "sec_notes"
        attr_accessible = ("id", "title", "body")


class Ticket(Record):
    id = Number(pk=True)
    subject = Text()
    priority = Number(default=3)

    class Meta:
        table_name = "sec_tickets"
        attr_protected = ("priority",)


class Locked(Record):
    id = Number(pk=True)
    name = Text()

    class Meta:
        table_name = "sec_locked"


class Draft(Record):
    id = Number(pk=True)
    name = Text()
    owner_token = Text()

    class Meta:
        table_name = "sec_drafts"
        attr_accessible = ("name",)
        mass_assignment_sanitizer = "logger"


def test_accessible_attributes_are_assigned():
    note = Note(title="a", body="b")
    assert (note.title, note.body) == ("a", "b")


def test_protected_attribute_raises_and_writes_nothing():
    note = Note.new()
    with pytest.raises(ForbiddenAttributeError) as exc:
        note.assign_attributes({"title": "a", "secret": "s"})

    assert exc.value.attributes == ["secret"]
    assert "Note" in str(exc.value)
    assert note.title is None


def test_primary_key_is_always_protected():
    with pytest.raises(ForbiddenAttributeError) as exc:
        Note(id=99, title="a")
    assert exc.value.attributes == ["id"]


def test_direct_attribute_writes_are_not_filtered():
    note = Note(title="a")
    note.secret = "s"
    assert note.secret == "s"


def test_attr_protected_is_a_blacklist():
    ticket = Ticket(subject="broken")
    assert ticket.subject == "broken"
    assert ticket.priority == 3

    with pytest.raises(ForbiddenAttributeError):
        Ticket(subject="broken", priority=1)


def test_unknown_attribute_is_reported():
    with pytest.raises(UnknownAttributeError):
        Ticket(subjekt="typo")


def test_undeclared_model_accepts_nothing():
    with pytest.raises(ForbiddenAttributeError):
        Locked(name="x")


def test_undeclared_model_without_whitelist_setting():
    configure(whitelist_attributes=False)

    assert Locked(name="x").name == "x"
    with pytest.raises(ForbiddenAttributeError):
        Locked(id=1)


def test_logger_sanitizer_drops_and_logs(caplog):
    configure(mass_assignment_sanitizer="logger")

    with caplog.at_level(logging.WARNING, logger="safeorm.security"):
        note = Note(title="a", secret="s")

    assert note.title == "a"
    assert note.secret is None
    assert "Can't mass-assign protected attributes for Note: secret" in caplog.text


def test_model_sanitizer_overrides_setting(caplog):
    with caplog.at_level(logging.WARNING, logger="safeorm.security"):
        draft = Draft(name="d", owner_token="t")

    assert draft.owner_token is None
    assert "owner_token" in caplog.text


def test_roles_select_the_whitelist():
    policy = MassAssignmentPolicy("Doc", accessible={"default": ("a",), "admin": ("a", "b")})

    assert policy.sanitize({"a": 1, "b": 2}, role="admin") == {"a": 1, "b": 2}
    with pytest.raises(ForbiddenAttributeError):
        policy.sanitize({"a": 1, "b": 2})
    with pytest.raises(ForbiddenAttributeError):
        policy.sanitize({"a": 1}, role="guest")


def test_policy_rejects_conflicting_options():
    with pytest.raises(ConfigurationError):
        MassAssignmentPolicy("Doc", accessible=("a",), protected=("b",))
    with pytest.raises(ConfigurationError):
        MassAssignmentPolicy("Doc", accessible=("a",), sanitizer="silent")


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("SAFEORM_MASS_ASSIGNMENT_SANITIZER", "logger")
    monkeypatch.setenv("SAFEORM_DEFAULT_ROLE", "member")
    configure()

    settings = get_settings()
    assert settings.mass_assignment_sanitizer == "logger"
    assert settings.default_role == "member"


def test_configure_rejects_unknown_setting():
    with pytest.raises(ValueError):
        configure(sanitiser="strict")
