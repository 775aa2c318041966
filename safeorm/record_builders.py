"""
Record builders used by associations to construct related records.

Every association owns one builder. Through associations wrap the protected
builder instead of replacing it:

    ProtectedRecordBuilder                       has_many, has_one, belongs_to
    ThroughRecordBuilder(Protected...)           has_one_through
    HasManyThroughRecordBuilder(Through...)      has_many_through

Caller attributes only ever reach a record through ``Record.assign_attributes``,
which always consults the model's whitelist policy. Values the association
itself controls (creation scope, the inverse key of a through target) are
written separately as forced attributes.
"""
from abc import ABC, abstractmethod


class AssociationRecordBuilder(ABC):
    def __init__(self, association):
        self.association = association

    @abstractmethod
    def build(self, attributes, forced=None, role=None):
        """Return a new, unsaved record for the association."""


class ProtectedRecordBuilder(AssociationRecordBuilder):
    def build(self, attributes, forced=None, role=None):
        reflection = self.association.reflection
        creation_scope = self.association.creation_scope()

        def apply_creation_scope(record):
            # the record's own changes win, except for the foreign key
            skipped = set(record.changed) - {reflection.foreign_key}
            values = {name: value for name, value in creation_scope.items() if name not in skipped}
            if forced:
                values.update(forced)
            record._write_forced_attributes(values)

        return reflection.build_association(attributes or {}, apply_creation_scope, role=role)


class ThroughRecordBuilder(AssociationRecordBuilder):
    """Points the new record back at an already loaded, singular through target."""

    def __init__(self, association, builder):
        super().__init__(association)
        self.builder = builder

    def build(self, attributes, forced=None, role=None):
        forced = dict(forced or {})
        inverse = self.association.source_reflection.inverse_of
        target = self.association.through_association.target

        if (inverse is not None and inverse.macro == "belongs_to"
                and target is not None and not isinstance(target, list)):
            forced[inverse.foreign_key] = target.pk

        return self.builder.build(attributes, forced, role)


class HasManyThroughRecordBuilder(AssociationRecordBuilder):
    """Also builds the join record and links it into the new record's inverse."""

    def __init__(self, association, builder):
        super().__init__(association)
        self.builder = builder

    def build(self, attributes, forced=None, role=None):
        association = self.association
        association.ensure_not_nested()

        record = self.builder.build(attributes, forced, role)

        inverse = association.source_reflection.inverse_of
        if inverse is not None:
            if inverse.macro == "has_many":
                record.association(inverse.name).add_to_target(association.build_through_record(record))
            elif inverse.macro == "has_one":
                record.association(inverse.name).set_new_record(association.build_through_record(record))

        return record
