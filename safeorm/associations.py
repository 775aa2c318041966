"""
Associations bind an owner record to its related records.

An association is created lazily by ``Record.association(name)`` and cached on
the owner for the owner's lifetime. Singular associations (has_one,
belongs_to, has_one_through) hold one target record; collection associations
(has_many, has_many_through) hold a list and are exposed to callers through a
CollectionProxy.
"""
from safeorm.collection_proxy import CollectionProxy
from safeorm.record_builders import (
    ProtectedRecordBuilder, ThroughRecordBuilder, HasManyThroughRecordBuilder,
)
from safeorm.errors import (
    AssociationTypeMismatch, ConfigurationError, RecordInvalid, RecordNotSaved,
    UnsupportedNestedThroughError,
)


class Association:
    def __init__(self, owner, reflection):
        self.owner = owner
        self.reflection = reflection
        self.loaded = False
        self.target = None
        self.record_builder = self._record_builder()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.owner!r}.{self.reflection.name} loaded={self.loaded}>"

    def _record_builder(self):
        return ProtectedRecordBuilder(self)

    @property
    def klass(self):
        return self.reflection.klass

    @property
    def session(self):
        return self.owner._session

    def _require_session(self):
        return self.owner._require_session()

    def creation_scope(self):
        """Attributes this association forces onto every record it builds."""
        return dict(self.reflection.conditions)

    def build_record(self, attributes, role=None, forced=None):
        record = self.record_builder.build(attributes, forced=forced, role=role)
        if self.session is not None:
            object.__setattr__(record, '_session', self.session)
        return record

    def _check_record_type(self, record):
        if record is not None and not isinstance(record, self.klass):
            raise AssociationTypeMismatch(
                f"{self.klass.__name__} expected, got {record.__class__.__name__}"
            )

    def _find_target_p(self):
        return self.owner.persisted and self.session is not None

    def set_inverse_instance(self, record):
        inverse = self.reflection.inverse_of
        if inverse is not None and record is not None and inverse.macro in ("belongs_to", "has_one"):
            record.association(inverse.name).set_inverse_target(self.owner)

    def set_inverse_target(self, record):
        self.target = record
        self.loaded = True

    def reset(self):
        self.loaded = False
        self.target = None

    def reload(self):
        self.reset()
        self.load_target()
        return self

    def _matches_conditions(self, record):
        return all(record.__dict__.get(name) == value
                   for name, value in self.reflection.conditions.items())

    def before_owner_save(self):
        return True

    def after_owner_save(self):
        return True

    def _autosave(self, record):
        if self.session.save(record):
            return True
        self.owner.errors.add(self.reflection.name, "is invalid")
        return False


class SingularAssociation(Association):
    def reader(self):
        if not self.loaded:
            self.load_target()
        return self.target

    def writer(self, record):
        self.replace(record, save=True)

    def load_target(self):
        if not self.loaded:
            self.target = self.find_target() if self._find_target_p() else self.target
            self.loaded = True
        return self.target

    def find_target(self):
        raise NotImplementedError

    def set_new_record(self, record):
        self.replace(record, save=False)

    def build(self, attributes=None, customizer=None, role=None):
        record = self.build_record(attributes, role)
        if customizer is not None:
            customizer(record)
        self.set_new_record(record)
        return record

    def create(self, attributes=None, customizer=None, role=None):
        return self._create_record(attributes, customizer, role, raise_error=False)

    def create_or_fail(self, attributes=None, customizer=None, role=None):
        return self._create_record(attributes, customizer, role, raise_error=True)

    def _create_record(self, attributes, customizer, role, raise_error):
        session = self._require_session()
        record = self.build_record(attributes, role)
        if customizer is not None:
            customizer(record)
        saved = session.save(record)
        self.set_new_record(record)
        if raise_error and not saved:
            raise RecordInvalid(record)
        return record


class HasOneAssociation(SingularAssociation):
    def creation_scope(self):
        scope = super().creation_scope()
        scope[self.reflection.foreign_key] = self.owner.pk
        return scope

    def find_target(self):
        filters = dict(self.reflection.conditions)
        filters[self.reflection.foreign_key] = self.owner.pk
        return self.session.query(self.klass).filter(**filters).first()

    def replace(self, record, save=True):
        self._check_record_type(record)
        fk = self.reflection.foreign_key
        previous = self.load_target()

        if previous is not None and previous is not record:
            previous._write_attribute(fk, None)
            # a loaded belongs_to on the same key would write it back on save
            for association in previous._loaded_associations():
                if isinstance(association, BelongsToAssociation) and association.reflection.foreign_key == fk:
                    association.set_inverse_target(None)
            if previous.persisted and self.owner.persisted:
                if not self.session.save(previous):
                    raise RecordNotSaved(
                        f"Failed to remove the existing associated {self.reflection.name}. "
                        f"The record failed to save after its foreign key was set to nil."
                    )

        if record is not None:
            record._write_attribute(fk, self.owner.pk)
            self.set_inverse_instance(record)
            if save and self.owner.persisted:
                object.__setattr__(record, '_session', self.session)
                if not self.session.save(record):
                    raise RecordNotSaved(f"Failed to save the new associated {self.reflection.name}.")

        self.target = record
        self.loaded = True

    def after_owner_save(self):
        record = self.target
        if not self.loaded or record is None:
            return True
        fk = self.reflection.foreign_key
        if record.__dict__.get(fk) != self.owner.pk:
            record._write_attribute(fk, self.owner.pk)
        if record.new_record or fk in record.changed:
            return self._autosave(record)
        return True


class BelongsToAssociation(SingularAssociation):
    def find_target(self):
        fk_val = self.owner.__dict__.get(self.reflection.foreign_key)
        if fk_val is None:
            return None
        return self.session.get(self.klass, fk_val)

    def _find_target_p(self):
        return self.session is not None

    def replace(self, record, save=True):
        self._check_record_type(record)
        if record is not None:
            self.owner._write_attribute(self.reflection.foreign_key, record.pk)
            self.set_inverse_instance(record)
        else:
            self.owner._write_attribute(self.reflection.foreign_key, None)
        self.target = record
        self.loaded = True

    def before_owner_save(self):
        record = self.target
        if not self.loaded or record is None:
            return True
        if record.new_record and not self._autosave(record):
            return False
        if record.pk is not None and self.owner.__dict__.get(self.reflection.foreign_key) != record.pk:
            self.owner._write_attribute(self.reflection.foreign_key, record.pk)
        return True


class CollectionAssociation(Association):
    def __init__(self, owner, reflection):
        super().__init__(owner, reflection)
        self.target = []
        self._proxy = None

    def reader(self):
        if self._proxy is None:
            self._proxy = CollectionProxy(self)
        return self._proxy

    def writer(self, records):
        raise AttributeError(
            f"Can't assign to collection association '{self.reflection.name}'; "
            f"use build(), create() or append()"
        )

    def reset(self):
        self.loaded = False
        self.target = []

    def load_target(self):
        if not self.loaded:
            persisted = self.find_target() if self._find_target_p() else []
            self.target = persisted + [r for r in self.target if r not in persisted]
            self.loaded = True
        return self.target

    def find_target(self):
        raise NotImplementedError

    def add_to_target(self, record, callback=None):
        if callback is not None:
            callback(record)
        if record not in self.target:
            self.target.append(record)
        self.set_inverse_instance(record)
        return record

    def build(self, attributes=None, customizer=None, role=None):
        if isinstance(attributes, (list, tuple)):
            return [self.build(attrs, customizer, role) for attrs in attributes]
        record = self.build_record(attributes, role)
        return self.add_to_target(record, customizer)

    def create(self, attributes=None, customizer=None, role=None):
        """Build, save and add a record; an invalid record is returned unsaved."""
        return self._create_record(attributes, customizer, role, self.insert_record)

    def create_or_fail(self, attributes=None, customizer=None, role=None):
        """Like create(), but raises RecordInvalid and rolls back when validation fails."""
        return self._create_record(attributes, customizer, role, self._insert_record_or_fail)

    def _create_record(self, attributes, customizer, role, insert):
        if not self.owner.persisted:
            raise RecordNotSaved("You cannot call create unless the parent is saved")

        if isinstance(attributes, (list, tuple)):
            return [self._create_record(attrs, customizer, role, insert) for attrs in attributes]

        def customize_and_insert(record):
            if customizer is not None:
                customizer(record)
            insert(record)

        with self.session.transaction():
            record = self.build_record(attributes, role)
            return self.add_to_target(record, customize_and_insert)

    def insert_record(self, record):
        self._set_owner_attributes(record)
        return self.session.save(record)

    def _insert_record_or_fail(self, record):
        if not self.insert_record(record):
            raise RecordInvalid(record)
        return True

    def _set_owner_attributes(self, record):
        pass

    def concat(self, *records):
        for record in records:
            self._check_record_type(record)
        if not self.owner.persisted:
            for record in records:
                self.add_to_target(record)
            return list(records)

        with self.session.transaction():
            for record in records:
                object.__setattr__(record, '_session', self.session)
                self.add_to_target(record, self._insert_record_or_fail)
        return list(records)


class HasManyAssociation(CollectionAssociation):
    def creation_scope(self):
        scope = super().creation_scope()
        scope[self.reflection.foreign_key] = self.owner.pk
        return scope

    def find_target(self):
        filters = dict(self.reflection.conditions)
        filters[self.reflection.foreign_key] = self.owner.pk
        return self.session.query(self.klass).filter(**filters).all()

    def _set_owner_attributes(self, record):
        fk = self.reflection.foreign_key
        if record.__dict__.get(fk) != self.owner.pk:
            record._write_attribute(fk, self.owner.pk)

    def after_owner_save(self):
        for record in list(self.target):
            self._set_owner_attributes(record)
            fk_changed = self.reflection.foreign_key in record.changed
            if (record.new_record or fk_changed) and not self._autosave(record):
                return False
        return True


class ThroughAssociation:
    """Shared helpers for associations reached through a join record."""

    @property
    def source_reflection(self):
        return self.reflection.source_reflection

    @property
    def through_reflection(self):
        return self.reflection.through_reflection

    @property
    def through_association(self):
        return self.owner.association(self.through_reflection.name)

    def through_scope_attributes(self):
        return dict(self.reflection.through_scope)

    def ensure_not_nested(self):
        if self.reflection.nested:
            raise UnsupportedNestedThroughError(self.owner, self.reflection)

    def ensure_mutable(self):
        if self.source_reflection.macro != "belongs_to":
            raise ConfigurationError(
                f"Cannot modify association '{self.owner.__class__.__name__}#{self.reflection.name}' "
                f"because the source reflection class '{self.source_reflection.klass.__name__}' "
                f"is associated to '{self.through_reflection.klass.__name__}' via :{self.source_reflection.macro}."
            )

    def load_through_target(self):
        """Load a singular through target so new records can point back at it."""
        through = self.through_association
        if through.reflection.collection:
            return
        if through.reader() is None:
            self.ensure_mutable()

    def _through_records_for_owner(self):
        through = self.through_association
        if through.reflection.collection:
            return list(through.load_target())
        join = through.reader()
        return [join] if join is not None else []

    def _source_records(self):
        records = []
        for join in self._through_records_for_owner():
            source = join.association(self.source_reflection.name).reader()
            candidates = list(source) if self.source_reflection.collection else [source]
            for record in candidates:
                if record is not None and record not in records and self._matches_conditions(record):
                    records.append(record)
        return records

    def _build_join_record(self):
        through = self.through_association
        forced = self.through_scope_attributes()
        join = through.build_record({}, forced=forced)
        if through.reflection.collection:
            through.add_to_target(join)
        else:
            through.set_new_record(join)
        return join


class HasManyThroughAssociation(ThroughAssociation, CollectionAssociation):
    def __init__(self, owner, reflection):
        super().__init__(owner, reflection)
        self._through_records = {}

    def _record_builder(self):
        return HasManyThroughRecordBuilder(
            self, ThroughRecordBuilder(self, ProtectedRecordBuilder(self))
        )

    def find_target(self):
        return self._source_records()

    def _create_record(self, attributes, customizer, role, insert):
        if self.owner.persisted:
            self.load_through_target()
        return super()._create_record(attributes, customizer, role, insert)

    def build_through_record(self, record):
        """Build (once per record) the join record linking the owner to ``record``."""
        key = id(record)
        if key not in self._through_records:
            self.ensure_mutable()
            join = self._build_join_record()
            join.association(self.source_reflection.name).set_new_record(record)
            self._through_records[key] = join
        return self._through_records[key]

    def insert_record(self, record):
        self.ensure_not_nested()
        if record.new_record and not self.session.save(record):
            self._discard_through_record(record)
            return False
        self.save_through_record(record)
        return True

    def _discard_through_record(self, record):
        join = self._through_records.pop(id(record), None)
        if join is not None and join.new_record:
            through = self.through_association
            if through.reflection.collection and join in through.target:
                through.target.remove(join)

    def save_through_record(self, record):
        if self.source_reflection.macro != "belongs_to":
            return
        join = self.build_through_record(record)
        if join.new_record or join.changed:
            object.__setattr__(join, '_session', self.session)
            if not self.session.save(join):
                raise RecordInvalid(join)
        self._through_records.pop(id(record), None)

    def after_owner_save(self):
        for record in list(self.target):
            if record.new_record or id(record) in self._through_records:
                if not self.insert_record(record):
                    self.owner.errors.add(self.reflection.name, "is invalid")
                    return False
        return True


class HasOneThroughAssociation(ThroughAssociation, SingularAssociation):
    def _record_builder(self):
        return ThroughRecordBuilder(self, ProtectedRecordBuilder(self))

    def find_target(self):
        records = self._source_records()
        return records[0] if records else None

    def _create_record(self, attributes, customizer, role, raise_error):
        self.load_through_target()
        return super()._create_record(attributes, customizer, role, raise_error)

    def set_new_record(self, record):
        self.replace(record, save=record is not None and record.persisted)

    def replace(self, record, save=True):
        self.ensure_not_nested()
        self._check_record_type(record)
        if record is not None and self.source_reflection.macro == "belongs_to":
            through = self.through_association
            join = through.reader()
            if join is None:
                join = self._build_join_record()
            join.association(self.source_reflection.name).set_new_record(record)
            if save and self.owner.persisted:
                object.__setattr__(join, '_session', self.session)
                if not self.session.save(join):
                    raise RecordInvalid(join)
        self.target = record
        self.loaded = True
