from safeorm.mapper import Mapper
from safeorm.orm_types import Column, AssociationDeclaration
from safeorm.tracking import ObjectState
from safeorm.validations import Errors, validate_presence
from safeorm.errors import (
    ConfigurationError, RecordInvalid, SessionRequiredError, UnknownAttributeError,
)


class Record:
    _registry = {}
    _mapper = None

    def __repr__(self):
        pk_val = self.__dict__.get(self._mapper.pk) or "New"
        return f"<{self.__class__.__name__}(id={pk_val})>"

    def __init__(self, **attributes):
        self._init_internals()
        if attributes:
            self.assign_attributes(attributes)
        self._apply_defaults()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        columns = {}
        declarations = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Column):
                    columns[name] = value
                elif isinstance(value, AssociationDeclaration):
                    declarations[name] = value

        meta_cls = getattr(cls, "Meta", None)
        meta_attrs = {}
        if meta_cls:
            for attr in dir(meta_cls):
                if not attr.startswith('_'):
                    meta_attrs[attr] = getattr(meta_cls, attr)

        cls._mapper = Mapper(cls, columns, declarations, meta_attrs)
        Record._registry[cls] = cls._mapper

    @classmethod
    def new(cls, attributes=None, role=None, callback=None):
        """Build an unsaved record.

        ``attributes`` are mass-assigned through the model's whitelist policy
        for ``role``. ``callback`` receives the record after that assignment
        and before column defaults are filled in.
        """
        record = cls.__new__(cls)
        record._init_internals()
        if attributes:
            record.assign_attributes(attributes, role=role)
        if callback is not None:
            callback(record)
        record._apply_defaults()
        return record

    def _init_internals(self):
        if self._mapper is None:
            raise ConfigurationError("Record is abstract; subclass it to declare a model")
        Mapper.finalize_mappers()
        object.__setattr__(self, '_orm_state', ObjectState.TRANSIENT)
        object.__setattr__(self, '_session', None)
        object.__setattr__(self, '_original_values', {})
        object.__setattr__(self, '_changed_attributes', [])
        object.__setattr__(self, '_association_cache', {})
        object.__setattr__(self, '_errors', Errors(self))

    def _apply_defaults(self):
        for name, col in self._mapper.columns.items():
            if col.default is not None and self.__dict__.get(name) is None:
                self.__dict__[name] = col.default
                self._original_values[name] = col.default

    def __getattribute__(self, name):
        if name.startswith('_'):
            return object.__getattribute__(self, name)

        mapper = object.__getattribute__(self, '_mapper')
        if mapper is not None:
            if name in mapper.reflections:
                return self.association(name).reader()
            if name in mapper.columns:
                return self.__dict__.get(name)
        return object.__getattribute__(self, name)

    def __setattr__(self, name, value):
        mapper = self._mapper
        if mapper and name in mapper.reflections:
            self.association(name).writer(value)
            return
        if mapper and name in mapper.columns:
            self._write_attribute(name, value)
            return
        object.__setattr__(self, name, value)

    def _write_attribute(self, name, value):
        if name == self._mapper.pk and self.persisted:
            current_id = self.__dict__.get(name)
            if current_id is not None and current_id != value:
                raise AttributeError(
                    f"Cannot change primary key '{name}' "
                    f"for {self.__class__.__name__} after it has been persisted."
                )

        self.__dict__[name] = value
        if value != self._original_values.get(name):
            if name not in self._changed_attributes:
                self._changed_attributes.append(name)
        elif name in self._changed_attributes:
            self._changed_attributes.remove(name)

    def assign_attributes(self, attributes, role=None):
        """Mass-assign ``attributes`` after filtering them through the whitelist policy."""
        if not attributes:
            return
        permitted = self._mapper.policy.sanitize(attributes, role)
        for name, value in permitted.items():
            self._assign(name, value)

    def _write_forced_attributes(self, attributes):
        # association-controlled values (creation scope, join keys)
        for name, value in attributes.items():
            self._assign(name, value)

    def _assign(self, name, value):
        mapper = self._mapper
        if name in mapper.columns:
            self._write_attribute(name, value)
        elif name in mapper.reflections:
            self.association(name).writer(value)
        else:
            raise UnknownAttributeError(self, name)

    def association(self, name):
        Mapper.finalize_mappers()
        cache = self._association_cache
        if name not in cache:
            reflection = self._mapper.reflections.get(name)
            if reflection is None:
                raise ConfigurationError(
                    f"Association named '{name}' was not found on {self.__class__.__name__}"
                )
            cache[name] = reflection.association_class()(self, reflection)
        return cache[name]

    def _loaded_associations(self):
        return list(self._association_cache.values())

    @property
    def pk(self):
        return self.__dict__.get(self._mapper.pk)

    @property
    def errors(self):
        return self._errors

    @property
    def changed(self):
        return list(self._changed_attributes)

    @property
    def changes(self):
        return {name: (self._original_values.get(name), self.__dict__.get(name))
                for name in self._changed_attributes}

    @property
    def new_record(self):
        return self._orm_state == ObjectState.TRANSIENT

    @property
    def persisted(self):
        return self._orm_state == ObjectState.PERSISTENT

    def attributes(self):
        return {name: self.__dict__.get(name) for name in self._mapper.columns}

    def validate(self):
        """Hook for model-specific validations; add messages to self.errors."""

    def valid(self):
        self.errors.clear()
        validate_presence(self)
        self.validate()
        return not self.errors

    def save(self):
        return self._require_session().save(self)

    def save_or_fail(self):
        if not self.save():
            raise RecordInvalid(self)
        return True

    def _require_session(self):
        if self._session is None:
            raise SessionRequiredError(
                f"{self.__class__.__name__} is not attached to a session; call session.add() first"
            )
        return self._session

    def _mark_persisted(self, session):
        object.__setattr__(self, '_orm_state', ObjectState.PERSISTENT)
        object.__setattr__(self, '_session', session)
        object.__setattr__(self, '_original_values', self.attributes())
        self._changed_attributes.clear()

    def _snapshot(self):
        return (self._orm_state, self.pk, dict(self._original_values), list(self._changed_attributes))

    def _restore(self, snapshot):
        state, pk_val, original, changed = snapshot
        object.__setattr__(self, '_orm_state', state)
        self.__dict__[self._mapper.pk] = pk_val
        object.__setattr__(self, '_original_values', original)
        object.__setattr__(self, '_changed_attributes', changed)
