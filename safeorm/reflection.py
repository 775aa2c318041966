from safeorm.errors import ConfigurationError

COLLECTION_MACROS = ("has_many", "has_many_through")
THROUGH_MACROS = ("has_many_through", "has_one_through")


def singularize(name):
    return name[:-1] if name.endswith("s") else name


class AssociationReflection:
    """Static description of one association, resolved once by Mapper.finalize_mappers()."""

    def __init__(self, name, active_record, declaration):
        self.name = name
        self.macro = declaration.macro
        self.active_record = active_record
        self.declaration = declaration
        self.conditions = dict(declaration.conditions)
        self._klass = None
        self._foreign_key = declaration.foreign_key
        self._inverse_of = None

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.active_record.__name__}.{self.name} macro={self.macro}>"

    @property
    def klass(self):
        if self._klass is None:
            raise ConfigurationError(f"Association {self.active_record.__name__}.{self.name} is not resolved yet")
        return self._klass

    @property
    def foreign_key(self):
        return self._foreign_key

    @property
    def inverse_of(self):
        return self._inverse_of

    @property
    def collection(self):
        return self.macro in COLLECTION_MACROS

    @property
    def through(self):
        return self.macro in THROUGH_MACROS

    @property
    def nested(self):
        return False

    def association_class(self):
        from safeorm import associations
        return {
            "has_many": associations.HasManyAssociation,
            "has_one": associations.HasOneAssociation,
            "belongs_to": associations.BelongsToAssociation,
            "has_many_through": associations.HasManyThroughAssociation,
            "has_one_through": associations.HasOneThroughAssociation,
        }[self.macro]

    def build_association(self, attributes, callback=None, role=None):
        """Instantiate an unsaved record of the target class.

        ``attributes`` go through the target's mass-assignment policy, then
        ``callback`` runs, then column defaults fill whatever is still unset.
        """
        return self.klass.new(attributes, role=role, callback=callback)

    def _resolve(self, klass):
        self._klass = klass
        if self._foreign_key is None:
            if self.macro == "belongs_to":
                self._foreign_key = f"{self.name}_id"
            else:
                self._foreign_key = f"{self.active_record._mapper.singular_name}_id"

    def _resolve_inverse(self):
        name = self.declaration.inverse_of
        if not name:
            return
        inverse = self.klass._mapper.reflections.get(name)
        if inverse is None:
            raise ConfigurationError(
                f"Could not find the inverse association for {self.active_record.__name__}.{self.name} "
                f"({name} in {self.klass.__name__})"
            )
        self._inverse_of = inverse


class ThroughReflection(AssociationReflection):
    def __init__(self, name, active_record, declaration):
        super().__init__(name, active_record, declaration)
        self.through_scope = dict(declaration.through_scope)
        self._through_reflection = None
        self._source_reflection = None

    @property
    def through_reflection(self):
        return self._through_reflection

    @property
    def source_reflection(self):
        return self._source_reflection

    @property
    def foreign_key(self):
        return self._source_reflection.foreign_key

    @property
    def nested(self):
        return self._through_reflection.through or self._source_reflection.through

    def _resolve_through(self):
        owner_name = self.active_record.__name__
        through = self.active_record._mapper.reflections.get(self.declaration.through)
        if through is None:
            raise ConfigurationError(
                f"Could not find the association '{self.declaration.through}' in model {owner_name}"
            )
        if through.through and through.source_reflection is None:
            through._resolve_through()
        through_klass = through.klass

        candidates = [self.declaration.source, self.name, singularize(self.name)]
        source = None
        for candidate in candidates:
            if candidate and candidate in through_klass._mapper.reflections:
                source = through_klass._mapper.reflections[candidate]
                break
        if source is None:
            raise ConfigurationError(
                f"Could not find the source association for {owner_name}.{self.name} in {through_klass.__name__}"
            )
        if source.through and source.source_reflection is None:
            source._resolve_through()

        self._through_reflection = through
        self._source_reflection = source
        self._klass = source.klass
