class Column:
    def __init__(self, dtype, pk=False, nullable=True, unique=False, default=None):
        self.dtype = dtype
        self.pk = pk
        self.nullable = nullable
        self.unique = unique
        self.default = default

    def __repr__(self):
        return f"<{self.__class__.__name__} pk={self.pk} nullable={self.nullable}>"

class Text(Column):
    def __init__(self, pk=False, nullable=True, unique=False, default=None):
        super().__init__(str, pk, nullable, unique, default)

class Number(Column):
    def __init__(self, pk=False, nullable=True, unique=False, default=None):
        super().__init__(int, pk, nullable, unique, default)

class Boolean(Column):
    def __init__(self, nullable=True, default=None):
        super().__init__(bool, False, nullable, False, default)

class ForeignKey(Column):
    def __init__(self, target_table, target_column, nullable=True, unique=False):
        super().__init__(int, pk=False, nullable=nullable, unique=unique)
        self.target_table = target_table
        self.target_column = target_column


class AssociationDeclaration:
    """Class-level declaration turned into a Reflection by the Mapper."""
    macro = None

    def __init__(self, target, foreign_key=None, inverse_of=None, conditions=None):
        self.target = target
        self.foreign_key = foreign_key
        self.inverse_of = inverse_of
        self.conditions = dict(conditions or {})

    def __repr__(self):
        target = getattr(self.target, "__name__", self.target)
        return f"<{self.__class__.__name__} target={target}>"

class HasMany(AssociationDeclaration):
    macro = "has_many"

class HasOne(AssociationDeclaration):
    macro = "has_one"

class BelongsTo(AssociationDeclaration):
    macro = "belongs_to"

class HasManyThrough(AssociationDeclaration):
    macro = "has_many_through"

    def __init__(self, target, through, source=None, conditions=None, through_scope=None):
        super().__init__(target, conditions=conditions)
        self.through = through
        self.source = source
        self.through_scope = dict(through_scope or {})

class HasOneThrough(HasManyThrough):
    macro = "has_one_through"
