import re

from safeorm.orm_types import ForeignKey
from safeorm.reflection import AssociationReflection, ThroughReflection
from safeorm.security import MassAssignmentPolicy
from safeorm.errors import ConfigurationError


def underscore(name):
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


class Mapper:
    _needs_finalize = False

    def __init__(self, cls, columns, declarations, meta_attrs):
        self.cls = cls
        self.meta = meta_attrs or {}
        self.singular_name = underscore(cls.__name__)
        self.table_name = self.meta.get("table_name", self.singular_name + "s")
        if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', self.table_name):
            raise ConfigurationError(f"Invalid table name: {self.table_name}")

        self.columns = dict(columns)
        self.reflections = {}
        self.pk = None
        self._finalized = False

        self._resolve_pk()
        self._resolve_reflections(declarations)

        self.policy = MassAssignmentPolicy(
            cls.__name__,
            accessible=self.meta.get("attr_accessible"),
            protected=self.meta.get("attr_protected"),
            always_protected=(self.pk,),
            sanitizer=self.meta.get("mass_assignment_sanitizer"),
        )
        Mapper._needs_finalize = True

    def __repr__(self):
        cols = ", ".join(self.columns.keys())
        return (
            f"<Mapper class={self.cls.__name__} table={self.table_name} "
            f"columns=[{cols}] pk={self.pk} reflections=[{', '.join(self.reflections)}]>"
        )

    def _resolve_pk(self):
        pk_cols = [name for name, col in self.columns.items() if col.pk]
        if not pk_cols:
            raise ConfigurationError(f"Class {self.cls.__name__} has no primary key defined")
        self.pk = pk_cols[0]

    def _resolve_reflections(self, declarations):
        for name, declaration in declarations.items():
            if declaration.macro in ("has_many_through", "has_one_through"):
                reflection = ThroughReflection(name, self.cls, declaration)
            else:
                reflection = AssociationReflection(name, self.cls, declaration)
            self.reflections[name] = reflection

            if declaration.macro == "belongs_to":
                fk_name = declaration.foreign_key or f"{name}_id"
                if fk_name not in self.columns:
                    # target table is filled in once the target class is known
                    self.columns[fk_name] = ForeignKey(None, None)

    def _resolve_target_class(self, target):
        from safeorm.base import Record

        if isinstance(target, type) and issubclass(target, Record):
            return target
        if not isinstance(target, str):
            return None

        matches = [cls for cls, mapper in Record._registry.items()
                   if cls.__name__ == target or mapper.table_name == target]
        local = [cls for cls in matches if cls.__module__ == self.cls.__module__]
        if len(local) == 1:
            return local[0]
        if len(matches) == 1:
            return matches[0]
        if matches:
            raise ConfigurationError(
                f"Ambiguous association target '{target}' in {self.cls.__name__}: "
                f"{', '.join(f'{c.__module__}.{c.__name__}' for c in matches)}"
            )
        return None

    def _resolve_direct_reflections(self):
        for reflection in self.reflections.values():
            if reflection.through or reflection._klass is not None:
                continue
            target_cls = self._resolve_target_class(reflection.declaration.target)
            if target_cls is None:
                raise ConfigurationError(
                    f"Cannot resolve association target '{reflection.declaration.target}' "
                    f"for {self.cls.__name__}.{reflection.name}"
                )
            reflection._resolve(target_cls)
            target_mapper = target_cls._mapper

            if reflection.macro == "belongs_to":
                fk = self.columns[reflection.foreign_key]
                if isinstance(fk, ForeignKey) and fk.target_table is None:
                    fk.target_table = target_mapper.table_name
                    fk.target_column = target_mapper.pk
            elif reflection.foreign_key not in target_mapper.columns:
                target_mapper.columns[reflection.foreign_key] = ForeignKey(self.table_name, self.pk)

    def _resolve_through_reflections(self):
        for reflection in self.reflections.values():
            if reflection.through and reflection.source_reflection is None:
                reflection._resolve_through()

    @staticmethod
    def finalize_mappers():
        """Resolve targets, through chains and inverses of every registered model."""
        if not Mapper._needs_finalize:
            return
        from safeorm.base import Record

        pending = [m for m in Record._registry.values() if not m._finalized]
        for mapper in pending:
            mapper._resolve_direct_reflections()
        for mapper in pending:
            mapper._resolve_through_reflections()
        for mapper in pending:
            for reflection in mapper.reflections.values():
                reflection._resolve_inverse()
            mapper._finalized = True
        Mapper._needs_finalize = False
