from safeorm.builder import QueryBuilder
from safeorm.mapper import Mapper
from safeorm.orm_types import ForeignKey

class SchemaGenerator:
    TYPE_MAP = {str: "TEXT", int: "INTEGER", bool: "INTEGER"}

    def __init__(self):
        self.query_builder = QueryBuilder()

    def generate_create_table(self, mapper):
        q = self.query_builder._quote
        column_defs = []
        constraints = []

        for name, col in mapper.columns.items():
            sql_type = self.TYPE_MAP.get(col.dtype, "TEXT")
            parts = [q(name), sql_type]
            if name == mapper.pk:
                parts.append("PRIMARY KEY AUTOINCREMENT")
            if not col.nullable:
                parts.append("NOT NULL")
            if col.unique:
                parts.append("UNIQUE")
            column_defs.append(" ".join(parts))

            if isinstance(col, ForeignKey) and col.target_table:
                constraints.append(
                    f"FOREIGN KEY({q(name)}) REFERENCES {q(col.target_table)}({q(col.target_column)})"
                )

        return f"CREATE TABLE IF NOT EXISTS {q(mapper.table_name)} ({', '.join(column_defs + constraints)});"

    def create_all(self, engine, models, drop_first=False):
        """Create tables for ``models`` (model classes or a registry dict)."""
        Mapper.finalize_mappers()
        mappers = [model._mapper for model in models]
        if drop_first:
            for mapper in reversed(mappers):
                engine.execute(f"DROP TABLE IF EXISTS {self.query_builder._quote(mapper.table_name)}")
        for mapper in mappers:
            engine.execute(self.generate_create_table(mapper))
