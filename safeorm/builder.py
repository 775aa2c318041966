import re

class QueryBuilder:
    def __init__(self):
        self._safe_ident_pattern = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

    def _quote(self, identifier):
        if not identifier or not self._safe_ident_pattern.match(str(identifier)):
            raise ValueError(f"Unsafe SQL identifier: {identifier}")
        return f'"{identifier}"'

    def build_insert(self, table_name, data):
        """Build INSERT SQL from table name and data dict."""
        table = self._quote(table_name)
        if not data:
            return f"INSERT INTO {table} DEFAULT VALUES", ()
        fields = list(data.keys())
        quoted_fields = [self._quote(f) for f in fields]
        placeholders = ", ".join(["?" for _ in fields])
        values = [data[f] for f in fields]
        sql = f"INSERT INTO {table} ({', '.join(quoted_fields)}) VALUES ({placeholders})"
        return sql, tuple(values)

    def build_update(self, table_name, data, pk_column, pk_value):
        table = self._quote(table_name)
        set_parts = []
        params = []
        for col, val in data.items():
            set_parts.append(f"{self._quote(col)} = ?")
            params.append(val)
        params.append(pk_value)
        sql = f"UPDATE {table} SET {', '.join(set_parts)} WHERE {self._quote(pk_column)} = ?"
        return sql, tuple(params)

    def build_delete(self, table_name, pk_value, pk_column):
        table = self._quote(table_name)
        sql = f"DELETE FROM {table} WHERE {self._quote(pk_column)} = ?"
        return sql, (pk_value,)

    def build_select(self, mapper, filters, limit=None, offset=None, order_by=None):
        table = self._quote(mapper.table_name)
        cols = [f"{table}.{self._quote(c)}" for c in mapper.columns]
        sql = f"SELECT {', '.join(cols)} FROM {table}"

        params = []
        if filters:
            where_parts = []
            for col, val in filters.items():
                if col not in mapper.columns:
                    raise ValueError(f"Unknown column '{col}' for table {mapper.table_name}")
                quoted_col = f"{table}.{self._quote(col)}"
                if val is None:
                    where_parts.append(f"{quoted_col} IS NULL")
                else:
                    where_parts.append(f"{quoted_col} = ?")
                    params.append(val)
            sql += " WHERE " + " AND ".join(where_parts)

        order_by = order_by or [(mapper.pk, "ASC")]
        order_clauses = [f"{table}.{self._quote(col)} {direction}" for col, direction in order_by]
        sql += " ORDER BY " + ", ".join(order_clauses)

        if limit is not None:
            sql += f" LIMIT {int(limit)}"
            if offset is not None: sql += f" OFFSET {int(offset)}"
        elif offset is not None:
            sql += f" LIMIT -1 OFFSET {int(offset)}"

        return sql, tuple(params)
