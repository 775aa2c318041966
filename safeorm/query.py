from safeorm.tracking import ObjectState

class Query:
    def __init__(self, model_class, session):
        self.model_class = model_class
        self.session = session
        self.filters = {}
        self._limit = None
        self._offset = None

    def filter(self, **kwargs):
        self.filters.update(kwargs)
        return self

    def limit(self, value: int):
        self._limit = value
        return self

    def offset(self, value: int):
        self._offset = value
        return self

    def all(self):
        mapper = self.model_class._mapper
        sql, params = self.session.query_builder.build_select(
            mapper, self.filters, limit=self._limit, offset=self._offset
        )
        rows = self.session.engine.execute(sql, params)
        results = []
        for row in rows:
            obj = self._hydrate(row, mapper)
            if obj._orm_state != ObjectState.DELETED:
                results.append(obj)
        return results

    def first(self):
        self.limit(1)
        results = self.all()
        return results[0] if results else None

    def count(self):
        return len(self.all())

    def _hydrate(self, row, mapper):
        pk_val = row[mapper.pk]
        existing = self.session.identity_map.get(self.model_class, pk_val)
        if existing:
            return existing

        obj = self.model_class.__new__(self.model_class)
        obj._init_internals()
        for name, col in mapper.columns.items():
            value = row[name]
            if col.dtype is bool and value is not None:
                value = bool(value)
            obj.__dict__[name] = value
        obj._mark_persisted(self.session)
        self.session.identity_map.add(obj)
        return obj
