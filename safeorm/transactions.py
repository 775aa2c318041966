from abc import ABC, abstractmethod

class Operation(ABC):
    def __init__(self, session, entity):
        self.session = session
        self.entity = entity

    @abstractmethod
    def prepare(self):
        """Return (sql, params) for this write, or None when there is nothing to write."""
        pass


class InsertOperation(Operation):
    def prepare(self):
        mapper = self.entity._mapper
        data = {}
        for col_name, col_obj in mapper.columns.items():
            if col_name == mapper.pk:
                continue
            value = self.entity.__dict__.get(col_name)
            if value is None and col_obj.default is not None:
                value = col_obj.default
            data[col_name] = value
        return self.session.query_builder.build_insert(mapper.table_name, data)


class UpdateOperation(Operation):
    def prepare(self):
        mapper = self.entity._mapper
        data = {name: self.entity.__dict__.get(name)
                for name in self.entity.changed if name != mapper.pk}
        if not data:
            return None
        return self.session.query_builder.build_update(
            mapper.table_name, data, mapper.pk, self.entity.pk
        )


class DeleteOperation(Operation):
    def prepare(self):
        mapper = self.entity._mapper
        return self.session.query_builder.build_delete(mapper.table_name, self.entity.pk, mapper.pk)
