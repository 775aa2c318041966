import logging
from contextlib import contextmanager

from safeorm.tracking import ObjectState, IdentityMap
from safeorm.query import Query
from safeorm.transactions import InsertOperation, UpdateOperation, DeleteOperation
from safeorm.mapper import Mapper
from safeorm.builder import QueryBuilder
from safeorm.errors import Rollback

logger = logging.getLogger("safeorm.session")


class Session:
    def __init__(self, engine):
        Mapper.finalize_mappers()

        self.engine = engine
        self.query_builder = QueryBuilder()
        self.identity_map = IdentityMap()
        self.pending = []
        self._transaction_depth = 0
        self._written = []
        self._saving = set()

    def query(self, model_class):
        return Query(model_class, self)

    def get(self, model_class, pk):
        existing = self.identity_map.get(model_class, pk)
        if existing: return existing
        return self.query(model_class).filter(**{model_class._mapper.pk: pk}).first()

    def add(self, entity):
        """Attach ``entity``; new records are inserted on the next commit()."""
        if entity._session is None:
            object.__setattr__(entity, '_session', self)
        if entity.new_record and entity not in self.pending:
            self.pending.append(entity)

    @property
    def in_transaction(self):
        return self._transaction_depth > 0

    @contextmanager
    def transaction(self):
        """Run a block atomically.

        The outermost block issues BEGIN/COMMIT. Nested blocks run inside a
        SAVEPOINT, so an exception undoes only the innermost block before it
        propagates; ``Rollback`` undoes the block silently.
        """
        if self._transaction_depth:
            savepoint = f"sp_{self._transaction_depth}"
            start = len(self._written)
            self.engine.savepoint(savepoint)
            self._transaction_depth += 1
            try:
                yield self
            except Rollback:
                self._rollback_savepoint(savepoint, start)
            except BaseException:
                self._rollback_savepoint(savepoint, start)
                raise
            else:
                self.engine.release(savepoint)
            finally:
                self._transaction_depth -= 1
            return

        self.engine.begin()
        self._transaction_depth = 1
        self._written = []
        logger.debug("BEGIN")
        try:
            yield self
        except Rollback:
            self._rollback_transaction()
        except BaseException:
            self._rollback_transaction()
            raise
        else:
            self.engine.commit()
            logger.debug("COMMIT")
        finally:
            self._transaction_depth = 0
            self._written = []

    def _rollback_transaction(self):
        self.engine.rollback()
        logger.debug("ROLLBACK (%d records restored)", len(self._written))
        self._restore_written(0)

    def _rollback_savepoint(self, savepoint, start):
        self.engine.rollback_to(savepoint)
        self.engine.release(savepoint)
        logger.debug("ROLLBACK TO %s (%d records restored)", savepoint, len(self._written) - start)
        self._restore_written(start)

    def _restore_written(self, start):
        for entity, snapshot in reversed(self._written[start:]):
            if entity.persisted and snapshot[0] == ObjectState.TRANSIENT:
                self.identity_map.discard(entity)
            entity._restore(snapshot)
        del self._written[start:]

    def save(self, entity, validate=True):
        """Insert or update ``entity`` and autosave its loaded associations.

        Returns False when ``entity`` or an autosaved association is invalid.
        """
        if id(entity) in self._saving:
            return True
        self.add(entity)
        if entity in self.pending:
            self.pending.remove(entity)

        saved = False
        self._saving.add(id(entity))
        try:
            with self.transaction():
                if validate and not entity.valid():
                    return False
                associations = entity._loaded_associations()
                for association in associations:
                    if not association.before_owner_save():
                        raise Rollback()
                self._write(entity)
                for association in sorted(associations, key=lambda a: a.reflection.through):
                    if not association.after_owner_save():
                        raise Rollback()
                saved = True
        finally:
            self._saving.discard(id(entity))
        return saved

    def _write(self, entity):
        snapshot = entity._snapshot()
        if entity.new_record:
            sql, params = InsertOperation(self, entity).prepare()
            pk_val = self.engine.execute_insert(sql, params)
            entity.__dict__[entity._mapper.pk] = pk_val
            entity._mark_persisted(self)
            self.identity_map.add(entity)
        else:
            prepared = UpdateOperation(self, entity).prepare()
            if prepared is None:
                return
            self.engine.execute(*prepared)
            entity._mark_persisted(self)
        self._written.append((entity, snapshot))

    def delete(self, entity):
        if not entity.persisted:
            return
        with self.transaction():
            self.engine.execute(*DeleteOperation(self, entity).prepare())
        self.identity_map.discard(entity)
        object.__setattr__(entity, '_orm_state', ObjectState.DELETED)

    def commit(self):
        """Save every pending record in one transaction."""
        with self.transaction():
            while self.pending:
                entity = self.pending.pop(0)
                if entity.new_record:
                    entity.save_or_fail()

    def rollback(self):
        self.pending.clear()

    def close(self):
        all_tracked_objects = self.identity_map.records()
        for obj in all_tracked_objects:
            object.__setattr__(obj, '_session', None)
            object.__setattr__(obj, '_orm_state', ObjectState.DETACHED)
        self.identity_map.clear()
        self.pending.clear()
        logger.debug("Detached %d objects.", len(all_tracked_objects))

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type: self.rollback()
        self.close()
