"""Record lifecycle states and the per-session identity map."""
from enum import Enum


class ObjectState(Enum):
    TRANSIENT = "transient"     # built, never written
    PERSISTENT = "persistent"
    DELETED = "deleted"
    DETACHED = "detached"       # its session was closed


class IdentityMap:
    """One in-memory record per (model class, primary key) within a session."""

    def __init__(self):
        self._records = {}

    @staticmethod
    def _key(record):
        return (record.__class__, record.pk)

    def get(self, model_class, pk):
        return self._records.get((model_class, pk))

    def add(self, record):
        self._records[self._key(record)] = record

    def discard(self, record):
        self._records.pop(self._key(record), None)

    def records(self):
        return list(self._records.values())

    def clear(self):
        self._records.clear()

    def __contains__(self, record):
        return self._records.get(self._key(record)) is record

    def __len__(self):
        return len(self._records)
