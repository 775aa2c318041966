import pytest

from safeorm.config import configure
from safeorm.database import DatabaseEngine
from safeorm.generator import SchemaGenerator
from safeorm.session import Session


@pytest.fixture(autouse=True)
def default_settings():
    configure()
    yield
    configure()


@pytest.fixture
def engine():
    engine = DatabaseEngine(":memory:")
    yield engine
    engine.close()


@pytest.fixture
def make_session(engine):
    """Create tables for the given models and return a session bound to them."""
    def _make(*models):
        SchemaGenerator().create_all(engine, models)
        return Session(engine)
    return _make
