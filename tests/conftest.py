import pytest

from querystone.cache import CacheManager
from querystone.dialects import MySQLDialect
from querystone.engine import Database
from querystone.logging import clear_session_context
from querystone.query_builder import QueryBuilder
from querystone.schema import SchemaBuilder


@pytest.fixture(autouse=True)
def _reset_logging_context():
    yield
    clear_session_context()


@pytest.fixture
def dialect() -> MySQLDialect:
    return MySQLDialect()


@pytest.fixture
def qb(dialect) -> QueryBuilder:
    """Unbound builder; terminal calls need ``prepare()``."""
    return QueryBuilder(dialect=dialect)


@pytest.fixture
def schema(dialect) -> SchemaBuilder:
    return SchemaBuilder(dialect=dialect)


@pytest.fixture
def sqlite_db():
    """Engine on in-memory SQLite rendering with the MySQL dialect, no cache."""
    db = Database(dialects={"sqlite": MySQLDialect()})
    db.add_connection("main", "sqlite://")
    db.select_connection("main")
    yield db
    db.disconnect()


@pytest.fixture
def cached_db():
    db = Database(cache=CacheManager(enabled=True), dialects={"sqlite": MySQLDialect()})
    db.add_connection("main", "sqlite://")
    db.select_connection("main")
    yield db
    db.disconnect()


@pytest.fixture
def users_table(sqlite_db):
    sqlite_db.load_sql(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, age INTEGER)"
    ).execute()
    return sqlite_db
