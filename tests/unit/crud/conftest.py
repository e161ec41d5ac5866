"""Shared fixtures for crud unit tests"""

import pytest

from postingest.crud.database import init_db, make_engine
from postingest.crud.memory_store import MemoryStore
from postingest.crud.sql_store import SQLStore


@pytest.fixture(name="engine")
def engine_fixture(tmp_path):
    """File-backed SQLite engine with all tables created."""
    engine = make_engine(f"sqlite:///{tmp_path}/store.db")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="sql_store")
def sql_store_fixture(engine):
    return SQLStore(engine)


@pytest.fixture(name="any_store", params=["memory", "sql"])
def any_store_fixture(request, engine):
    """Each DocumentStore implementation that runs without a network."""
    if request.param == "memory":
        return MemoryStore()
    return SQLStore(engine)
