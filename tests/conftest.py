"""
Shared fixtures: every test gets its own store on a temporary SQLite file.
"""

import logging

import pytest

from fixstore.core.repository import KnowledgeStore

from helpers import DIMENSION


@pytest.fixture
def db_path(tmp_path):
    """Path to a fresh SQLite database file."""
    return str(tmp_path / "fixstore.db")


@pytest.fixture
def store(db_path):
    """Open knowledge store, closed after the test."""
    knowledge_store = KnowledgeStore(db_path, dimension=DIMENSION)
    yield knowledge_store
    knowledge_store.close()


@pytest.fixture
def repo(store):
    """Error fix repository of the test store."""
    return store.errors


@pytest.fixture
def fixstore_caplog(caplog):
    """caplog capturing INFO records from the fixstore logger."""
    caplog.set_level(logging.INFO, logger="fixstore")
    return caplog
