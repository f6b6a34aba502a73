import os

# keep tests off Firestore; must run before config.settings is created
os.environ.setdefault("STORE_BACKEND", "memory")

import pytest

from app.services import id_store


@pytest.fixture
def store():
    mem = id_store.MemoryIdStore()
    id_store.set_store(mem)
    yield mem
    id_store.set_store(None)
