import asyncio

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from clinical.infrastructure.repositories import KVClinicRepository, KVNoteRepository, KVPatientRepository
from shared.infrastructure.kvstore import InMemoryKeyValueStore

from support import CURSOR_SECRET, FakeClock, make_settings, seed_directory


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def note_repo(store):
    return KVNoteRepository(store, CURSOR_SECRET)


@pytest.fixture
def patient_repo(store):
    return KVPatientRepository(store)


@pytest.fixture
def clinic_repo(store):
    return KVClinicRepository(store)


@pytest.fixture
def client(store):
    asyncio.run(seed_directory(store))
    app = create_app(store=store, settings=make_settings())
    return TestClient(app)
