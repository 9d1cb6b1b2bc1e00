from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.api import create_app
from app.config import Settings
from app.database import RecordStore
from app.models import ApplicationRecord


class InsertResult:
    def __init__(self, inserted_id: ObjectId) -> None:
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, key: str, direction: int) -> "FakeCursor":
        self._documents.sort(key=lambda item: item[key], reverse=direction < 0)
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._documents = self._documents[:count]
        return self

    def __iter__(self):
        return iter(self._documents)


class FakeCollection:
    def __init__(self) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.insert_error: Optional[Exception] = None

    def insert_one(self, document: Dict[str, Any]) -> InsertResult:
        if self.insert_error is not None:
            raise self.insert_error
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return InsertResult(document["_id"])

    def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for document in self.documents:
            if all(document.get(key) == value for key, value in query.items()):
                return copy.deepcopy(document)
        return None

    def find(self) -> FakeCursor:
        return FakeCursor([copy.deepcopy(document) for document in self.documents])


class FakeDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


class FakeTopology:
    def __init__(self, client: "FakeMongoClient") -> None:
        self._client = client

    def has_readable_server(self) -> bool:
        return self._client.online


class FakeAdmin:
    def __init__(self, client: "FakeMongoClient") -> None:
        self._client = client

    def command(self, name: str) -> Dict[str, Any]:
        if self._client.ping_error is not None:
            raise self._client.ping_error
        return {"ok": 1.0}


class FakeMongoClient:
    """Enough of :class:`pymongo.MongoClient` for the record store."""

    def __init__(self) -> None:
        self.online = True
        self.closed = False
        self.ping_error: Optional[Exception] = None
        self.options: Dict[str, Any] = {}
        self.databases: Dict[str, FakeDatabase] = {}
        self.admin = FakeAdmin(self)

    def __call__(self, uri: str, **options: Any) -> "FakeMongoClient":
        self.uri = uri
        self.options = options
        return self

    @property
    def topology_description(self) -> FakeTopology:
        return FakeTopology(self)

    def __getitem__(self, name: str) -> FakeDatabase:
        return self.databases.setdefault(name, FakeDatabase(name))

    def get_default_database(self, default: Optional[str] = None) -> FakeDatabase:
        return self[default or "test"]

    def close(self) -> None:
        self.closed = True
        self.online = False

    def collection(self, name: str = "applications", database: str = "careers") -> FakeCollection:
        return self[database][name]


class RecordingMailer:
    def __init__(self) -> None:
        self.sent: List[ApplicationRecord] = []
        self.error: Optional[Exception] = None

    def send_application_notice(self, record: ApplicationRecord) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(record)


@pytest.fixture()
def mongo_client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture()
def store(mongo_client: FakeMongoClient) -> RecordStore:
    record_store = RecordStore("mongodb://localhost:27017", client_factory=mongo_client)
    record_store.connect()
    return record_store


@pytest.fixture()
def collection(mongo_client: FakeMongoClient, store: RecordStore) -> FakeCollection:
    return mongo_client.collection()


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def settings() -> Settings:
    return Settings(frontend_url="https://careers.example.com")


@pytest.fixture()
def client(store: RecordStore, mailer: RecordingMailer, settings: Settings):
    app = create_app(store=store, mailer=mailer, settings=settings)  # type: ignore[arg-type]
    with TestClient(app) as test_client:
        yield test_client

