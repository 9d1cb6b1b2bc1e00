"""MongoDB-backed persistence for submitted job applications."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from .models import ApplicationRecord

logger = logging.getLogger("careers.database")

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
DEFAULT_DATABASE_NAME = "careers"
COLLECTION_NAME = "applications"
DEFAULT_SERVER_SELECTION_TIMEOUT_MS = 10_000


class StoreError(RuntimeError):
    """Raised when the record store cannot complete an operation."""


class StoreValidationError(StoreError):
    """Raised when a document is rejected by the application schema."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()))


class StoreConnectionError(StoreError):
    """Raised when the MongoDB deployment cannot be reached."""


def _current_timestamp() -> datetime:
    # BSON dates hold milliseconds; round up so the value stays >= now.
    now = datetime.now(timezone.utc)
    return now + timedelta(microseconds=-now.microsecond % 1000)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _build_document(
    *,
    email: object,
    first_name: object,
    last_name: object,
    country: object,
    search_filters: Mapping[str, object],
    created_at: datetime,
) -> Dict[str, Any]:
    """Apply the application schema and return the document to insert."""

    errors: Dict[str, str] = {}

    def _text(path: str, value: object, label: str, *, trim: bool = False) -> str:
        if value is None:
            errors[path] = f"{label} is required"
            return ""
        if not isinstance(value, str):
            errors[path] = f"{label} must be a string"
            return ""
        cleaned = value.strip() if trim else value
        if not cleaned.strip():
            errors[path] = f"{label} is required"
        return cleaned

    email_text = _text("email", email, "Email")
    if "email" not in errors and not EMAIL_PATTERN.search(email_text):
        errors["email"] = "Invalid email format"
    first = _text("firstName", first_name, "First name", trim=True)
    last = _text("lastName", last_name, "Last name", trim=True)
    country_text = _text("country", country, "Country")

    filters: Dict[str, str] = {}
    for key, value in search_filters.items():
        if not isinstance(value, str):
            errors[f"searchFilters.{key}"] = f"Search filter '{key}' must be a string"
            continue
        filters[str(key)] = value

    if errors:
        raise StoreValidationError(errors)

    return {
        "email": email_text,
        "firstName": first,
        "lastName": last,
        "country": country_text,
        "searchFilters": filters,
        "createdAt": created_at,
    }


def _document_to_record(document: Mapping[str, Any]) -> ApplicationRecord:
    return ApplicationRecord(
        id=str(document["_id"]),
        email=document["email"],
        first_name=document["firstName"],
        last_name=document["lastName"],
        country=document["country"],
        created_at=_as_utc(document["createdAt"]),
        search_filters=dict(document.get("searchFilters") or {}),
    )


class RecordStore:
    """Thin wrapper around a MongoDB collection of application records."""

    def __init__(
        self,
        uri: str,
        *,
        database_name: Optional[str] = None,
        collection_name: str = COLLECTION_NAME,
        server_selection_timeout_ms: int = DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
        client_factory: Callable[..., Any] = MongoClient,
        clock: Callable[[], datetime] = _current_timestamp,
    ) -> None:
        if not uri or not uri.strip():
            raise ValueError("A MongoDB connection string is required")
        self._uri = uri.strip()
        self._database_name = database_name
        self._collection_name = collection_name
        self._timeout_ms = server_selection_timeout_ms
        self._client_factory = client_factory
        self._clock = clock
        self._client: Any = None
        self._collection: Any = None

    def connect(self) -> None:
        """Create the client and confirm the deployment answers a ping."""

        client = None
        try:
            client = self._client_factory(
                self._uri,
                serverSelectionTimeoutMS=self._timeout_ms,
                tz_aware=True,
            )
            client.admin.command("ping")
            if self._database_name:
                database = client[self._database_name]
            else:
                database = client.get_default_database(default=DEFAULT_DATABASE_NAME)
        except PyMongoError as exc:
            if client is not None:
                client.close()
            raise StoreConnectionError(f"MongoDB connection failed: {exc}") from exc

        self._client = client
        self._collection = database[self._collection_name]
        logger.info("MongoDB connection established (collection=%s)", self._collection_name)

    def close(self) -> None:
        client, self._client, self._collection = self._client, None, None
        if client is not None:
            client.close()

    def is_connected(self) -> bool:
        """Report connectivity from the client's current topology, without a round-trip."""

        client = self._client
        if client is None:
            return False
        try:
            return bool(client.topology_description.has_readable_server())
        except PyMongoError:
            return False

    def _require_collection(self) -> Any:
        if self._collection is None:
            raise StoreConnectionError("Record store is not connected")
        return self._collection

    def create_application(
        self,
        *,
        email: object,
        first_name: object,
        last_name: object,
        country: object,
        search_filters: Optional[Mapping[str, object]] = None,
    ) -> ApplicationRecord:
        """Validate and insert a new application, returning the stored record."""

        document = _build_document(
            email=email,
            first_name=first_name,
            last_name=last_name,
            country=country,
            search_filters=search_filters or {},
            created_at=self._clock(),
        )
        collection = self._require_collection()
        try:
            result = collection.insert_one(document)
        except PyMongoError as exc:
            raise StoreError(f"Failed to store application: {exc}") from exc

        document["_id"] = result.inserted_id
        record = _document_to_record(document)
        logger.info("Stored application %s", record.id)
        return record

    def get_application(self, application_id: str) -> Optional[ApplicationRecord]:
        try:
            object_id = ObjectId(application_id)
        except (InvalidId, TypeError):
            return None
        collection = self._require_collection()
        try:
            document = collection.find_one({"_id": object_id})
        except PyMongoError as exc:
            raise StoreError(f"Failed to load application {application_id}: {exc}") from exc
        if document is None:
            return None
        return _document_to_record(document)

    def list_applications(self, limit: int = 20) -> List[ApplicationRecord]:
        """Return the most recent applications, newest first."""

        if limit < 1:
            raise ValueError("limit must be a positive integer")
        collection = self._require_collection()
        try:
            cursor = collection.find().sort("createdAt", DESCENDING).limit(limit)
            return [_document_to_record(document) for document in cursor]
        except PyMongoError as exc:
            raise StoreError(f"Failed to list applications: {exc}") from exc


__all__ = [
    "EMAIL_PATTERN",
    "RecordStore",
    "StoreConnectionError",
    "StoreError",
    "StoreValidationError",
]
