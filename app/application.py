"""Application factory that wires settings, the record store and the mailer."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .api import create_app as create_api_app
from .config import Settings, load_settings
from .database import RecordStore
from .mailer import Mailer, SMTPSettings

logger = logging.getLogger("careers.application")


def build_store(settings: Settings) -> RecordStore:
    if not settings.mongo_uri:
        raise ValueError("MONGO_URI must be set to a MongoDB connection string")
    return RecordStore(
        settings.mongo_uri,
        database_name=settings.database_name,
        server_selection_timeout_ms=settings.server_selection_timeout_ms,
    )


def build_mailer(settings: Settings) -> Mailer:
    smtp = SMTPSettings(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.admin_email,
        password=settings.admin_email_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout,
    )
    return Mailer(smtp, admin_email=settings.admin_email, sender_name=settings.sender_name)


def create_application(
    settings: Optional[Settings] = None,
    *,
    store: Optional[RecordStore] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """Create the ASGI application, connecting to MongoDB first.

    A store that cannot be reached raises :class:`~app.database.StoreConnectionError`;
    an unreachable SMTP relay is only logged.
    """

    settings = settings or load_settings()

    if store is None:
        store = build_store(settings)
        store.connect()
    if mailer is None:
        mailer = build_mailer(settings)
        mailer.verify()

    return create_api_app(store=store, mailer=mailer, settings=settings)


__all__ = ["build_mailer", "build_store", "create_application"]
