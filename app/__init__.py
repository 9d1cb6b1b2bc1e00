"""Backend for the PLC Construction careers application form."""

from __future__ import annotations

from typing import Any

from .config import Settings, load_settings
from .database import RecordStore


def create_app(*args: Any, **kwargs: Any):
    """Factory for the API around an injected store and mailer."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


def create_application(*args: Any, **kwargs: Any):
    """Factory that builds the store and mailer from settings before creating the API."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


__all__ = [
    "RecordStore",
    "Settings",
    "create_app",
    "create_application",
    "load_settings",
]
