"""Domain models for the careers submission service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict


REQUIRED_FIELDS = ("email", "firstName", "lastName", "country")


@dataclass(frozen=True)
class ApplicationRecord:
    """A job application stored in the record store."""

    id: str
    email: str
    first_name: str
    last_name: str
    country: str
    created_at: datetime
    search_filters: Dict[str, str] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


__all__ = ["ApplicationRecord", "REQUIRED_FIELDS"]
