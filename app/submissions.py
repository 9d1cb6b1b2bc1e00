"""Validation and processing of job application submissions."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .database import RecordStore
from .mailer import Mailer, MailerError
from .models import REQUIRED_FIELDS, ApplicationRecord

logger = logging.getLogger("careers.submissions")


class SubmissionError(ValueError):
    """Raised when a submission is rejected before reaching the record store."""


class MissingFieldsError(SubmissionError):
    """Raised when one or more required fields are absent or blank."""

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def find_missing_fields(payload: Mapping[str, object]) -> List[str]:
    """Return every required field that is absent, null or blank, in declaration order."""

    return [name for name in REQUIRED_FIELDS if _is_blank(payload.get(name))]


def _format_validation_errors(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        message = str(error.get("msg") or "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        location = [str(part) for part in error.get("loc", ())]
        if location and error.get("type") != "value_error":
            message = f"{'.'.join(location)}: {message}"
        messages.append(message)
    return "; ".join(messages) or "Invalid request body"


class ApplicationSubmission(BaseModel):
    """Incoming form payload; unrecognised keys become search filters."""

    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    country: Optional[str] = None

    @model_validator(mode="after")
    def _require_string_filters(self):  # type: ignore[override]
        for key, value in (self.model_extra or {}).items():
            if not isinstance(value, str):
                raise ValueError(f"Search filter '{key}' must be a string")
        return self

    def missing_fields(self) -> List[str]:
        return find_missing_fields(
            {
                "email": self.email,
                "firstName": self.first_name,
                "lastName": self.last_name,
                "country": self.country,
            }
        )

    def search_filters(self) -> Dict[str, str]:
        return {str(key): value for key, value in (self.model_extra or {}).items()}


def parse_submission(payload: object) -> ApplicationSubmission:
    """Turn a decoded request body into a submission.

    Anything that is not a JSON object is treated as an empty form, so the
    missing-field report always comes before type errors.
    """

    data: Mapping[str, object] = payload if isinstance(payload, dict) else {}
    missing = find_missing_fields(data)
    if missing:
        raise MissingFieldsError(missing)
    try:
        return ApplicationSubmission.model_validate(data)
    except ValidationError as exc:
        raise SubmissionError(_format_validation_errors(exc)) from exc


class SubmissionService:
    """Persist submissions and notify the administrator about them."""

    def __init__(self, store: RecordStore, mailer: Mailer) -> None:
        self._store = store
        self._mailer = mailer

    def submit(self, submission: ApplicationSubmission) -> ApplicationRecord:
        missing = submission.missing_fields()
        if missing:
            raise MissingFieldsError(missing)

        return self._store.create_application(
            email=submission.email,
            first_name=(submission.first_name or "").strip(),
            last_name=(submission.last_name or "").strip(),
            country=submission.country,
            search_filters=submission.search_filters(),
        )

    def notify(self, record: ApplicationRecord) -> None:
        """Send the administrator notification; failures are logged and never raised."""

        try:
            self._mailer.send_application_notice(record)
        except MailerError as exc:
            logger.error("Email sending error for application %s: %s", record.id, exc)
        except Exception:
            logger.exception("Unexpected error while emailing application %s", record.id)


__all__ = [
    "ApplicationSubmission",
    "MissingFieldsError",
    "SubmissionError",
    "SubmissionService",
    "find_missing_fields",
    "parse_submission",
]
