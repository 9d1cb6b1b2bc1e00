"""FastAPI application that accepts job application submissions."""
from __future__ import annotations

import html
import logging
from datetime import datetime, timezone
from typing import Dict, Literal, Optional

import anyio
from fastapi import BackgroundTasks, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings
from .database import RecordStore, StoreError, StoreValidationError
from .mailer import Mailer
from .models import ApplicationRecord
from .submissions import SubmissionError, SubmissionService, parse_submission

logger = logging.getLogger("careers.api")

SUCCESS_MESSAGE = "Application submitted successfully"
GENERIC_FAILURE = "Failed to submit application"


class ApplicationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    country: str
    search_filters: Dict[str, str] = Field(default_factory=dict, alias="searchFilters")
    created_at: datetime = Field(alias="createdAt")


class SubmissionResponse(BaseModel):
    success: bool = True
    message: str
    data: ApplicationPayload


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: Literal["operational"] = "operational"
    database: Literal["connected", "disconnected"]
    timestamp: str


def record_to_payload(record: ApplicationRecord) -> ApplicationPayload:
    return ApplicationPayload(
        id=record.id,
        email=record.email,
        first_name=record.first_name,
        last_name=record.last_name,
        country=record.country,
        search_filters=dict(record.search_filters),
        created_at=record.created_at,
    )


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def render_landing_page(frontend_url: str) -> str:
    link = html.escape(frontend_url, quote=True)
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="utf-8">\n'
        "  <title>PLC Construction Careers Backend</title>\n"
        "  <style>\n"
        "    body { font-family: Arial, sans-serif; padding: 2rem; }\n"
        "    a { color: #0056b3; }\n"
        "  </style>\n"
        "</head>\n"
        "<body>\n"
        "  <h1>PLC Construction Careers Backend</h1>\n"
        "  <p>This server handles job application submissions.</p>\n"
        f'  <p>Access the frontend: <a href="{link}">{link}</a></p>\n'
        "  <h3>Available Endpoints:</h3>\n"
        "  <ul>\n"
        "    <li><strong>POST</strong> /api/submit-application - Submit job applications</li>\n"
        "    <li><strong>GET</strong> /api/health - Service health check</li>\n"
        "  </ul>\n"
        "</body>\n"
        "</html>\n"
    )


def register_routes(app: FastAPI, service: SubmissionService, store: RecordStore, settings: Settings) -> None:
    """Attach the landing page, health probe and submission endpoint."""

    landing_markup = render_landing_page(settings.landing_frontend_url)

    @app.get("/", response_class=HTMLResponse)
    async def landing_page() -> HTMLResponse:
        return HTMLResponse(landing_markup)

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        database = "connected" if store.is_connected() else "disconnected"
        return HealthResponse(database=database, timestamp=_utc_timestamp())

    @app.post(
        "/api/submit-application",
        status_code=status.HTTP_201_CREATED,
        response_model=SubmissionResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def submit_application(request: Request, background_tasks: BackgroundTasks):
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        try:
            submission = parse_submission(payload)
            record = await anyio.to_thread.run_sync(service.submit, submission)
        except SubmissionError as exc:
            return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))
        except StoreValidationError as exc:
            logger.info("Rejected application: %s", exc)
            return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))
        except StoreError:
            logger.exception("Submission error")
            return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE)
        except Exception:
            logger.exception("Unexpected submission error")
            return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE)

        background_tasks.add_task(service.notify, record)
        return SubmissionResponse(message=SUCCESS_MESSAGE, data=record_to_payload(record))


def create_app(
    *,
    store: RecordStore,
    mailer: Mailer,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the API around an already-constructed store and mailer."""

    settings = settings or Settings()
    app = FastAPI(title="PLC Careers Backend", docs_url=None, redoc_url=None)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    service = SubmissionService(store, mailer)
    app.state.settings = settings
    app.state.store = store
    app.state.mailer = mailer
    app.state.submissions = service

    register_routes(app, service, store, settings)
    return app


__all__ = [
    "ApplicationPayload",
    "ErrorResponse",
    "HealthResponse",
    "SubmissionResponse",
    "create_app",
    "record_to_payload",
    "render_landing_page",
]
