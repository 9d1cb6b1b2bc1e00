"""Command-line interface for the PLC careers backend."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

import httpx
from dotenv import load_dotenv

from app.application import build_mailer, build_store
from app.config import Settings, load_settings
from app.database import RecordStore, StoreConnectionError, StoreError

logger = logging.getLogger("careers.main")

_DEFAULT_SERVICE_URL = "http://localhost:3001"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="PLC careers backend utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP submission service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the API (default: $PORT or 3001)",
    )

    subparsers.add_parser("check", help="Check MongoDB and SMTP connectivity")

    list_parser = subparsers.add_parser("list", help="Show the most recent applications")
    list_parser.add_argument("--limit", type=int, default=20, help="Number of applications to show")

    health_parser = subparsers.add_parser("health", help="Query a running service's health probe")
    health_parser.add_argument(
        "--service-url",
        default=_DEFAULT_SERVICE_URL,
        help=f"Base URL of a running service (default: {_DEFAULT_SERVICE_URL})",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "check", "list", "health"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _connect_store(settings: Settings) -> RecordStore:
    try:
        store = build_store(settings)
        store.connect()
    except (ValueError, StoreConnectionError) as exc:
        logger.error("MongoDB connection failed: %s", exc)
        raise SystemExit(1) from exc
    return store


def _serve(settings: Settings, *, host: str, port: int | None) -> None:
    from app.application import create_application
    import uvicorn

    store = _connect_store(settings)
    bind_port = port if port is not None else settings.port
    app = create_application(settings, store=store)

    logger.info("Backend server running on http://%s:%s", host, bind_port)
    logger.info("MongoDB status: %s", "Connected" if store.is_connected() else "Disconnected")
    try:
        uvicorn.run(app, host=host, port=bind_port, log_level="info")
    finally:
        store.close()


def _check(settings: Settings) -> int:
    status = 0
    try:
        store = build_store(settings)
        store.connect()
    except (ValueError, StoreConnectionError) as exc:
        print(f"MongoDB: unavailable ({exc})")
        status = 1
    else:
        print("MongoDB: connected")
        store.close()

    mailer = build_mailer(settings)
    if not mailer.enabled:
        print("SMTP: disabled (ADMIN_EMAIL is not set)")
    elif mailer.verify():
        print(f"SMTP: ready ({settings.smtp_host}:{settings.smtp_port})")
    else:
        print(f"SMTP: unavailable ({settings.smtp_host}:{settings.smtp_port})")
    return status


def _list_applications(settings: Settings, limit: int) -> None:
    store = _connect_store(settings)
    try:
        applications = store.list_applications(limit)
    except (ValueError, StoreError) as exc:
        print(f"Failed to list applications: {exc}")
        return
    finally:
        store.close()

    if not applications:
        print("No applications have been submitted.")
        return

    print(f"{len(applications)} application(s) found:")
    print(f"{'Created':<20}  {'Name':<28}  {'Email':<32}  Country")
    print("-" * 96)
    for record in applications:
        created = record.created_at.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{created:<20}  {record.full_name:<28}  {record.email:<32}  {record.country}")


def _show_health(service_url: str) -> int:
    endpoint = service_url.rstrip("/") + "/api/health"
    try:
        response = httpx.get(endpoint, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact service: {exc}")
        return 1

    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}")
        return 1

    try:
        payload = response.json()
    except ValueError:
        print("Service returned an unexpected response format.")
        return 1

    print(f"Status:   {payload.get('status', 'unknown')}")
    print(f"Database: {payload.get('database', 'unknown')}")
    print(f"Checked:  {payload.get('timestamp', 'unknown')}")
    return 0 if payload.get("database") == "connected" else 1


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    load_dotenv()

    args = _parse_args(argv)

    if args.command == "health":
        raise SystemExit(_show_health(args.service_url))

    settings = load_settings()

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
    elif args.command == "check":
        raise SystemExit(_check(settings))
    elif args.command == "list":
        _list_applications(settings, args.limit)


if __name__ == "__main__":
    main()
