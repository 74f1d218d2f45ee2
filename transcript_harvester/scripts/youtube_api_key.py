from __future__ import annotations

import argparse
import getpass
from collections.abc import Sequence

from transcript_harvester.config import load_settings
from transcript_harvester.repositories.database import Database
from transcript_harvester.repositories.state_repository import StateRepository
from transcript_harvester.services.credentials import ApiKeyConfig


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Manage the stored YouTube Data API key for Transcript Harvester.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    set_parser = subparsers.add_parser("set", help="Store a YouTube Data API key.")
    set_parser.add_argument(
        "--api-key",
        default=None,
        help="Key to store. Prompted for (without echo) when omitted.",
    )
    subparsers.add_parser("clear", help="Remove the stored key.")
    subparsers.add_parser("status", help="Report whether a key is configured.")

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = load_settings()
    database = Database(settings.db_path)
    database.initialize()
    credentials = ApiKeyConfig(StateRepository(database), seed_value=settings.youtube_api_key)

    if args.command == "set":
        api_key = args.api_key if args.api_key is not None else getpass.getpass("API key: ")
        try:
            credentials.set_api_key(api_key)
        except ValueError as exc:
            raise SystemExit(f"Not stored: {exc}") from exc
        print(f"Stored YouTube Data API key in {settings.db_path}")
        return

    if args.command == "clear":
        credentials.clear_api_key()
        print("Cleared stored YouTube Data API key.")
        return

    if args.command == "status":
        status = "configured" if credentials.has_api_key() else "not configured"
        print(f"YouTube Data API key: {status}")
        return

    raise RuntimeError(f"Unhandled command: {args.command}")


if __name__ == "__main__":
    main()
