"""Provision an admin account with room and voter ceilings."""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

from postgrest import APIError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Create an admin account in public.admins.",
    )
    parser.add_argument(
        "username",
        type=str,
        help="Login name for the new admin.",
    )
    parser.add_argument(
        "--max-room",
        type=int,
        default=1,
        help="How many rooms the admin may own (default: 1).",
    )
    parser.add_argument(
        "--max-voters",
        type=int,
        default=100,
        help="Total voter capacity across the admin's rooms (default: 100).",
    )
    parser.add_argument(
        "--inactive",
        action="store_true",
        help="Create the account disabled.",
    )
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password; prompted for when omitted.",
    )
    return parser.parse_args()


def create_admin(
    username: str,
    password: str,
    max_room: int,
    max_voters: int,
    is_active: bool = True,
) -> dict:
    """Insert the admin row and return it."""
    username = username.strip()
    if not username:
        raise ValueError("username must not be empty")
    if not password:
        raise ValueError("password must not be empty")
    if max_room < 0 or max_voters < 0:
        raise ValueError("ceilings must be >= 0")

    from app.config import settings
    from app.services.common import is_unique_violation
    from app.utils.crypto import encrypt_password, hash_password
    from app.utils.supabase_client import get_service_client

    # Logins re-encrypt to this deterministic form before checking the hash.
    canonical = encrypt_password(
        password,
        settings.encryption_key,
        settings.encryption_salt_front,
        settings.encryption_salt_back,
    )

    client = get_service_client()
    try:
        response = (
            client.table("admins")
            .insert(
                {
                    "username": username,
                    "password": hash_password(canonical),
                    "max_room": max_room,
                    "max_voters": max_voters,
                    "is_active": is_active,
                }
            )
            .execute()
        )
    except APIError as exc:
        if is_unique_violation(exc):
            raise RuntimeError(f"Admin {username!r} already exists") from exc
        raise

    return response.data[0]


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    password = args.password or getpass.getpass("Password: ")
    admin = create_admin(
        username=args.username,
        password=password,
        max_room=args.max_room,
        max_voters=args.max_voters,
        is_active=not args.inactive,
    )
    print(f"Created admin {admin['username']} ({admin['id']})")


if __name__ == "__main__":
    main()
