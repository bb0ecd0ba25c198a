"""Utility script to create an administrator and print a bearer token for it."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from notification_engine.domain.entities import User
from notification_engine.infrastructure.database import SessionLocal, initialize_database
from notification_engine.infrastructure.repositories import UserRepository
from notification_engine.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for user creation."""

    parser = argparse.ArgumentParser(
        description="Create an administrator for the notification engine API.",
    )
    parser.add_argument(
        "--name",
        default="Administrator",
        help="Full name of the user (default: Administrator)",
    )
    parser.add_argument(
        "--email",
        default="admin@example.com",
        help="Email of the user (default: admin@example.com)",
    )
    return parser.parse_args()


def main() -> None:
    """Create the administrator, reusing an existing account with the same email."""

    args = parse_args()
    initialize_database()

    session = SessionLocal()
    try:
        repository = UserRepository(session)
        user = repository.get_by_email(args.email)
        if user is None:
            role = repository.ensure_role(name="Administrator", alias="admin")
            user = repository.create(
                User(id=None, role=role, name=args.name, email=args.email, is_active=True)
            )
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not store the user in the database: {exc}") from exc
    finally:
        session.close()

    print(
        "Administrator ready:\n"
        f"  ID: {user.id}\n"
        f"  Name: {user.name}\n"
        f"  Email: {user.email}\n"
        f"  Token: {create_access_token({'sub': str(user.id)})}"
    )


if __name__ == "__main__":
    main()
