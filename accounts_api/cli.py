"""Create an account from the command line.

Usage:
  accounts-create-user --name Alice --email alice@example.com --age 30 --password '...' --role ADMIN

Runs the same validation and uniqueness rules as POST /users.
"""

import argparse
import sys
from typing import Optional, Sequence

from accounts_api.application.services.security import build_password_hasher
from accounts_api.application.services.user_service import create_user
from accounts_api.config import get_settings
from accounts_api.core.exceptions import AppError
from accounts_api.core.logging import configure_logging
from accounts_api.domain.models.user import Role, User
from accounts_api.infrastructure.database import Database
from accounts_api.infrastructure.repositories.user_repository import SQLAlchemyUserRepository


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="accounts-create-user", description=__doc__.splitlines()[0])
    ap.add_argument("--name", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--age", type=int, required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--role", choices=[r.value for r in Role], default=Role.USER.value)
    ap.add_argument("--database-url", help="Overrides DATABASE_URL")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    database = Database(args.database_url or settings.DATABASE_URL)
    database.initialize()
    session = database.session()
    try:
        repo = SQLAlchemyUserRepository(session, User)
        user = create_user(
            repo,
            build_password_hasher(settings),
            {
                "name": args.name,
                "email": args.email,
                "age": args.age,
                "password": args.password,
                "role": args.role,
            },
        )
    except AppError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        session.close()
        database.close()

    print("Created user:")
    print(user.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
