"""Command-line entry point.

Provides database initialization, administrator seeding and a server
launcher. Self-registration only creates STUDENT and TEACHER accounts, so
the first administrator has to be created from here.

Usage:
    rsams init-db
    rsams create-admin EMAIL PASSWORD
    rsams serve
"""

import argparse
import logging
import sys
from typing import List, Optional

from rsams.config import API_HOST, API_PORT, load_auth_settings
from rsams.core.database import SessionLocal, init_db
from rsams.core.logging_config import setup_logging
from rsams.schemas.user import Role
from rsams.utils.account_manager import AccountManager
from rsams.utils.authenticator import Authenticator
from rsams.utils.password_hasher import PasswordHasher
from rsams.utils.token_issuer import TokenIssuer

logger = logging.getLogger(__name__)


def create_admin(email: str, password: str) -> int:
    """Create an ADMIN account.

    Args:
        email: Administrator email.
        password: Plain text password.

    Returns:
        Process exit code.
    """
    settings = load_auth_settings()
    init_db()
    with SessionLocal() as db:
        authenticator = Authenticator(
            AccountManager(db),
            PasswordHasher(rounds=settings.bcrypt_rounds),
            TokenIssuer(settings.jwt_secret_key, settings.jwt_algorithm, settings.token_ttl),
            settings,
        )
        result = authenticator.create_account(email, password, Role.ADMIN)

    if not result.ok:
        logger.error("Could not create admin: %s", result.failure.message)
        return 1
    logger.info("Admin account created: %s (%s)", result.value.email, result.value.id)
    return 0


def serve(reload: bool = False) -> int:
    import uvicorn

    uvicorn.run("rsams.app:app", host=API_HOST, port=API_PORT, reload=reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rsams", description="RSAMS backend tools")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create database tables")

    admin = commands.add_parser("create-admin", help="Create an administrator account")
    admin.add_argument("email")
    admin.add_argument("password")

    server = commands.add_parser("serve", help="Run the API server")
    server.add_argument("--reload", action="store_true", help="Reload on code changes")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    setup_logging()
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        init_db()
        logger.info("Database tables created")
        return 0
    if args.command == "create-admin":
        return create_admin(args.email, args.password)
    return serve(reload=args.reload)


if __name__ == "__main__":
    sys.exit(main())
