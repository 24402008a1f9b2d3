"""
izuran-admin: operator commands.

    izuran-admin create-tables
    izuran-admin create-admin --email a@b.c --username door --password ...
    izuran-admin verify-code <code>
"""

import argparse
import asyncio
import json
import sys

from izuran.core.logging import setup_logging, get_logger
from izuran.db.base import Base
from izuran.db.session import engine, AsyncSessionLocal
from izuran.schemas.user import UserCreate
from izuran.services.auth_service import register_user
from izuran.services.ticket_codes import verify_ticket_code
import izuran.models  # noqa: F401  register tables on Base.metadata

logger = get_logger(__name__)


async def create_tables() -> None:
    """Create all tables directly. Production deployments use Alembic instead."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("tables_created", tables=sorted(Base.metadata.tables))


async def create_admin(email: str, username: str, password: str) -> None:
    async with AsyncSessionLocal() as db:
        user = await register_user(
            db,
            UserCreate(email=email, username=username, password=password),
            role="admin",
        )
        await db.commit()
        logger.info("admin_created", user_id=user.id, username=user.username)
    await engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="izuran-admin", description="Izuran ticketing admin tasks")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("create-tables", help="create database tables from the models")

    admin = sub.add_parser("create-admin", help="create an admin (door staff) account")
    admin.add_argument("--email", required=True)
    admin.add_argument("--username", required=True)
    admin.add_argument("--password", required=True)

    verify = sub.add_parser("verify-code", help="check a ticket code's signature and print its claims")
    verify.add_argument("code")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level="DEBUG" if args.verbose else None)

    if args.command == "create-tables":
        asyncio.run(create_tables())
    elif args.command == "create-admin":
        asyncio.run(create_admin(args.email, args.username, args.password))
    elif args.command == "verify-code":
        claims = verify_ticket_code(args.code)
        if claims is None:
            print("invalid ticket code", file=sys.stderr)
            return 1
        print(json.dumps(claims, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
