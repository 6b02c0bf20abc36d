#!/usr/bin/env python3
"""
SessionGuard -- account administration from the command line.

There is no HTTP route that grants a role: self-registration always creates a
USER. Operators promote accounts here.

Usage:
  python main.py create-user --email admin@example.com --name Admin --role ADMIN
  python main.py set-role --email mod@example.com --role MODERATOR
  python main.py logout --email someone@example.com

Environment variables:
  SECRET_KEY    Required unless DEBUG=true (see core/config.py).
  DATABASE_URL  SQLAlchemy URL of the account database.
"""

from __future__ import annotations

import argparse
import getpass
import sys
from typing import Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from auth.context import AuthContext
from auth.errors import AuthError
from auth.models import Role
from auth.passwords import MAX_PASSWORD_BYTES
from auth.sessions import SessionManager, normalize_email
from core.config import get_settings

# Same check as RegisterRequest.email, so every CLI-created account can log in over HTTP.
_EMAIL = TypeAdapter(EmailStr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sessionguard",
        description="Manage SessionGuard accounts.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create an account (prompts for the password)")
    create.add_argument("--email", required=True)
    create.add_argument("--name", required=True)
    create.add_argument("--role", choices=[r.value for r in Role], default=Role.USER.value)
    create.add_argument("--password", help="Read from a prompt when omitted")

    set_role = sub.add_parser("set-role", help="Change an existing account's role")
    set_role.add_argument("--email", required=True)
    set_role.add_argument("--role", choices=[r.value for r in Role], required=True)

    logout = sub.add_parser("logout", help="Clear an account's refresh token")
    logout.add_argument("--email", required=True)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    context = AuthContext.create(
        secret_key=settings.secret_key,
        db_url=settings.database_url,
        access_ttl=settings.access_token_expire_seconds,
        refresh_ttl=settings.refresh_token_expire_seconds,
    )
    sessions = SessionManager(context)
    store = context.store

    try:
        if args.command == "create-user":
            try:
                email = _EMAIL.validate_python(args.email.strip())
            except ValidationError:
                print(f"  [!] '{args.email}' is not a valid email address.", file=sys.stderr)
                return 2
            password = args.password or getpass.getpass("Password: ")
            if len(password) < 8 or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
                print("  [!] Password must be 8 characters to 72 bytes long.", file=sys.stderr)
                return 2
            account = sessions.register(email, password, args.name)
            role = Role(args.role)
            if role is not Role.USER:
                store.set_role(account.id, role)
            print(f"  Created account {account.id} ({account.email}, {role.value}).")
            return 0

        account = store.get_by_email(normalize_email(args.email))
        if account is None:
            print(f"  [!] No account for {args.email}.", file=sys.stderr)
            return 1

        if args.command == "set-role":
            store.set_role(account.id, Role(args.role))
            print(f"  {account.email}: {account.role.value} -> {args.role}")
        elif args.command == "logout":
            sessions.logout(account.id)
            print(f"  {account.email}: refresh token cleared.")
        return 0
    except AuthError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 1
    finally:
        context.close()


if __name__ == "__main__":
    sys.exit(main())
