#!/usr/bin/env python3
"""
CondoDesk -- operator CLI.

Self-registration only ever creates unvalidated accounts, and complexes are
not created through the API. This CLI bootstraps both.

Usage:
  python main.py add-complex "Residencial Primavera"
  python main.py list-complexes
  python main.py create-admin ana --name "Ana Souza" --complex primavera

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the database (default: ./condodesk.db)
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from auth.passwords import hash_password
from auth.store import UserStore
from maintenance.store import MaintenanceStore

_MIN_PASSWORD_LENGTH = 8


def add_complex(maintenance: MaintenanceStore, name: str) -> int:
    """Create a complex. Returns a process exit code."""
    try:
        complex_id = maintenance.create_complex(name)
    except IntegrityError:
        print(f"  [!] A complex named '{name}' already exists.")
        return 1
    print(f"  Created complex '{name}' (id={complex_id}).")
    return 0


def list_complexes(maintenance: MaintenanceStore) -> int:
    names = maintenance.list_complex_names()
    if not names:
        print("  No complexes yet. Create one with: python main.py add-complex NAME")
        return 0
    for name in names:
        print(f"  {name}")
    return 0


def create_admin(
    users: UserStore,
    maintenance: MaintenanceStore,
    username: str,
    name: str,
    complex_name: str,
    password: str,
) -> int:
    """Create an ADMIN_COMPLEX account. Returns a process exit code."""
    complex_ = maintenance.find_complex_by_name_substring(complex_name)
    if complex_ is None:
        print(f"  [!] No complex matches '{complex_name}'.")
        return 1
    if len(password) < _MIN_PASSWORD_LENGTH:
        print(f"  [!] Password must be at least {_MIN_PASSWORD_LENGTH} characters.")
        return 1
    if len(password.encode("utf-8")) > 72:
        print("  [!] Password must be at most 72 bytes.")
        return 1
    try:
        user_id = users.create_user(
            User(
                username=username,
                name=name,
                role=Role.ADMIN_COMPLEX,
                hashed_password=hash_password(password),
                complex_id=complex_.id,
            )
        )
    except IntegrityError:
        print(f"  [!] Username '{username}' is already taken.")
        return 1
    print(f"  Created administrator '{username}' (id={user_id}) for complex '{complex_.name}'.")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="condodesk",
        description="Operator tasks for the CondoDesk maintenance backend.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_add = sub.add_parser("add-complex", help="Create a residential complex")
    p_add.add_argument("name", help="Complex name, e.g. 'Residencial Primavera'")

    sub.add_parser("list-complexes", help="List complex names")

    p_admin = sub.add_parser("create-admin", help="Create an ADMIN_COMPLEX account")
    p_admin.add_argument("username")
    p_admin.add_argument("--name", required=True, help="Display name")
    p_admin.add_argument("--complex", required=True, dest="complex_name", help="Complex name or part of it")

    args = parser.parse_args(argv)

    maintenance = MaintenanceStore()
    try:
        if args.command == "add-complex":
            return add_complex(maintenance, args.name)
        if args.command == "list-complexes":
            return list_complexes(maintenance)

        users = UserStore()
        try:
            password = getpass.getpass("Password: ")
            if password != getpass.getpass("Repeat password: "):
                print("  [!] Passwords do not match.")
                return 1
            return create_admin(users, maintenance, args.username, args.name, args.complex_name, password)
        finally:
            users.close()
    finally:
        maintenance.close()


if __name__ == "__main__":
    sys.exit(main())
