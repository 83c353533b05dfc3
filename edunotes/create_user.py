"""Create a user in the configured storage backend.

Usage:
    python -m edunotes.create_user USERNAME NAME [--role admin|student] [--password PASSWORD]

Only useful with STORAGE_BACKEND=database; the memory backend does not
outlive this process.
"""
import argparse
import getpass
import sys

from edunotes.auth.passwords import hash_password
from edunotes.models.user import ROLE_STUDENT, USER_ROLES
from edunotes.storage import Storage, get_storage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='python -m edunotes.create_user', description='Create an EduNotes user.')
    parser.add_argument('username')
    parser.add_argument('name')
    parser.add_argument('--role', choices=USER_ROLES, default=ROLE_STUDENT)
    parser.add_argument('--password', help='prompted for when omitted')
    return parser


def main(argv: list[str] | None = None, storage: Storage | None = None) -> int:
    args = build_parser().parse_args(argv)
    storage = storage or get_storage()
    storage.initialize()

    if storage.get_user_by_username(args.username):
        print(f"User '{args.username}' already exists.", file=sys.stderr)
        return 1

    password = args.password or getpass.getpass('Password: ')
    if not password:
        print('Password is required.', file=sys.stderr)
        return 1

    user = storage.create_user(
        username=args.username,
        password=hash_password(password),
        name=args.name,
        role=args.role,
    )
    print(f'Created {user.role} {user.username} (id={user.id})')
    return 0


if __name__ == '__main__':
    sys.exit(main())
