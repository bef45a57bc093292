"""Print a bcrypt hash suitable for ADMIN_PASSWORD_HASH."""
from __future__ import annotations

import argparse
import getpass
import sys
from typing import Optional, Sequence

from admin_auth.passwords import DEFAULT_ROUNDS, PasswordVerifier


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m admin_auth", description=__doc__)
    parser.add_argument("--rounds", type=int, default=DEFAULT_ROUNDS, help="bcrypt cost factor")
    args = parser.parse_args(argv)

    password = getpass.getpass("New admin password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters long", file=sys.stderr)
        return 1
    if getpass.getpass("Confirm password: ") != password:
        print("Passwords do not match", file=sys.stderr)
        return 1

    print(PasswordVerifier(None, rounds=args.rounds).generate_password_hash(password))
    return 0


if __name__ == "__main__":
    sys.exit(main())
