# scripts/create_admin.py - bootstrap the first administrator account
"""
Usage:
    python scripts/create_admin.py admin@school.edu "Registrar Office" [--role CASHIER]

The password is read interactively and never echoed.
"""
import argparse
import getpass
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from enrollment_portal.core.db import db_session
from enrollment_portal.models.user import UserRole
from enrollment_portal.services.identity import EmailExists, LocalIdentityProvider

logger = logging.getLogger("create_admin")


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a staff account")
    parser.add_argument("email")
    parser.add_argument("full_name")
    parser.add_argument("--role", default=UserRole.ADMIN.value, choices=[UserRole.ADMIN.value, UserRole.CASHIER.value])
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if len(password) < 8:
        logger.error("Password must be at least 8 characters")
        return 1

    with db_session() as db:
        provider = LocalIdentityProvider(db)
        try:
            user_id = provider.create_user(args.email, password, full_name=args.full_name, roles=[args.role])
        except EmailExists:
            logger.error(f"{args.email} already has an account")
            return 1
        # Staff choose their own password here
        provider.get_user(user_id).must_change_password = False

    logger.info(f"Created {args.role} account {user_id} for {args.email}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    sys.exit(main())
