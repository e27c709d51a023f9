"""Create the first admin user. Every later user is invited through the API.

Usage: python seed_admin.py admin@example.com
"""

import argparse
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from constants import ROLE_ADMIN
from database import SessionLocal, init_db
from models import User
from services.auth import EMAIL_PATTERN, normalize_email
from logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def seed_admin(db: Session, email: str) -> User:
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValueError(f"Invalid email address provided: {email!r}")
    if db.scalars(select(User).where(User.email == email)).first() is not None:
        raise ValueError(f"A user with the email {email!r} already exists")
    user = User(email=email, role=ROLE_ADMIN)
    db.add(user)
    db.commit()
    logger.info(f"Admin user {user.id} created for {email}")
    return user


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the initial admin user")
    parser.add_argument("email", help="email address of the admin")
    args = parser.parse_args(argv)

    setup_logging()
    init_db()
    db = SessionLocal()
    try:
        seed_admin(db, args.email)
    except ValueError as e:
        logger.error(str(e))
        return 1
    finally:
        db.close()
    logger.info("You can now log in by requesting a magic link with this email.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
