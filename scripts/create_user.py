"""Create an account and issue its desktop client API key.

Session issuance lives elsewhere; this is how operators and client users
are bootstrapped for the ingestion endpoints.

Usage:
    docker compose exec backend python -m scripts.create_user ops@example.com --name Ops --admin
    docker compose exec backend python -m scripts.create_user user@example.com --rotate-key
"""

import argparse
import getpass
import logging
import uuid

from affiliate_hub.config import get_settings
from affiliate_hub.models.base import SyncSessionLocal
from affiliate_hub.models.user import User
from affiliate_hub.services.auth_service import generate_api_key, hash_password, mask_api_key

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)
settings = get_settings()


def create_user(db, email: str, display_name: str, password: str, admin: bool = False) -> User:
    """Insert a user with a fresh API key."""
    user = User(
        id=uuid.uuid4(),
        email=email.strip().lower(),
        display_name=display_name,
        hashed_password=hash_password(password),
        api_key=generate_api_key(),
        role=settings.admin_role if admin else 0,
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


def rotate_api_key(db, email: str) -> User | None:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        return None
    user.api_key = generate_api_key()
    db.commit()
    return user


def main():
    parser = argparse.ArgumentParser(description="Create a user or rotate its API key")
    parser.add_argument("email")
    parser.add_argument("--name", default="", help="Display name (defaults to the email's local part)")
    parser.add_argument("--admin", action="store_true", help="Grant the operator role")
    parser.add_argument("--rotate-key", action="store_true", help="Issue a new API key for an existing user")
    args = parser.parse_args()

    db = SyncSessionLocal()
    try:
        if args.rotate_key:
            user = rotate_api_key(db, args.email)
            if not user:
                logger.error(f"No user with email {args.email}")
                return
        else:
            password = getpass.getpass("Password: ")
            user = create_user(db, args.email, args.name or args.email.split("@")[0], password, admin=args.admin)
            logger.info(f"Created user {user.email} (role={user.role})")

        print(f"API key: {user.api_key}")
        logger.info(f"Key on file: {mask_api_key(user.api_key)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
