"""
Script to create a recruiter account or reset its password.
Run: python -m scripts.create_user <email> <password> [first_name] [last_name]
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from talentdesk.db.init_db import init_db
from talentdesk.db.session import SessionLocal
from talentdesk.db.models.user import User
from talentdesk.core.security import hash_password
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_user(email: str, password: str, first_name: str = "Recruiter", last_name: str = "Admin") -> bool:
    """Create the user, or update the password if the email is already registered."""
    init_db()
    db = SessionLocal()
    try:
        email = email.strip().lower()
        user = db.query(User).filter(User.email == email).first()

        if user:
            logger.info(f"Found existing user: {email} (ID: {user.id}), resetting password")
            user.password_hash = hash_password(password)
        else:
            logger.info(f"Creating new user: {email}")
            user = User(
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone="",
                password_hash=hash_password(password),
            )
            db.add(user)

        db.commit()
        db.refresh(user)
        logger.info(f"User ready with ID: {user.id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating user: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python -m scripts.create_user <email> <password> [first_name] [last_name]")
        sys.exit(2)

    success = create_user(*sys.argv[1:5])

    if success:
        print(f"\n[SUCCESS] User {sys.argv[1]} can now sign in")
    else:
        print(f"\n[ERROR] Failed to set up user {sys.argv[1]}")
        sys.exit(1)
