import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..model.auth import User
from .credentials import hash_password

logger = logging.getLogger(__name__)


def create_admin_user(db: Session, email: str, password: str, first_name: str = "Admin", last_name: str = "System") -> Optional[User]:
    """Create an admin account unless the email is already registered"""

    email = email.strip().lower()

    if db.query(User).filter(User.email == email).first() is not None:
        logger.info(f"Admin account {email} already exists")
        return None

    admin_user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=hash_password(password),
        role="admin"
    )

    db.add(admin_user)
    db.commit()
    db.refresh(admin_user)

    logger.info(f"Created admin account {email}")
    return admin_user
