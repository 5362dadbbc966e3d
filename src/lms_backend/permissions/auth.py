"""
Authentication for API requests.

Requests carry HTTP Basic credentials (email and password). The principal is
rebuilt on every request so that role changes, deactivation and unenrollment
take effect at the next authorization check.
"""

import base64
import binascii
import logging
from typing import List, Optional, Tuple

from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from lms_backend.api.exceptions import BasicAuthException, UnauthorizedException
from lms_backend.database import get_db
from lms_backend.model.auth import User
from lms_backend.model.course import Enrollment
from lms_backend.permissions.principal import Principal
from lms_backend.services.credentials import verify_password

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Service for verifying credentials against the user table"""

    @staticmethod
    def authenticate_basic(email: str, password: str, db: Session) -> User:
        """Return the active user owning these credentials"""

        user = db.query(User).filter(User.email == email.strip().lower()).first()

        if user is None:
            raise UnauthorizedException("Invalid credentials")

        if not user.is_active:
            raise UnauthorizedException("Account is deactivated")

        if not verify_password(password, user.password):
            raise UnauthorizedException("Invalid credentials")

        return user


class PrincipalBuilder:
    """Builds a Principal from a user and its enrollments"""

    @staticmethod
    def active_course_ids(user_id: str, db: Session) -> List[str]:
        rows = (
            db.query(Enrollment.course_id)
            .filter(Enrollment.user_id == user_id, Enrollment.status != "dropped")
            .all()
        )
        return [str(row[0]) for row in rows]

    @staticmethod
    def build(user: User, db: Session) -> Principal:
        return Principal(
            user_id=str(user.id),
            role=user.role,
            enrolled_course_ids=set(PrincipalBuilder.active_course_ids(user.id, db))
        )


def parse_basic_credentials(authorization: str) -> Tuple[str, str]:
    scheme, param = get_authorization_scheme_param(authorization)

    if scheme.lower() != "basic":
        raise BasicAuthException()

    try:
        decoded = base64.b64decode(param).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise BasicAuthException()

    email, separator, password = decoded.partition(":")

    if not separator:
        raise BasicAuthException()

    return email, password


def get_current_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """Principal of the request; anonymous when no credentials are sent"""

    authorization: Optional[str] = request.headers.get("Authorization")

    if not authorization:
        return Principal.anonymous()

    email, password = parse_basic_credentials(authorization)

    try:
        user = AuthenticationService.authenticate_basic(email, password, db)
    except UnauthorizedException as e:
        logger.info(f"Rejected credentials for {email}: {e.detail}")
        raise BasicAuthException(detail=e.detail)

    return PrincipalBuilder.build(user, db)
