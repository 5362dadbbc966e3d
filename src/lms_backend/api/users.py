import logging
from datetime import datetime, timezone
from typing import Annotated, List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from lms_backend.api.crud import commit_db, get_user_db, respond
from lms_backend.api.exceptions import BadRequestException, ConflictException, ForbiddenException
from lms_backend.database import get_db
from lms_backend.interface.base import ApiResponse
from lms_backend.interface.users import UserGet, UserLogin, UserPasswordChange, UserQuery, UserRegister, UserUpdate, user_search
from lms_backend.model.auth import User
from lms_backend.permissions.auth import AuthenticationService, get_current_principal
from lms_backend.permissions.core import Action, ResourceKind, ResourceRef, require
from lms_backend.permissions.principal import Principal
from lms_backend.services.credentials import hash_password, verify_password
from lms_backend.services.enrollment import EnrollmentLedger

logger = logging.getLogger(__name__)

user_router = APIRouter(prefix="/users", tags=["users"])


def _email_taken(db: Session, email: str, exclude_id: str = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@user_router.post("/register", response_model=ApiResponse[UserGet], status_code=status.HTTP_201_CREATED)
def register(entity: UserRegister, db: Session = Depends(get_db)):

    if _email_taken(db, entity.email):
        raise ConflictException(detail="User with this email already exists")

    user = User(
        first_name=entity.first_name,
        last_name=entity.last_name,
        email=entity.email,
        password=hash_password(entity.password),
        role=entity.role.value
    )
    db.add(user)
    commit_db(db, user)

    logger.info(f"Registered {user.role} {user.id}")
    return respond(data=UserGet.model_validate(user), message="User registered successfully")


@user_router.post("/login", response_model=ApiResponse[UserGet])
def login(entity: UserLogin, db: Session = Depends(get_db)):

    user = AuthenticationService.authenticate_basic(entity.email, entity.password, db)

    user.last_login = datetime.now(timezone.utc)
    commit_db(db, user)

    return respond(data=UserGet.model_validate(user), message="Login successful")


@user_router.get("", response_model=ApiResponse[List[UserGet]])
def list_users(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    response: Response,
    params: UserQuery = Depends(),
    db: Session = Depends(get_db)
):
    require(permissions, Action.READ, ResourceRef(kind=ResourceKind.USERS))

    query = user_search(db, db.query(User), params)
    total = query.count()

    users = query.order_by(User.created_at.desc()).offset(params.skip).limit(params.limit).all()

    response.headers["X-Total-Count"] = str(total)
    return respond(data=[UserGet.model_validate(user) for user in users], count=total)


@user_router.get("/me", response_model=ApiResponse[UserGet])
def get_me(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    db: Session = Depends(get_db)
):
    user = get_user_db(db, permissions.get_user_id_or_throw())
    return respond(data=UserGet.model_validate(user))


@user_router.get("/{user_id}", response_model=ApiResponse[UserGet])
def get_user(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    require(permissions, Action.READ, ResourceRef.account(user.id))

    return respond(data=UserGet.model_validate(user))


@user_router.put("/{user_id}", response_model=ApiResponse[UserGet])
def update_user(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    entity: UserUpdate,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    require(permissions, Action.UPDATE, ResourceRef.account(user.id))

    changes = entity.model_dump(mode="json", exclude_unset=True)

    if changes.pop("password", None) is not None:
        raise BadRequestException(detail="Use /change-password route to update password")

    if ("role" in changes or "is_active" in changes) and not permissions.is_admin:
        raise ForbiddenException(detail="Only administrators can change role or account status")

    if changes.get("email") and _email_taken(db, changes["email"], exclude_id=user.id):
        raise ConflictException(detail="Email is already in use")

    for key, value in changes.items():
        setattr(user, key, value)

    commit_db(db, user)
    return respond(data=UserGet.model_validate(user), message="User updated successfully")


@user_router.put("/{user_id}/change-password", response_model=ApiResponse[None])
def change_password(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    entity: UserPasswordChange,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    require(permissions, Action.UPDATE, ResourceRef.account(user.id))

    if not verify_password(entity.current_password, user.password):
        raise BadRequestException(detail="Current password is incorrect")

    user.password = hash_password(entity.new_password)
    commit_db(db)

    logger.info(f"Password changed for user {user.id}")
    return respond(message="Password updated successfully")


@user_router.delete("/{user_id}", response_model=ApiResponse[UserGet])
def deactivate_user(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    db: Session = Depends(get_db)
):
    """Soft delete, the account stays but can no longer authenticate"""
    user = get_user_db(db, user_id)
    require(permissions, Action.DELETE, ResourceRef.account(user.id))

    user.is_active = False
    commit_db(db, user)

    logger.info(f"Deactivated user {user.id}")
    return respond(data=UserGet.model_validate(user), message="User deactivated successfully")


@user_router.delete("/{user_id}/permanent", response_model=ApiResponse[None])
def delete_user_permanently(
    permissions: Annotated[Principal, Depends(get_current_principal)],
    user_id: str,
    db: Session = Depends(get_db)
):
    user = get_user_db(db, user_id)
    require(permissions, Action.DELETE, ResourceRef(kind=ResourceKind.USERS))

    # keep course counters in step with the removed enrollments
    ledger = EnrollmentLedger(db)
    for enrollment in list(user.enrollments):
        ledger.unenroll(user, enrollment.course)

    db.delete(user)
    commit_db(db)

    logger.info(f"Permanently deleted user {user_id}")
    return respond(message="User deleted permanently")
