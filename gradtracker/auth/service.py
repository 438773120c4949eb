
import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.documents.storage import DocumentStore
from gradtracker.errors import DuplicateEmailError, NotFoundError, UnauthenticatedError, ValidationError
from gradtracker.models.user import User
from gradtracker.schemas.auth import UserUpdate
from gradtracker.utils.security import TokenIssuer, hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_NEW_PASSWORD = 8

def _normalize_email(email: str) -> str:
    return email.strip().lower()

def _email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(func.lower(User.email) == email).first() is not None

def register_user(uow: UnitOfWork, name: str, email: str, password: str) -> User:
    if not password or not password.strip():
        raise ValidationError("password is required")
    email = _normalize_email(email)
    db = uow.session
    try:
        with uow:
            if _email_taken(db, email):
                raise DuplicateEmailError(email)
            user = User(name=name.strip(), email=email, password_hash=hash_password(password))
            db.add(user)
    except IntegrityError:
        # a concurrent registration took the email between the check and the commit
        raise DuplicateEmailError(email)
    db.refresh(user)
    logger.info("registered user %s", user.id)
    return user

def login_user(db: Session, issuer: TokenIssuer, email: str, password: str) -> tuple[str, User]:
    # same answer for unknown email and wrong password
    user = db.query(User).filter(User.email == _normalize_email(email or "")).first()
    if not user or not verify_password(password or "", user.password_hash):
        logger.warning("failed login attempt")
        raise UnauthenticatedError("invalid credentials")
    return issuer.issue(user.id, user.email), user

def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user

def update_user(uow: UnitOfWork, user_id: int, changes: UserUpdate) -> User:
    db = uow.session
    email = None
    try:
        with uow:
            user = get_user(db, user_id)
            if changes.name is not None:
                if not changes.name.strip():
                    raise ValidationError("name cannot be empty")
                user.name = changes.name.strip()
            if changes.email is not None:
                email = _normalize_email(changes.email)
                if email != user.email and _email_taken(db, email):
                    raise DuplicateEmailError(email)
                user.email = email
            if changes.password is not None:
                if not changes.password.strip():
                    raise ValidationError("password cannot be empty")
                user.password_hash = hash_password(changes.password)
    except IntegrityError:
        if email is None:
            raise
        raise DuplicateEmailError(email)
    db.refresh(user)
    return user

def change_password(uow: UnitOfWork, user_id: int, old_password: str, new_password: str) -> None:
    with uow:
        user = get_user(uow.session, user_id)
        if not old_password or not verify_password(old_password, user.password_hash):
            raise UnauthenticatedError("invalid current password")
        if not new_password or len(new_password) < MIN_NEW_PASSWORD:
            raise ValidationError(f"new password must be at least {MIN_NEW_PASSWORD} characters")
        if not any(c.isdigit() for c in new_password) or not any(c.isalpha() for c in new_password):
            raise ValidationError("new password must contain letters and digits")
        user.password_hash = hash_password(new_password)

def delete_user(uow: UnitOfWork, store: DocumentStore, user_id: int) -> None:
    """Remove the account; programs, documents and links go with it."""
    with uow:
        user = get_user(uow.session, user_id)
        uow.session.delete(user)
        uow.after_commit(lambda: store.purge_owner(user_id))
    logger.info("deleted user %s", user_id)
