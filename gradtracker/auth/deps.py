
from fastapi import Request, Depends
from sqlalchemy.orm import Session
from gradtracker.db.session import SessionLocal
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.documents.storage import DocumentStore
from gradtracker.errors import UnauthenticatedError
from gradtracker.models.user import User
from gradtracker.utils.security import TokenIssuer


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_uow(db: Session = Depends(get_db)):
    uow = UnitOfWork(db)
    try:
        yield uow
    finally:
        uow.close()

def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer

def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store

def get_current_user_id(request: Request) -> int:
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise UnauthenticatedError()
    return user_id

def get_current_user(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UnauthenticatedError("user not found")
    return user
