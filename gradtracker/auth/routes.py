
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from gradtracker.auth.deps import get_db, get_uow, get_current_user, get_token_issuer, get_document_store
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.documents.storage import DocumentStore
from gradtracker.models.user import User
from gradtracker.schemas.auth import RegisterIn, LoginIn, TokenOut, UserOut, UserUpdate, PasswordChange
from gradtracker.auth import service
from gradtracker.utils.security import TokenIssuer

router = APIRouter(prefix="/api/users", tags=["users"])

@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(body: RegisterIn, uow: UnitOfWork = Depends(get_uow)):
    return service.register_user(uow, body.name, body.email, body.password)

@router.post("/login", response_model=TokenOut)
def login(body: LoginIn, db: Session = Depends(get_db), issuer: TokenIssuer = Depends(get_token_issuer)):
    token, user = service.login_user(db, issuer, body.email, body.password)
    return TokenOut(access_token=token, user=UserOut.model_validate(user))

@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user

@router.put("/me", response_model=UserOut)
def update_me(body: UserUpdate, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)):
    return service.update_user(uow, user.id, body)

@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(body: PasswordChange, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)):
    service.change_password(uow, user.id, body.old_password, body.new_password)

@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(
    uow: UnitOfWork = Depends(get_uow),
    store: DocumentStore = Depends(get_document_store),
    user: User = Depends(get_current_user),
):
    service.delete_user(uow, store, user.id)
