
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from gradtracker.auth.deps import get_db, get_uow, get_current_user, get_document_store
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.documents import service
from gradtracker.documents.storage import DocumentStore
from gradtracker.models.user import User
from gradtracker.schemas.document import DocumentOut, DocumentUpdate

router = APIRouter(prefix="/api", tags=["documents"])

@router.post("/users/{user_id}/documents", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def upload_document(
    user_id: int,
    file: UploadFile = File(...),
    doc_type: str = Form(...),
    notes: str | None = Form(None),
    uow: UnitOfWork = Depends(get_uow),
    store: DocumentStore = Depends(get_document_store),
    user: User = Depends(get_current_user),
):
    return service.upload_document(
        uow, store, user.id, user_id, file.filename, file.file, file.size, doc_type=doc_type, notes=notes
    )

@router.get("/users/{user_id}/documents", response_model=list[DocumentOut])
def list_documents(user_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return service.list_documents(db, user.id, user_id)

@router.get("/users/{user_id}/documents/search", response_model=list[DocumentOut])
def search_documents(
    user_id: int, doc_type: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)
):
    return service.list_documents(db, user.id, user_id, doc_type=doc_type)

@router.get("/documents/{doc_id}", response_model=DocumentOut)
def get_document(doc_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return service.get_document(db, user.id, doc_id)

@router.get("/documents/{doc_id}/download")
def download_document(doc_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    doc = service.get_document(db, user.id, doc_id)
    path = service.get_file_path(db, user.id, doc_id)
    return FileResponse(path, filename=doc.file_name)

@router.put("/documents/{doc_id}", response_model=DocumentOut)
def update_document(
    doc_id: int,
    body: DocumentUpdate,
    uow: UnitOfWork = Depends(get_uow),
    store: DocumentStore = Depends(get_document_store),
    user: User = Depends(get_current_user),
):
    return service.update_document(uow, store, user.id, doc_id, body)

@router.post("/documents/{doc_id}/replace", response_model=DocumentOut)
def replace_file(
    doc_id: int,
    file: UploadFile = File(...),
    uow: UnitOfWork = Depends(get_uow),
    store: DocumentStore = Depends(get_document_store),
    user: User = Depends(get_current_user),
):
    return service.replace_file(uow, store, user.id, doc_id, file.filename, file.file, file.size)

@router.delete("/documents/{doc_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    doc_id: int,
    uow: UnitOfWork = Depends(get_uow),
    store: DocumentStore = Depends(get_document_store),
    user: User = Depends(get_current_user),
):
    service.delete_document(uow, store, user.id, doc_id)
