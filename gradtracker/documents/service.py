"""
Document lifecycle: upload, file replacement, metadata updates and deletion.

Every mutation runs inside a ``UnitOfWork``. New bytes are staged on disk
first, the row is written pointing at the *final* path, and the rename into
place is registered as a commit hook; a rollback discards the staged file.
If the rename itself fails after the commit, the row change is undone in a
compensating commit before the error surfaces, so a visible row always has
its file.
"""

import logging
from pathlib import Path
from typing import BinaryIO

from sqlalchemy import func
from sqlalchemy.orm import Session

from gradtracker.auth.ownership import authorize, require_self
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.documents.storage import DocumentStore, StagedFile
from gradtracker.errors import DocumentReferencedError, NotFoundError, StorageError, ValidationError
from gradtracker.models.document import Document
from gradtracker.models.program_document import ProgramDocument
from gradtracker.models.user import User
from gradtracker.schemas.document import DocumentUpdate

logger = logging.getLogger(__name__)


def _load(db: Session, caller_id: int, document_id: int, action: str) -> Document:
    return authorize(db.get(Document, document_id), caller_id, "Document", document_id, action)


def can_delete(db: Session, document_id: int) -> bool:
    """False while any program still links to the document."""
    linked = db.query(ProgramDocument.id).filter(ProgramDocument.document_id == document_id).first()
    return linked is None


def upload_document(
    uow: UnitOfWork,
    store: DocumentStore,
    caller_id: int,
    owner_id: int,
    filename: str | None,
    stream: BinaryIO,
    size: int | None,
    doc_type: str | None = None,
    notes: str | None = None,
) -> Document:
    require_self(owner_id, caller_id, "upload documents")
    db = uow.session
    if db.get(User, owner_id) is None:
        raise NotFoundError("User", owner_id)

    staged = store.stage(owner_id, filename, stream, size)
    with uow:
        uow.after_rollback(lambda: store.discard(staged))
        doc = Document(
            user_id=owner_id,
            file_name=staged.original_name,
            file_path=str(staged.final_path),
            doc_type=doc_type,
            notes=notes,
        )
        db.add(doc)
        db.flush()
        document_id = doc.id
        uow.after_commit(lambda: _promote_new(db, store, staged, document_id))

    db.refresh(doc)
    logger.info("uploaded document %s for user %s", doc.id, owner_id)
    return doc


def _promote_new(db: Session, store: DocumentStore, staged: StagedFile, document_id: int) -> None:
    try:
        store.promote(staged)
    except StorageError:
        store.discard(staged)
        doc = db.get(Document, document_id)
        if doc is not None:
            db.delete(doc)
            db.commit()
        raise


def replace_file(
    uow: UnitOfWork,
    store: DocumentStore,
    caller_id: int,
    document_id: int,
    filename: str | None,
    stream: BinaryIO,
    size: int | None,
) -> Document:
    db = uow.session
    doc = _load(db, caller_id, document_id, "update")

    staged = store.stage(doc.user_id, filename, stream, size)
    previous = (doc.file_path, doc.file_name)
    with uow:
        uow.after_rollback(lambda: store.discard(staged))
        doc.file_path = str(staged.final_path)
        doc.file_name = staged.original_name
        uow.after_commit(lambda: _promote_replacement(db, store, staged, document_id, previous))

    db.refresh(doc)
    logger.info("replaced file of document %s", document_id)
    return doc


def _promote_replacement(
    db: Session, store: DocumentStore, staged: StagedFile, document_id: int, previous: tuple[str, str]
) -> None:
    old_path, old_name = previous
    try:
        store.promote(staged)
    except StorageError:
        store.discard(staged)
        doc = db.get(Document, document_id)
        if doc is not None:
            doc.file_path, doc.file_name = old_path, old_name
            db.commit()
        raise
    # the new file is in place; losing the old one here only leaks disk space
    if old_path and Path(old_path) != staged.final_path:
        store.remove_quietly(old_path)


def update_document(
    uow: UnitOfWork, store: DocumentStore, caller_id: int, document_id: int, changes: DocumentUpdate
) -> Document:
    db = uow.session
    with uow:
        doc = _load(db, caller_id, document_id, "update")
        if changes.file_name is not None and not changes.file_name.strip():
            raise ValidationError("fileName must not be blank")

        stale_path = None
        if changes.file_path is not None and changes.file_path.strip():
            new_path = store.check_existing(doc.user_id, changes.file_path)
            if _path_in_use(db, str(new_path), document_id):
                raise ValidationError("replacement file belongs to another document")
            if doc.file_path and Path(doc.file_path).resolve() != new_path:
                stale_path = doc.file_path
            doc.file_path = str(new_path)
            doc.file_name = new_path.name

        if changes.file_name is not None:
            doc.file_name = changes.file_name
        if changes.doc_type is not None:
            doc.doc_type = changes.doc_type
        if changes.notes is not None:
            doc.notes = changes.notes

        db.flush()
        # last step: a failed delete aborts the update with the old file intact
        if stale_path:
            store.remove(stale_path)

    db.refresh(doc)
    return doc


def _path_in_use(db: Session, path: str, document_id: int) -> bool:
    other = (
        db.query(Document.id)
        .filter(Document.file_path == path, Document.id != document_id)
        .first()
    )
    return other is not None


def delete_document(uow: UnitOfWork, store: DocumentStore, caller_id: int, document_id: int) -> None:
    db = uow.session
    with uow:
        doc = _load(db, caller_id, document_id, "delete")
        if not can_delete(db, document_id):
            raise DocumentReferencedError()
        if doc.file_path:
            store.remove(doc.file_path)
        db.delete(doc)
    logger.info("deleted document %s", document_id)


def get_document(db: Session, caller_id: int, document_id: int) -> Document:
    return _load(db, caller_id, document_id, "view")


def get_file_path(db: Session, caller_id: int, document_id: int) -> Path:
    doc = _load(db, caller_id, document_id, "view")
    if not doc.file_path:
        raise NotFoundError("Document file")
    path = Path(doc.file_path)
    if not path.is_file():
        logger.error("file for document %s is missing on disk", document_id)
        raise StorageError("document file missing on disk")
    return path


def list_documents(db: Session, caller_id: int, owner_id: int, doc_type: str | None = None) -> list[Document]:
    require_self(owner_id, caller_id, "view documents")
    if db.get(User, owner_id) is None:
        raise NotFoundError("User", owner_id)
    q = db.query(Document).filter(Document.user_id == owner_id)
    if doc_type is not None:
        if not doc_type.strip():
            raise ValidationError("docType must not be blank")
        q = q.filter(func.lower(Document.doc_type).contains(doc_type.strip().lower(), autoescape=True))
    return q.order_by(Document.id).all()
