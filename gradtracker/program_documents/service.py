"""
Links between a program and the documents submitted for it.

A link is owned through its program. Linking checks the program first and
then the document, each in the usual not-found-then-forbidden order, and a
document can be attached to a given program only once.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gradtracker.auth.ownership import authorize
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.errors import ConflictError, NotFoundError
from gradtracker.models.document import Document
from gradtracker.models.program import Program
from gradtracker.models.program_document import ProgramDocument
from gradtracker.schemas.program_document import LinkCreate, LinkUpdate

logger = logging.getLogger(__name__)


def _program(db: Session, caller_id: int, program_id: int, action: str) -> Program:
    return authorize(db.get(Program, program_id), caller_id, "Program", program_id, action)


def _link(db: Session, caller_id: int, link_id: int, action: str) -> ProgramDocument:
    link = db.get(ProgramDocument, link_id)
    if link is None:
        raise NotFoundError("ProgramDocument", link_id)
    _program(db, caller_id, link.program_id, action)
    return link


def link_document(uow: UnitOfWork, caller_id: int, program_id: int, body: LinkCreate) -> ProgramDocument:
    db = uow.session
    with uow:
        _program(db, caller_id, program_id, "link documents to")
        authorize(db.get(Document, body.document_id), caller_id, "Document", body.document_id, "link")

        existing = (
            db.query(ProgramDocument.id)
            .filter(ProgramDocument.program_id == program_id, ProgramDocument.document_id == body.document_id)
            .first()
        )
        if existing is not None:
            raise ConflictError("document is already linked to this program")

        link = ProgramDocument(program_id=program_id, document_id=body.document_id, usage_notes=body.usage_notes)
        db.add(link)
        try:
            db.flush()
        except IntegrityError:
            # a concurrent request inserted the same pair
            raise ConflictError("document is already linked to this program")

    db.refresh(link)
    logger.info("linked document %s to program %s", body.document_id, program_id)
    return link


def list_links(db: Session, caller_id: int, program_id: int) -> list[ProgramDocument]:
    _program(db, caller_id, program_id, "view")
    return (
        db.query(ProgramDocument)
        .filter(ProgramDocument.program_id == program_id)
        .order_by(ProgramDocument.id)
        .all()
    )


def update_link(uow: UnitOfWork, caller_id: int, link_id: int, body: LinkUpdate) -> ProgramDocument:
    db = uow.session
    with uow:
        link = _link(db, caller_id, link_id, "update")
        link.usage_notes = body.usage_notes
    db.refresh(link)
    return link


def delete_link(uow: UnitOfWork, caller_id: int, link_id: int) -> None:
    db = uow.session
    with uow:
        link = _link(db, caller_id, link_id, "update")
        db.delete(link)
    logger.info("removed program document link %s", link_id)
