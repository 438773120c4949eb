"""
Program records: CRUD for the owner, filtering and dashboard counts.

Reads and updates look programs up scoped to the caller, so someone else's
program is simply "not found". Deletion checks existence first and ownership
second, answering 404 for an unknown id and 403 for a foreign one.
"""

import logging
from typing import Mapping

from sqlalchemy import func
from sqlalchemy.orm import Session

from gradtracker.auth.ownership import authorize
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.errors import NotFoundError
from gradtracker.models.document import Document
from gradtracker.models.program import ApplicationStatus, Program
from gradtracker.models.user import User
from gradtracker.programs.filters import build_program_filter
from gradtracker.schemas.program import ProgramCreate, ProgramUpdate

logger = logging.getLogger(__name__)


def _require_user(db: Session, user_id: int) -> None:
    if db.get(User, user_id) is None:
        raise NotFoundError("User", user_id)


def _get_owned(db: Session, user_id: int, program_id: int) -> Program:
    program = db.query(Program).filter(Program.id == program_id, Program.user_id == user_id).first()
    if program is None:
        raise NotFoundError("Program", program_id)
    return program


def create_program(uow: UnitOfWork, user_id: int, body: ProgramCreate) -> Program:
    db = uow.session
    with uow:
        _require_user(db, user_id)
        data = body.model_dump()
        data["status"] = ApplicationStatus.parse(data.get("status")).value
        program = Program(user_id=user_id, **data)
        db.add(program)
    db.refresh(program)
    logger.info("created program %s for user %s", program.id, user_id)
    return program


def list_programs(db: Session, user_id: int) -> list[Program]:
    _require_user(db, user_id)
    return db.query(Program).filter(Program.user_id == user_id).order_by(Program.id).all()


def get_program(db: Session, user_id: int, program_id: int) -> Program:
    return _get_owned(db, user_id, program_id)


def filter_programs(db: Session, user_id: int, criteria: Mapping[str, str]) -> list[Program]:
    _require_user(db, user_id)
    clauses = build_program_filter(user_id, criteria)
    return db.query(Program).filter(*clauses).order_by(Program.id).all()


def update_program(uow: UnitOfWork, user_id: int, program_id: int, body: ProgramUpdate) -> Program:
    db = uow.session
    with uow:
        program = _get_owned(db, user_id, program_id)
        changes = body.model_dump(exclude_unset=True)
        if "status" in changes:
            changes["status"] = ApplicationStatus.parse(changes["status"]).value
        if changes.get("university_name") is None:
            changes.pop("university_name", None)
        for field, value in changes.items():
            setattr(program, field, value)
    db.refresh(program)
    return program


def delete_program(uow: UnitOfWork, user_id: int, program_id: int) -> None:
    """Removes the program and its links; linked documents stay."""
    db = uow.session
    with uow:
        program = authorize(db.get(Program, program_id), user_id, "Program", program_id, "delete")
        db.delete(program)
    logger.info("deleted program %s", program_id)


def dashboard_stats(db: Session, user_id: int) -> dict:
    _require_user(db, user_id)
    rows = (
        db.query(Program.status, func.count(Program.id))
        .filter(Program.user_id == user_id)
        .group_by(Program.status)
        .all()
    )
    status_counts: dict[str, int] = {}
    for status, count in rows:
        label = status or ApplicationStatus.OTHER.value
        status_counts[label] = status_counts.get(label, 0) + count
    total_documents = db.query(func.count(Document.id)).filter(Document.user_id == user_id).scalar()
    return {
        "total_programs": sum(status_counts.values()),
        "total_documents": total_documents or 0,
        "status_counts": status_counts,
    }
