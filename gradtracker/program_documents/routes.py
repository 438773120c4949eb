
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from gradtracker.auth.deps import get_db, get_uow, get_current_user
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.models.user import User
from gradtracker.program_documents import service
from gradtracker.schemas.program_document import LinkCreate, LinkOut, LinkUpdate

router = APIRouter(prefix="/api", tags=["program-documents"])

@router.post("/programs/{program_id}/documents", response_model=LinkOut, status_code=status.HTTP_201_CREATED)
def link_document(
    program_id: int, body: LinkCreate, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)
):
    return service.link_document(uow, user.id, program_id, body)

@router.get("/programs/{program_id}/documents", response_model=list[LinkOut])
def list_links(program_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return service.list_links(db, user.id, program_id)

@router.put("/program-docs/{link_id}", response_model=LinkOut)
def update_link(
    link_id: int, body: LinkUpdate, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)
):
    return service.update_link(uow, user.id, link_id, body)

@router.delete("/program-docs/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_link(link_id: int, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)):
    service.delete_link(uow, user.id, link_id)
