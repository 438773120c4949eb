
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from gradtracker.auth.deps import get_db, get_uow, get_current_user
from gradtracker.db.unit_of_work import UnitOfWork
from gradtracker.models.user import User
from gradtracker.programs import service
from gradtracker.schemas.program import ProgramCreate, ProgramOut, ProgramUpdate

router = APIRouter(prefix="/api/programs", tags=["programs"])

@router.post("", response_model=ProgramOut, status_code=status.HTTP_201_CREATED)
def create_program(body: ProgramCreate, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)):
    return service.create_program(uow, user.id, body)

@router.get("", response_model=list[ProgramOut])
def list_programs(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return service.list_programs(db, user.id)

@router.get("/filter", response_model=list[ProgramOut])
def filter_programs(request: Request, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    # every query parameter is a criterion
    return service.filter_programs(db, user.id, dict(request.query_params))

@router.get("/{program_id}", response_model=ProgramOut)
def get_program(program_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return service.get_program(db, user.id, program_id)

@router.put("/{program_id}", response_model=ProgramOut)
def update_program(
    program_id: int, body: ProgramUpdate, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)
):
    return service.update_program(uow, user.id, program_id, body)

@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_program(program_id: int, uow: UnitOfWork = Depends(get_uow), user: User = Depends(get_current_user)):
    service.delete_program(uow, user.id, program_id)
