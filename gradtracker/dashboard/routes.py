
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from gradtracker.auth.deps import get_db, get_current_user
from gradtracker.models.user import User
from gradtracker.programs.service import dashboard_stats
from gradtracker.schemas.dashboard import DashboardStats

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

@router.get("/stats", response_model=DashboardStats)
def stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return dashboard_stats(db, user.id)
