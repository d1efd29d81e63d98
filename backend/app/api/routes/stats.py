from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.deps import get_current_user
from app.core.config import get_day_offset_minutes
from app.db.session import get_session
from app.services.dashboard import dashboard_stats, todays_league

router = APIRouter(prefix="/stats", tags=["stats"], dependencies=[Depends(get_current_user)])


@router.get("")
def stats(session: Session = Depends(get_session)):
    return dashboard_stats(session, get_day_offset_minutes())


@router.get("/league")
def league(session: Session = Depends(get_session)):
    return todays_league(session, get_day_offset_minutes())
