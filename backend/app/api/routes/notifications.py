from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from app.api.deps import get_current_user
from app.api.serializers import ts
from app.db.session import get_session
from app.models.user import User
from app.services.notifications import delete_notifications, list_notifications, mark_notifications_read
from app.services.ticket_identifier import strip_daily_suffix

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _ids(payload: Optional[dict]) -> list[str]:
    raw = (payload or {}).get("ids")
    if not isinstance(raw, list):
        return []
    return [i for i in raw if isinstance(i, str)]


@router.get("")
def get_notifications(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    rows = list_notifications(session, user.id)
    return {
        "notifications": [
            {
                "id": str(n.id),
                "message": n.message,
                "ticketId": n.ticket_id,
                "displayTicketId": strip_daily_suffix(n.ticket_id),
                "ticketSubject": subject or "Ticket update",
                "isRead": n.is_read,
                "createdAt": ts(n.created_at),
            }
            for n, subject in rows
        ]
    }


@router.patch("")
def read_notifications(
    payload: Optional[dict] = Body(default=None),
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    updated = mark_notifications_read(session, user.id, _ids(payload))
    return {"success": True, "updated": updated}


@router.delete("")
def remove_notifications(
    payload: Optional[dict] = Body(default=None),
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    deleted = delete_notifications(session, user.id, _ids(payload))
    return {"success": True, "deleted": deleted}
