import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.api.deps import get_current_user
from app.api.serializers import ticket_detail, ticket_to_dict
from app.db.session import get_session
from app.models.ticket import Ticket
from app.models.user import User
from app.services.support_inbox import support_link_for
from app.services.ticket_identifier import resolve_reference_instant, strip_daily_suffix

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tickets"])


class RestoreRequest(BaseModel):
    ticket: Optional[dict[str, Any]] = None


def _visible_ticket(session: Session, ticket_id: str, user: User) -> Ticket:
    # someone else's ticket is reported exactly like a missing one
    t = session.get(Ticket, ticket_id)
    if not t or (t.owner_id and t.owner_id != user.id):
        raise HTTPException(status_code=404, detail="Not found")
    return t


def _text(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    return value.strip() or None


@router.get("/dashboard/tickets")
def list_dashboard_tickets(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    tickets = session.exec(
        select(Ticket)
        .where(or_(Ticket.owner_id == user.id, Ticket.owner_id == None))  # noqa: E711
        .order_by(Ticket.updated_at.desc())
    ).all()
    return {"tickets": [ticket_to_dict(t) for t in tickets]}


@router.post("/tickets/restore")
def restore_ticket(
    body: RestoreRequest,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    data = body.ticket
    if not data or not isinstance(data.get("id"), str) or not data["id"].strip():
        raise HTTPException(status_code=400, detail="Missing ticket")

    owner_id = data.get("ownerId")
    if owner_id and owner_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")

    ticket_id = data["id"].strip()
    base_id = strip_daily_suffix(ticket_id)
    created_raw = data.get("createdAt") if isinstance(data.get("createdAt"), str) else None

    ticket = Ticket(
        id=ticket_id,
        base_id=base_id if base_id != ticket_id else None,
        brand=_text(data, "brand") or "Unknown",
        client_name=_text(data, "clientName") or "Unknown",
        subject=_text(data, "subject") or "Untitled",
        product=_text(data, "product"),
        issue_category=_text(data, "issueCategory"),
        ticket_url=_text(data, "ticketUrl") or support_link_for(ticket_id),
        status=_text(data, "status") or "Open",
        last_message=data.get("lastMessage") if isinstance(data.get("lastMessage"), str) else "",
        date=_text(data, "date"),
        client_msgs=data.get("clientMsgs"),
        agent_msgs=data.get("agentMsgs"),
        owner_id=owner_id or user.id,
        created_at=resolve_reference_instant(created_raw),
    )
    session.add(ticket)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Ticket already exists")

    session.refresh(ticket)
    logger.info("ticket %s restored by %s", ticket.id, user.id)
    return {"success": True, "ticket": ticket_to_dict(ticket)}


@router.get("/tickets/{ticket_id}")
def get_ticket(
    ticket_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return ticket_detail(_visible_ticket(session, ticket_id, user))


@router.delete("/tickets/{ticket_id}")
def delete_ticket(
    ticket_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
):
    t = _visible_ticket(session, ticket_id, user)
    session.delete(t)
    session.commit()
    logger.info("ticket %s deleted by %s", ticket_id, user.id)
    return {"success": True}
