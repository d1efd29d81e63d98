import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.config import get_day_offset_minutes
from app.metrics.prometheus import tickets_ingested_total
from app.models.ticket import Ticket
from app.models.user import User
from app.services.notifications import emit_ticket_notification
from app.services.support_inbox import support_link_for
from app.services.ticket_identifier import (
    build_daily_id,
    day_bounds,
    day_key,
    resolve_reference_instant,
)

logger = logging.getLogger(__name__)


class TicketValidationError(ValueError):
    """Raised when an ingest payload is missing its id or brand."""


class TicketPayload(BaseModel):
    """One ticket-activity event as posted by the browser extension."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    brand: Optional[str] = None
    client_name: Optional[str] = Field(default=None, alias="clientName")
    subject: Optional[str] = None
    product: Optional[str] = None
    issue_category: Optional[str] = Field(default=None, alias="issueCategory")
    ticket_url: Optional[str] = Field(default=None, alias="ticketUrl")
    status: Optional[str] = None
    last_message: Optional[str] = Field(default=None, alias="lastMessage")
    date: Optional[str] = None
    client_msgs: Any = Field(default=None, alias="clientMsgs")
    agent_msgs: Any = Field(default=None, alias="agentMsgs")
    owner_email: Optional[str] = Field(default=None, alias="ownerEmail")
    owner_id: Optional[str] = Field(default=None, alias="ownerId")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_owner_id(session: Session, owner_id: Optional[str], owner_email: Optional[str]) -> Optional[str]:
    """An explicit owner id wins; otherwise look the email up case-insensitively."""
    owner_id = _clean(owner_id)
    if owner_id:
        return owner_id

    email = _clean(owner_email)
    if not email:
        return None
    user = session.exec(select(User).where(User.email == email.lower())).first()
    return user.id if user else None


def _find_day_bucket(
    session: Session,
    base_id: str,
    daily_id: str,
    start: datetime,
    end: datetime,
) -> Optional[Ticket]:
    ids = [daily_id]
    # Legacy: rows stored before daily bucketing use the bare base id as their
    # primary key. Drop this once no bare-id rows remain.
    ids.append(base_id)

    return session.exec(
        select(Ticket)
        .where(Ticket.id.in_(ids))
        .where(Ticket.created_at >= start)
        .where(Ticket.created_at < end)
        .order_by(Ticket.created_at.desc())
    ).first()


def _apply_update(
    ticket: Ticket,
    payload: TicketPayload,
    brand: str,
    base_id: str,
    key: str,
    owner_id: Optional[str],
) -> Ticket:
    # overwrite, except where the event leaves a field out
    ticket.brand = brand
    for attr in ("client_name", "subject", "product", "issue_category", "status"):
        incoming = _clean(getattr(payload, attr))
        if incoming is not None:
            setattr(ticket, attr, incoming)
    if payload.last_message is not None:
        ticket.last_message = payload.last_message
    if payload.client_msgs is not None:
        ticket.client_msgs = payload.client_msgs
    if payload.agent_msgs is not None:
        ticket.agent_msgs = payload.agent_msgs

    ticket.ticket_url = _clean(payload.ticket_url) or ticket.ticket_url or support_link_for(base_id)
    ticket.date = key
    if owner_id:
        ticket.owner_id = owner_id
    ticket.updated_at = _now()
    return ticket


def _new_ticket(
    payload: TicketPayload,
    brand: str,
    base_id: str,
    daily_id: str,
    key: str,
    owner_id: Optional[str],
    reference: datetime,
) -> Ticket:
    return Ticket(
        id=daily_id,
        base_id=base_id,
        brand=brand,
        client_name=_clean(payload.client_name) or "Unknown",
        subject=_clean(payload.subject) or "Untitled",
        product=_clean(payload.product),
        issue_category=_clean(payload.issue_category),
        ticket_url=_clean(payload.ticket_url) or support_link_for(base_id),
        status=_clean(payload.status),
        last_message=payload.last_message or "",
        date=key,
        client_msgs=payload.client_msgs,
        agent_msgs=payload.agent_msgs,
        owner_id=owner_id,
        # keep the row inside its own day's bounds, even for back-dated events
        created_at=reference,
        updated_at=_now(),
    )


def reconcile_ticket(
    session: Session,
    payload: TicketPayload,
    offset_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Ticket:
    """Fold one ingest event into its ticket's day bucket.

    Updates the bucket row when one exists for the event's local day,
    otherwise creates ``<base id>__day__<day key>``. Emits a notification
    to the effective owner afterwards; that write is best-effort.
    """
    base_id = _clean(payload.id)
    brand = _clean(payload.brand)
    if not base_id or not brand:
        raise TicketValidationError("Missing required fields")

    offset = get_day_offset_minutes() if offset_minutes is None else offset_minutes
    reference = resolve_reference_instant(payload.date, now=now)
    key = day_key(reference, offset)
    daily_id = build_daily_id(base_id, reference, offset)
    start, end = day_bounds(reference, offset)

    owner_id = resolve_owner_id(session, payload.owner_id, payload.owner_email)

    existing = _find_day_bucket(session, base_id, daily_id, start, end)
    if existing:
        ticket = _apply_update(existing, payload, brand, base_id, key, owner_id)
        outcome = "updated"
    else:
        ticket = _new_ticket(payload, brand, base_id, daily_id, key, owner_id, reference)
        outcome = "created"

    session.add(ticket)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        if outcome != "created":
            raise
        # lost a create race for this bucket; apply the event to the winner
        winner = session.exec(
            select(Ticket).where(
                or_(Ticket.id == daily_id, (Ticket.base_id == base_id) & (Ticket.date == key))
            )
        ).first()
        if not winner:
            raise
        logger.warning("ticket %s already created for %s, applying as update", winner.id, key)
        ticket = _apply_update(winner, payload, brand, base_id, key, owner_id)
        outcome = "updated"
        session.add(ticket)
        session.commit()

    session.refresh(ticket)
    tickets_ingested_total.labels(outcome=outcome).inc()
    logger.info("ticket %s %s (base=%s day=%s)", ticket.id, outcome, base_id, key)

    effective_owner = ticket.owner_id or owner_id
    if effective_owner:
        emit_ticket_notification(session, ticket, effective_owner, payload.last_message)

    return ticket
