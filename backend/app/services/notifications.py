import logging
import uuid
from typing import Optional, Sequence

from sqlmodel import Session, select

from app.core.config import settings
from app.metrics.prometheus import notifications_total
from app.models.notification import Notification
from app.models.ticket import Ticket

logger = logging.getLogger(__name__)


def build_notification_message(
    last_message: Optional[str],
    subject: Optional[str],
    client_name: Optional[str],
    limit: Optional[int] = None,
) -> str:
    limit = limit or settings.notification_message_limit
    text = " ".join((last_message or "").split())
    if not text:
        text = f"Ticket update: {subject or 'Untitled'} from {client_name or 'Unknown'}."
    return text[:limit]


def emit_ticket_notification(
    session: Session,
    ticket: Ticket,
    owner_id: str,
    last_message: Optional[str],
) -> Optional[Notification]:
    """Store one notification for ``owner_id``. Failures are logged, never raised."""
    ticket_id = ticket.id
    try:
        notification = Notification(
            id=uuid.uuid4(),
            user_id=owner_id,
            ticket_id=ticket_id,
            message=build_notification_message(last_message, ticket.subject, ticket.client_name),
        )
        session.add(notification)
        session.commit()
        session.refresh(notification)
    except Exception:
        session.rollback()
        notifications_total.labels(outcome="failed").inc()
        logger.exception("failed to store notification for ticket %s (owner %s)", ticket_id, owner_id)
        return None

    notifications_total.labels(outcome="sent").inc()
    return notification


def list_notifications(session: Session, user_id: str, limit: int = 25) -> list[tuple[Notification, Optional[str]]]:
    """Newest notifications for a user, each paired with its ticket subject."""
    rows = session.exec(
        select(Notification, Ticket.subject)
        .join(Ticket, Ticket.id == Notification.ticket_id, isouter=True)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    ).all()
    return list(rows)


def _select_owned(user_id: str, ids: Optional[Sequence[str]]):
    q = select(Notification).where(Notification.user_id == user_id)
    if ids:
        parsed = []
        for raw in ids:
            try:
                parsed.append(uuid.UUID(str(raw)))
            except ValueError:
                continue
        q = q.where(Notification.id.in_(parsed))
    return q


def mark_notifications_read(session: Session, user_id: str, ids: Optional[Sequence[str]] = None) -> int:
    """Mark the given notifications read, or every unread one when ``ids`` is empty."""
    q = _select_owned(user_id, ids)
    if not ids:
        q = q.where(Notification.is_read == False)  # noqa: E712

    notifications = session.exec(q).all()
    for n in notifications:
        n.is_read = True
        session.add(n)
    session.commit()
    return len(notifications)


def delete_notifications(session: Session, user_id: str, ids: Optional[Sequence[str]] = None) -> int:
    notifications = session.exec(_select_owned(user_id, ids)).all()
    for n in notifications:
        session.delete(n)
    session.commit()
    return len(notifications)
