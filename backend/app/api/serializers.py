from datetime import datetime, timezone
from typing import Any

from app.models.ticket import Ticket
from app.services.support_inbox import support_link_for
from app.services.ticket_identifier import strip_daily_suffix


def ts(dt: datetime | None) -> str | None:
    if not dt:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def ticket_to_dict(t: Ticket) -> dict[str, Any]:
    return {
        "id": t.id,
        "displayId": strip_daily_suffix(t.id),
        "brand": t.brand,
        "clientName": t.client_name,
        "subject": t.subject,
        "product": t.product,
        "issueCategory": t.issue_category,
        "ticketUrl": t.ticket_url,
        "status": t.status,
        "lastMessage": t.last_message,
        "date": t.date,
        "clientMsgs": t.client_msgs,
        "agentMsgs": t.agent_msgs,
        "ownerId": t.owner_id,
        "createdAt": ts(t.created_at),
        "updatedAt": ts(t.updated_at),
    }


def ticket_detail(t: Ticket) -> dict[str, Any]:
    out = ticket_to_dict(t)
    out["supportUrl"] = support_link_for(t.id)
    out["externalUrl"] = t.ticket_url or out["supportUrl"]
    return out
