from app.core.config import settings
from app.services.ticket_identifier import strip_daily_suffix


def support_link_for(ticket_id: str, base_url: str | None = None) -> str:
    """Deep link into the upstream support inbox for a ticket."""
    base = (base_url or settings.support_inbox_url).rstrip("/")
    return f"{base}/{strip_daily_suffix(ticket_id)}"
