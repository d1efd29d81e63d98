from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

JsonType = JSON().with_variant(JSONB(), "postgresql")


class Ticket(SQLModel, table=True):
    __tablename__ = "tickets"
    # one bucket per base id per local day; legacy bare-id rows have no base_id
    __table_args__ = (UniqueConstraint("base_id", "date", name="uq_tickets_base_id_date"),)

    id: str = Field(primary_key=True, index=True)  # base id or composite daily id
    base_id: Optional[str] = Field(default=None, index=True)

    brand: Optional[str] = Field(default=None, index=True)
    client_name: Optional[str] = None
    subject: Optional[str] = None
    product: Optional[str] = None
    issue_category: Optional[str] = Field(default=None, index=True)
    ticket_url: Optional[str] = None
    status: Optional[str] = Field(default=None, index=True)
    last_message: Optional[str] = None
    date: Optional[str] = Field(default=None, index=True)  # YYYY-MM-DD day key

    client_msgs: Any = Field(default=None, sa_column=Column(JsonType, nullable=True))
    agent_msgs: Any = Field(default=None, sa_column=Column(JsonType, nullable=True))

    owner_id: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
