import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True, index=True)
    email: str = Field(unique=True, index=True)  # stored lowercase
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


class UserSession(SQLModel, table=True):
    __tablename__ = "sessions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    token: str = Field(unique=True, index=True)
    user_id: str = Field(index=True)
    expires_at: datetime = Field(index=True)
