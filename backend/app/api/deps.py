from datetime import datetime, timezone
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException
from sqlmodel import Session, select

from app.core.config import settings
from app.db.session import get_session
from app.metrics.prometheus import ingest_errors_total
from app.models.user import User, UserSession

SESSION_COOKIE_NAME = "session-token"


def require_dashboard_token(authorization: Optional[str] = Header(default=None)) -> None:
    token = (authorization or "").removeprefix("Bearer ").strip()
    if not token or token != settings.dashboard_token:
        ingest_errors_total.labels(kind="unauthorized").inc()
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_current_user(
    session: Session = Depends(get_session),
    session_token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> User:
    if not session_token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    us = session.exec(select(UserSession).where(UserSession.token == session_token)).first()
    if not us:
        raise HTTPException(status_code=401, detail="Unauthorized")

    expires_at = us.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < datetime.now(timezone.utc):
        session.delete(us)
        session.commit()
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = session.get(User, us.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
