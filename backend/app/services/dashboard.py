from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.ticket import Ticket
from app.models.user import User
from app.services.ticket_identifier import day_bounds, day_key

TIMELINE_DAYS = 10
TOP_BUCKETS = 6


def _label(value: Optional[str], fallback: str) -> str:
    value = (value or "").strip()
    return value or fallback


def _ranked(rows: Iterable[tuple[Optional[str], int]], fallback: str, limit: int = TOP_BUCKETS) -> list[dict[str, Any]]:
    counts: dict[str, int] = {}
    for raw, n in rows:
        label = _label(raw, fallback)
        counts[label] = counts.get(label, 0) + n
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [{"label": label, "count": n} for label, n in ranked]


def _count_between(session: Session, start: datetime, end: datetime) -> int:
    return session.exec(
        select(func.count()).select_from(Ticket).where(Ticket.created_at >= start, Ticket.created_at < end)
    ).one()


def dashboard_stats(session: Session, offset_minutes: int, now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    today_start, today_end = day_bounds(now, offset_minutes)
    yesterday_start = today_start - timedelta(days=1)
    timeline_start = today_start - timedelta(days=TIMELINE_DAYS - 1)

    total = session.exec(select(func.count()).select_from(Ticket)).one()

    brand_all = session.exec(select(Ticket.brand, func.count()).group_by(Ticket.brand)).all()
    brand_today = session.exec(
        select(Ticket.brand, func.count())
        .where(Ticket.created_at >= today_start, Ticket.created_at < today_end)
        .group_by(Ticket.brand)
    ).all()
    issues = session.exec(select(Ticket.issue_category, func.count()).group_by(Ticket.issue_category)).all()

    # zero-filled, oldest day first
    timeline: dict[str, int] = {}
    for i in range(TIMELINE_DAYS - 1, -1, -1):
        timeline[day_key(today_start - timedelta(days=i), offset_minutes)] = 0

    recent = session.exec(
        select(Ticket.created_at).where(Ticket.created_at >= timeline_start, Ticket.created_at < today_end)
    ).all()
    for created_at in recent:
        key = day_key(created_at, offset_minutes)
        if key in timeline:
            timeline[key] += 1

    return {
        "day": day_key(now, offset_minutes),
        "summary": {
            "total": total,
            "today": _count_between(session, today_start, today_end),
            "yesterday": _count_between(session, yesterday_start, today_start),
        },
        "brands": {
            "all_time": [{"brand": b["label"], "count": b["count"]} for b in _ranked(brand_all, "Unknown")],
            "today": [{"brand": b["label"], "count": b["count"]} for b in _ranked(brand_today, "Unknown")],
        },
        "issue_categories": [{"category": c["label"], "count": c["count"]} for c in _ranked(issues, "Uncategorized")],
        "timeline": [{"date": k, "count": n} for k, n in timeline.items()],
    }


def todays_league(session: Session, offset_minutes: int, now: Optional[datetime] = None) -> dict[str, Any]:
    """Ticket count per teammate for the current local day."""
    now = now or datetime.now(timezone.utc)
    start, end = day_bounds(now, offset_minutes)

    grouped = session.exec(
        select(Ticket.owner_id, func.count())
        .where(Ticket.created_at >= start, Ticket.created_at < end)
        .group_by(Ticket.owner_id)
    ).all()
    counts = {owner_id: n for owner_id, n in grouped if owner_id}
    unassigned = sum(n for owner_id, n in grouped if not owner_id)

    users = session.exec(select(User).order_by(User.name)).all()
    entries = sorted(
        (
            {
                "user_id": u.id,
                "name": u.name or u.email,
                "email": u.email,
                "avatar_url": u.avatar_url,
                "count": counts.get(u.id, 0),
            }
            for u in users
        ),
        key=lambda e: (-e["count"], e["name"].lower()),
    )
    for rank, entry in enumerate(entries, start=1):
        entry["rank"] = rank

    return {
        "day": day_key(now, offset_minutes),
        "leaderboard": entries,
        "unassigned": unassigned,
        "total": sum(e["count"] for e in entries) + unassigned,
    }
