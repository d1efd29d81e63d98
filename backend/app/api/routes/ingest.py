import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.api.deps import require_dashboard_token
from app.api.serializers import ticket_to_dict
from app.db.session import get_session
from app.metrics.prometheus import ingest_db_write_latency_seconds, ingest_errors_total
from app.models.ticket import Ticket
from app.services.ingestion import TicketPayload, TicketValidationError, reconcile_ticket

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["ingest"])


@router.post("", dependencies=[Depends(require_dashboard_token)])
def ingest_ticket(payload: dict, session: Session = Depends(get_session)):
    try:
        event = TicketPayload.model_validate(payload)
        start = time.perf_counter()
        ticket = reconcile_ticket(session, event)
        ingest_db_write_latency_seconds.observe(time.perf_counter() - start)
    except (ValidationError, TicketValidationError) as e:
        ingest_errors_total.labels(kind="validation").inc()
        detail = str(e) if isinstance(e, TicketValidationError) else "Invalid payload"
        raise HTTPException(status_code=400, detail=detail)
    except SQLAlchemyError:
        session.rollback()
        ingest_errors_total.labels(kind="storage").inc()
        logger.exception("failed to store ticket %r", payload.get("id"))
        raise HTTPException(status_code=500, detail="Failed to process request")

    return {"success": True, "ticket": ticket_to_dict(ticket)}


@router.get("", dependencies=[Depends(require_dashboard_token)])
def list_all_tickets(session: Session = Depends(get_session)):
    tickets = session.exec(select(Ticket).order_by(Ticket.updated_at.desc())).all()
    return {"tickets": [ticket_to_dict(t) for t in tickets]}
