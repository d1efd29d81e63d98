import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

from app import models  # noqa: F401  (registers tables)
from app.api.routes.ingest import router as ingest_router
from app.api.routes.metrics import router as metrics_router
from app.api.routes.notifications import router as notifications_router
from app.api.routes.stats import router as stats_router
from app.api.routes.tickets import router as tickets_router
from app.core.config import settings
from app.core.logging import init_logging
from app.db import session as session_mod
from app.metrics.prometheus import api_request_latency_seconds

logger = init_logging()

app = FastAPI(
    title="Ticket Pulse API",
    version="1.0.0",
    description="Daily ticket tracking dashboard fed by the support browser extension",
)

# dashboard UI origins plus the browser extension
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=r"chrome-extension://.*",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    SQLModel.metadata.create_all(session_mod.engine)
    logger.info("%s started (day offset %s min)", settings.project_name, settings.day_offset_minutes)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    response: Response | None = None
    try:
        response = await call_next(request)
        return response
    finally:
        dt = time.perf_counter() - start
        status = str(getattr(response, "status_code", "unknown"))
        api_request_latency_seconds.labels(route=request.url.path, method=request.method, status=status).observe(dt)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(ingest_router)
app.include_router(tickets_router)
app.include_router(notifications_router)
app.include_router(stats_router)
app.include_router(metrics_router)
