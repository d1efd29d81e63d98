from prometheus_client import Counter, Histogram

tickets_ingested_total = Counter(
    "tickets_ingested_total",
    "Total ticket events applied via the ingest endpoint",
    ["outcome"],  # created/updated
)

ingest_errors_total = Counter(
    "ingest_errors_total",
    "Ingest requests rejected or failed",
    ["kind"],  # unauthorized/validation/storage
)

ingest_db_write_latency_seconds = Histogram(
    "ingest_db_write_latency_seconds",
    "Latency of reconciling an ingested ticket into the database",
)

notifications_total = Counter(
    "notifications_total",
    "Ticket notifications emitted to owners",
    ["outcome"],  # sent/failed
)

api_request_latency_seconds = Histogram(
    "api_request_latency_seconds",
    "API request latency in seconds",
    ["route", "method", "status"],
)
