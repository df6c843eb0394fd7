from prometheus_fastapi_instrumentator import Instrumentator

from babytracker.core.logging import configure_logging
from . import app as dashboard_app

configure_logging()
app = dashboard_app
instrumentator = Instrumentator(excluded_handlers=["/metrics", "/health", "/static"])
instrumentator.instrument(app)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@app.on_event("startup")
async def _metrics() -> None:
    instrumentator.expose(app, include_in_schema=False)
