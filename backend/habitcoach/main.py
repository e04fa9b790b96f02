"""Main FastAPI application for the habit coach backend."""
from fastapi import FastAPI, Request

from habitcoach.api.routes.plans import router as plans_router
from habitcoach.api.routes.reports import router as reports_router
from habitcoach.api.routes.todos import router as todos_router
from habitcoach.core.config import settings
from habitcoach.core.logging import configure_logging
from habitcoach.core.middleware import RequestIDMiddleware
from habitcoach.observability.client import init_opik
from habitcoach.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(plans_router)
app.include_router(todos_router)
app.include_router(reports_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
