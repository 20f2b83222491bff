# backend/skillsphere/main.py
"""
SkillSphere API application.

Run with:
    uvicorn skillsphere.main:app --reload --app-dir backend
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, FastAPI, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .api.dependencies import get_db
from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .database import init_db
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import assistant as assistant_v1
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import chat as chat_v1
from .routes.v1 import feedback as feedback_v1
from .routes.v1 import sessions as sessions_v1
from .routes.v1 import transcripts as transcripts_v1
from .schemas.base_responses import HealthCheckResponse

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    init_db()
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
register_error_handlers(app)
app.add_middleware(PrometheusMiddleware)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(sessions_v1.router, prefix="/sessions")
api_v1.include_router(chat_v1.router, prefix="/chat")
api_v1.include_router(transcripts_v1.router, prefix="/transcripts")
api_v1.include_router(assistant_v1.router, prefix="/assistant")
api_v1.include_router(feedback_v1.router, prefix="/feedback")
app.include_router(api_v1)


@app.get("/health", response_model=HealthCheckResponse, tags=["health"])
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as exc:
        logger.error("Health check database probe failed: %s", exc)
        database_ok = False
    return HealthCheckResponse(
        message="Service is healthy" if database_ok else "Database unavailable",
        status="healthy" if database_ok else "unhealthy",
        service=API_TITLE,
        version=API_VERSION,
        checks={"database": database_ok},
    )


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
