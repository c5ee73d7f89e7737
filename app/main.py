# =============================================================================
# FastAPI Application
# =============================================================================
#
# Run locally:
#   uvicorn app.main:app --reload
#
# The evidence engine (and its cache) is created lazily on the first
# analyze request, so the app starts without an LLM key; analyze requests
# then fail with 503 until one is configured.
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.analyze import router as analyze_router
from app.config import settings
from app.models.responses import HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    logger.info("%s v%s starting", settings.app_name, settings.app_version)
    yield
    logger.info("%s shutting down", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Checks audit questions against a corpus of healthcare policy "
        "documents and returns the supporting excerpt for each question."
    ),
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(analyze_router)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health() -> HealthResponse:
    return HealthResponse(version=settings.app_version, service=settings.app_name)
