"""
FastAPI server exposing the dashboard JSON API.

Provides:
- /api/news            all news sources
- /api/social          social trending sources
- /api/news/{id}       one source (news or social)
- /health              health check
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import get_settings
from .logging_conf import bind_context, clear_context, get_logger, setup_logging
from .orchestrator import SourceNotFoundError, build_batch_payload, get_orchestrator
from .sources.registry import SourceGroup

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    sources: int
    cached: int


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        service="api",
    )

    orchestrator = get_orchestrator()
    logger.info("server_starting", sources=len(orchestrator.registry))

    yield

    logger.info("server_stopped")


app = FastAPI(
    title="News Dashboard API",
    description="Normalized articles from regional and international news feeds",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def disable_client_caching(request: Request, call_next):
    """The server-side cache is the only cache; browsers always re-ask."""
    bind_context(path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_context()
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


async def _group_response(group: SourceGroup, refresh: bool, error_message: str) -> JSONResponse:
    try:
        results = await get_orchestrator().resolve_group(group, force_refresh=refresh)
        # Rendering happens here, so unencodable content is a 500 too
        return JSONResponse(content=build_batch_payload(results))
    except Exception as e:
        logger.error("group_fetch_failed", group=group.value, error=str(e))
        return JSONResponse(status_code=500, content={"success": False, "error": error_message})


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    orchestrator = get_orchestrator()
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        sources=len(orchestrator.registry),
        cached=len(orchestrator.cache),
    )


@app.get("/api/news")
async def get_news(refresh: bool = False):
    """Articles for every news source."""
    return await _group_response(SourceGroup.NEWS, refresh, "Failed to fetch news")


@app.get("/api/social")
async def get_social(refresh: bool = False):
    """Articles for the social trending sources."""
    return await _group_response(SourceGroup.SOCIAL, refresh, "Failed to fetch social trends")


@app.get("/api/news/{source_id}")
async def get_source_news(source_id: str, refresh: bool = False):
    """Articles for a single source."""
    try:
        result = await get_orchestrator().resolve_one(source_id, force_refresh=refresh)
        return JSONResponse(content={"success": True, "data": result.to_dict()})
    except SourceNotFoundError:
        return JSONResponse(status_code=404, content={"success": False, "error": "Source not found"})
    except Exception as e:
        logger.error("source_fetch_failed", source=source_id, error=str(e))
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to fetch feed"})


def run_server(
    host: str = "0.0.0.0",
    port: Optional[int] = None,
):
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to
        port: Port to bind to (defaults to settings.port)
    """
    import uvicorn

    settings = get_settings()
    port = port or settings.port

    logger.info("starting_server", host=host, port=port)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
    )
