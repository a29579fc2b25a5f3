"""FastAPI application for the website analysis service."""

import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from sse_starlette.sse import EventSourceResponse

from .config import settings
from .errors import URLValidationError
from .http_client import close_session, get_session
from .models import AnalyzeRequest, PageResult
from .narrative import NarrativeGenerator
from .orchestrator import BatchOrchestrator
from .pipeline import PagePipeline
from .renderer_pool import RendererPool
from .report_generator import get_report_generator
from .session_store import SessionStore

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown hooks."""
    # Startup
    settings.ensure_dirs()
    await get_session()
    logger.info("HTTP client initialized")

    store = SessionStore(ttl=settings.SESSION_TTL, sweep_interval=settings.SESSION_SWEEP_INTERVAL)
    pool = RendererPool(max_instances=settings.MAX_RENDERERS)
    narrative = NarrativeGenerator(settings)
    if not narrative.configured:
        logger.warning("No valid OpenAI API key found, using fallback narrative and neutral lead score")

    app.state.store = store
    app.state.pool = pool
    app.state.narrative = narrative
    app.state.reports = get_report_generator()
    app.state.orchestrator = BatchOrchestrator(
        store,
        pool,
        PagePipeline(settings, narrative=narrative),
        reports=app.state.reports,
        config=settings,
    )

    sweeper = asyncio.create_task(store.run_sweeper())
    logger.info("Session sweeper started")

    yield

    # Shutdown
    await app.state.orchestrator.shutdown()
    sweeper.cancel()
    await asyncio.gather(sweeper, return_exceptions=True)
    await pool.close()
    await close_session()
    logger.info("HTTP client closed")


app = FastAPI(
    title="Webscore",
    description="Batch website analysis with scored HTML reports",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS: origins from CORS_ORIGINS env var (comma-separated)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


def _get_session_or_404(request: Request, session_id: str):
    session = request.app.state.store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@app.post("/api/analyze")
async def start_analysis(body: AnalyzeRequest, request: Request):
    """Start a batch analysis of up to MAX_URLS_PER_BATCH pages."""
    try:
        session = await request.app.state.orchestrator.submit(body.urls, body.language)
    except URLValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "session_id": session.id,
        "message": f"Analysis started for {session.total} URL(s)",
    }


@app.get("/api/status/{session_id}")
async def session_status(session_id: str, request: Request):
    """Get the current session snapshot (for polling)."""
    session = _get_session_or_404(request, session_id)
    return session.model_dump(mode="json")


@app.get("/api/status/{session_id}/stream")
async def session_status_stream(session_id: str, request: Request):
    """SSE stream of session snapshots until the session is terminal."""
    _get_session_or_404(request, session_id)
    store = request.app.state.store

    async def event_generator():
        start_time = time.time()
        last_sent = None

        while True:
            session = store.get(session_id)
            if session is None:
                yield {"event": "error", "data": json.dumps({"error": "Session not found"})}
                break

            snapshot = session.model_dump_json()
            if snapshot != last_sent:
                yield {"event": "progress", "data": snapshot}
                last_sent = snapshot
            if session.is_terminal:
                break

            if time.time() - start_time > settings.MAX_SSE_DURATION:
                yield {"event": "error", "data": json.dumps({"error": "Connection timeout"})}
                break

            await asyncio.sleep(settings.STATUS_STREAM_INTERVAL)

    return EventSourceResponse(event_generator())


@app.post("/api/cancel/{session_id}")
async def cancel_session(session_id: str, request: Request):
    """Stop a running batch before its next URL."""
    _get_session_or_404(request, session_id)
    cancelled = request.app.state.orchestrator.cancel(session_id)
    return {"session_id": session_id, "cancelled": cancelled}


@app.get("/api/report/{session_id}/{index}")
async def download_report(session_id: str, index: int, request: Request):
    """Serve the HTML report of one analyzed page."""
    session = _get_session_or_404(request, session_id)
    if index < 0 or index >= len(session.results) or not isinstance(session.results[index], PageResult):
        raise HTTPException(status_code=404, detail="Report not found")

    path = request.app.state.reports.report_path(session_id, index)
    if not path.exists():
        raise HTTPException(status_code=404, detail="Report not ready")

    return FileResponse(path, media_type="text/html")


# Health check
@app.get("/health")
async def health_check(request: Request):
    return {
        "status": "ok",
        "narrative_configured": request.app.state.narrative.configured,
        "renderers": request.app.state.pool.health(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
