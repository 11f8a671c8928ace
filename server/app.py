"""FastAPI application -- routes for Sitebrief page summaries."""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session as DBSession

from rag.vector_store import VectorStore
from server.__version__ import __version__
from server.auth import get_admin_id
from server.config import PipelineConfig
from server.dependencies import (
    get_db_session,
    get_pipeline_config,
    get_provider,
    get_settings,
    get_vector_store,
)
from server.schemas import (
    DeleteSummaryRequest,
    ErrorResponse,
    PagesResponse,
    SummaryRequest,
    SummaryResponse,
)
from server.services import page_store, summary_service
from server.services.llm.provider import LLMProvider
from server.services.summary_errors import GenerationFailure, SummaryError
from server.services.summary_normalize import normalize_structured_summary

logger = logging.getLogger("sitebrief")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan: create tables. Provider and vector store are built lazily."""
    from server.db.session import init_db
    init_db(get_settings())
    ts = datetime.now(timezone.utc).isoformat()
    logger.info("[%s] Startup: database ready", ts)
    yield
    logger.info("[%s] Shutdown: complete", datetime.now(timezone.utc).isoformat())


app = FastAPI(title="Sitebrief", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SummaryError)
async def summary_error_handler(request: Request, exc: SummaryError):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, details=exc.details).model_dump(),
    )


# ---- Health (no dependencies, always fast) ----

@app.get("/health")
def health():
    """Minimal health check. No deps. Always returns immediately."""
    return {"ok": True}


# ---- Summaries ----

SUMMARY_ERRORS = {
    status: {"model": ErrorResponse} for status in (400, 404, 500)
}


@app.post("/summaries", response_model=SummaryResponse, responses=SUMMARY_ERRORS)
async def create_summary(
    body: SummaryRequest,
    admin_id: str = Depends(get_admin_id),
    db: DBSession = Depends(get_db_session),
    provider: LLMProvider = Depends(get_provider),
    vector_store: VectorStore = Depends(get_vector_store),
    config: PipelineConfig = Depends(get_pipeline_config),
):
    """Generate the structured summary for a page. Always rebuilds from the stored chunks."""
    logger.info("POST /summaries admin=%s url=%s regenerate=%s", admin_id, body.url, body.regenerate)
    try:
        return await summary_service.generate_page_summary(
            db,
            admin_id,
            body.url,
            provider=provider,
            vector_store=vector_store,
            config=config,
        )
    except SummaryError as e:
        logger.warning("Summary for %s failed: %s", body.url, e.message)
        raise
    except Exception as e:
        logger.exception("Summary generation failed for %s", body.url)
        raise GenerationFailure("Failed to generate summary", details=str(e))


@app.get("/summaries", response_model=PagesResponse)
def list_summaries(
    admin_id: str = Depends(get_admin_id),
    db: DBSession = Depends(get_db_session),
):
    return {"success": True, "pages": page_store.list_pages(db, admin_id)}


@app.get("/summaries/page", response_model=SummaryResponse)
def get_summary(
    url: str = Query(..., min_length=1, max_length=2048),
    admin_id: str = Depends(get_admin_id),
    db: DBSession = Depends(get_db_session),
):
    record = page_store.get_structured_summary(db, admin_id, url)
    if record is None:
        raise HTTPException(status_code=404, detail="Summary not found")
    return {
        "success": True,
        "summary": normalize_structured_summary(record.summary),
        "source": summary_service.SOURCE_CACHED,
        "cached": True,
        "strategy": record.strategy,
        "summary_generated_at": record.summary_generated_at.isoformat(),
    }


@app.delete("/summaries")
async def delete_summary(
    body: DeleteSummaryRequest,
    admin_id: str = Depends(get_admin_id),
    db: DBSession = Depends(get_db_session),
    vector_store: VectorStore = Depends(get_vector_store),
):
    deleted = await summary_service.delete_page_summary(db, admin_id, body.url, vector_store)
    if not deleted:
        raise HTTPException(status_code=404, detail="Page not found")
    return {"success": True}
