"""FastAPI dependency factories."""

import sys
from collections.abc import Generator
from functools import lru_cache
from pathlib import Path

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import Depends
from sqlalchemy.orm import Session as DBSession

from rag.vector_store import VectorStore, vector_store_from_settings
from server.config import PipelineConfig, Settings
from server.db.session import get_db
from server.services.llm.provider import LLMProvider
from server.services.llm.provider import get_provider as _get_llm_provider

# Process-wide vector store (keyed by settings identity for override support)
_vector_store: VectorStore | None = None
_vector_store_settings_id: object | None = None


@lru_cache()
def get_settings() -> Settings:
    """Singleton Settings -- override via app.dependency_overrides in tests."""
    return Settings()


def get_pipeline_config(settings: Settings = Depends(get_settings)) -> PipelineConfig:
    return settings.pipeline_config()


def get_provider(settings: Settings = Depends(get_settings)) -> LLMProvider:
    """Process-wide chat model provider."""
    return _get_llm_provider(settings)


def get_vector_store(settings: Settings = Depends(get_settings)) -> VectorStore:
    """Process-wide vector store; rebuilt if settings were overridden."""
    global _vector_store, _vector_store_settings_id
    if _vector_store is None or _vector_store_settings_id is not settings:
        _vector_store = vector_store_from_settings(settings)
        _vector_store_settings_id = settings
    return _vector_store


def get_db_session(settings: Settings = Depends(get_settings)) -> Generator[DBSession, None, None]:
    """Request-scoped session; committed when the request succeeds."""
    with get_db(settings) as db:
        yield db
