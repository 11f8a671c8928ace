"""Configuration for the Sitebrief API server."""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class PipelineConfig:
    """
    Tunables for the summary pipeline.

    Passed explicitly into every stage so tests can pin boundary values.
    """
    min_content_chars: int = 50
    max_tokens_for_direct: int = 30000
    chars_per_token: int = 4
    batch_size: int = 5
    concurrency: int = 5
    chunk_batch_pause_s: float = 1.0
    min_block_chars: int = 30
    block_max_chars: int = 8000
    metadata_preview_chars: int = 1000
    min_chunk_chars: int = 50
    direct_max_chars: int = 120000
    call_timeout_s: float = 60.0
    temperature: float = 0.3
    metadata_max_tokens: int = 1500
    section_max_tokens: int = 2500
    direct_max_tokens: int = 8000
    chunk_summary_max_tokens: int = 300
    combine_max_tokens: int = 8000


@dataclass
class Settings:
    """
    Everything the server needs to reach its collaborators.

    Every field is overridable at construction for testing.
    Environment variables fill fields left at None.
    """
    database_url: Optional[str] = None

    # Language model (OpenAI-compatible chat completions)
    llm_api_key: Optional[str] = None
    llm_model: str = "gpt-4o-mini"
    llm_base_url: str = "https://api.openai.com/v1"
    llm_timeout_s: int = 60

    # Vector store (Pinecone data plane)
    pinecone_api_key: Optional[str] = None
    pinecone_index_host: Optional[str] = None
    pinecone_namespace: str = ""

    # Pipeline overrides
    summary_max_direct_tokens: int = 30000
    summary_batch_size: int = 5
    summary_batch_pause_s: float = 1.0

    def __post_init__(self):
        if self.database_url is None:
            self.database_url = os.environ.get("DATABASE_URL", "sqlite:///./sitebrief.db")
        if self.llm_api_key is None:
            self.llm_api_key = os.environ.get("OPENAI_API_KEY")
        if self.pinecone_api_key is None:
            self.pinecone_api_key = os.environ.get("PINECONE_KEY")
        if self.pinecone_index_host is None:
            self.pinecone_index_host = os.environ.get("PINECONE_INDEX_HOST")

        if os.environ.get("LLM_MODEL"):
            self.llm_model = os.environ["LLM_MODEL"]
        if os.environ.get("LLM_BASE_URL"):
            self.llm_base_url = os.environ["LLM_BASE_URL"]
        try:
            if v := os.environ.get("LLM_TIMEOUT_S"):
                self.llm_timeout_s = int(v)
        except ValueError:
            pass

        env_tokens = os.environ.get("SUMMARY_MAX_DIRECT_TOKENS")
        if env_tokens is not None:
            try:
                self.summary_max_direct_tokens = int(env_tokens)
            except ValueError:
                pass
        env_batch = os.environ.get("SUMMARY_BATCH_SIZE")
        if env_batch is not None:
            try:
                self.summary_batch_size = max(1, int(env_batch))
            except ValueError:
                pass
        env_pause = os.environ.get("SUMMARY_BATCH_PAUSE_S")
        if env_pause is not None:
            try:
                self.summary_batch_pause_s = float(env_pause)
            except ValueError:
                pass

    def pipeline_config(self) -> PipelineConfig:
        """Build the pipeline tunables from these settings."""
        return PipelineConfig(
            max_tokens_for_direct=self.summary_max_direct_tokens,
            batch_size=self.summary_batch_size,
            concurrency=self.summary_batch_size,
            chunk_batch_pause_s=self.summary_batch_pause_s,
            call_timeout_s=float(self.llm_timeout_s),
        )
