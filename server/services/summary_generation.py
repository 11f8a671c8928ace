"""
Structured summary generation strategies.

Three interchangeable algorithms, each returning a raw summary dict or None:

  - sectioned: one metadata call plus one call per section block
  - direct:    one call over the whole document
  - chunked:   one micro-summary per chunk, then one combining call

Per-unit failures (one block, one chunk) are absorbed where they happen.
Whole-document failures return None; the caller decides what that means.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from rag.types import Chunk, SectionBlock
from server.config import PipelineConfig
from server.services.batching import run_in_batches
from server.services.content_reconstruct import order_chunks
from server.services.llm import prompts
from server.services.llm.provider import LLMError, LLMProvider
from server.services.llm.validate import (
    repair_section_analysis,
    validate_page_summary,
    validate_section_analysis,
)
from server.services.summary_errors import ParseFailure, PartialUnitFailure

logger = logging.getLogger("sitebrief.summary")

ANALYSIS_FAILED = "Analysis failed"
NO_SUMMARY = "No summary available"


async def _with_deadline(coro: Awaitable[Any], timeout_s: float) -> Any:
    try:
        return await asyncio.wait_for(coro, timeout=timeout_s)
    except asyncio.TimeoutError:
        raise LLMError(kind="timeout", message=f"Model call exceeded {timeout_s}s deadline")


async def _call_json(
    provider: LLMProvider,
    system: str,
    user: str,
    config: PipelineConfig,
    max_tokens: int,
) -> Dict[str, Any]:
    """Raises ParseFailure when the reply is not a JSON object, LLMError otherwise."""
    try:
        return await _with_deadline(
            provider.complete_json(system, user, max_tokens=max_tokens, temperature=config.temperature),
            config.call_timeout_s,
        )
    except LLMError as e:
        if e.kind == "invalid_json":
            raise ParseFailure(e.message, details=e.details) from e
        raise


async def _call_text(
    provider: LLMProvider,
    system: str,
    user: str,
    config: PipelineConfig,
    max_tokens: int,
) -> str:
    return await _with_deadline(
        provider.complete(system, user, max_tokens=max_tokens, temperature=config.temperature),
        config.call_timeout_s,
    )


# ---- Sectioned ----

async def _page_metadata(
    provider: LLMProvider,
    blocks: Sequence[SectionBlock],
    config: PipelineConfig,
) -> Dict[str, Any]:
    """Page-level classification from section titles and the opening of the first block."""
    preview = blocks[0].body[:config.metadata_preview_chars]
    system, user = prompts.page_metadata([b.title for b in blocks], preview)
    try:
        data = await _call_json(provider, system, user, config, config.metadata_max_tokens)
    except (LLMError, ParseFailure) as e:
        logger.warning("Page metadata call failed, using defaults: %s", e)
        return {}
    return {k: v for k, v in data.items() if k != "sections"}


def _block_section(block: SectionBlock, index: int, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "sectionName": block.title,
        "sectionContent": block.body,
        "blockId": index,
        "sectionSummary": data.get("sectionSummary") or NO_SUMMARY,
        "leadQuestions": data.get("leadQuestions") or [],
        "salesQuestions": data.get("salesQuestions") or [],
    }


async def _analyze_block(
    provider: LLMProvider,
    index: int,
    block: SectionBlock,
    config: PipelineConfig,
) -> Dict[str, Any]:
    """Questions for one block. Any failure yields the placeholder section."""
    system, user = prompts.section_questions(block.title, block.body[:config.block_max_chars])
    try:
        data = await _call_json(provider, system, user, config, config.section_max_tokens)
        data = repair_section_analysis(data)
        ok, reason = validate_section_analysis(data)
        if not ok:
            raise LLMError(kind="invalid_schema", message=reason)
    except Exception as e:
        failure = PartialUnitFailure(f"section {index} '{block.title}'", e)
        logger.warning("Section analysis failed, using placeholder: %s", failure)
        return _block_section(block, index, {
            "sectionSummary": ANALYSIS_FAILED,
            "leadQuestions": [],
            "salesQuestions": [],
        })
    return _block_section(block, index, data)


async def generate_sectioned_summary(
    provider: LLMProvider,
    blocks: Sequence[SectionBlock],
    config: PipelineConfig,
) -> Optional[Dict[str, Any]]:
    """
    One metadata call, then one call per block in sequential batches.

    sectionContent is each block's body verbatim.
    """
    if not blocks:
        return None
    logger.info("Sectioned summary: %d blocks", len(blocks))
    metadata = await _page_metadata(provider, blocks, config)

    async def _unit(index: int, block: SectionBlock) -> Dict[str, Any]:
        return await _analyze_block(provider, index, block, config)

    sections = await run_in_batches(
        list(blocks),
        _unit,
        batch_size=config.batch_size,
        concurrency=config.concurrency,
        label="section batch",
    )
    failed = sum(1 for s in sections if s["sectionSummary"] == ANALYSIS_FAILED)
    if failed:
        logger.warning("%d/%d sections fell back to placeholders", failed, len(sections))
    return {**metadata, "sections": sections}


# ---- Direct ----

async def generate_direct_summary(
    provider: LLMProvider,
    content: str,
    config: PipelineConfig,
) -> Optional[Dict[str, Any]]:
    """Whole-document summary in one call. None on any failure."""
    text = content[:config.direct_max_chars]
    if len(text) < len(content):
        logger.info("Direct summary input truncated from %d to %d chars", len(content), len(text))
    system, user = prompts.direct_summary(text)
    try:
        data = await _call_json(provider, system, user, config, config.direct_max_tokens)
    except (LLMError, ParseFailure) as e:
        logger.error("Direct summary generation failed: %s", e)
        return None
    ok, reason = validate_page_summary(data)
    if not ok:
        logger.error("Direct summary rejected: %s", reason)
        return None
    return data


# ---- Chunked ----

async def _summarize_chunk(
    provider: LLMProvider,
    chunk: Chunk,
    config: PipelineConfig,
) -> Optional[Tuple[int, str]]:
    text = chunk.text if isinstance(chunk.text, str) else ""
    if len(text) < config.min_chunk_chars:
        return None
    system, user = prompts.chunk_summary(text)
    try:
        summary = await _call_text(provider, system, user, config, config.chunk_summary_max_tokens)
    except Exception as e:
        logger.warning("Chunk summary omitted: %s", PartialUnitFailure(f"chunk {chunk.chunk_index}", e))
        return None
    summary = (summary or "").strip()
    if not summary:
        return None
    return chunk.chunk_index, summary


async def generate_chunked_summary(
    provider: LLMProvider,
    chunks: Sequence[Chunk],
    config: PipelineConfig,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Optional[Dict[str, Any]]:
    """
    Micro-summaries per chunk (batched, paused between batches), then one
    combining call over the [CHUNK i]-tagged summaries.
    """
    ordered = order_chunks(chunks)
    logger.info("Chunked summary: %d chunks", len(ordered))

    async def _unit(index: int, chunk: Chunk) -> Optional[Tuple[int, str]]:
        return await _summarize_chunk(provider, chunk, config)

    results = await run_in_batches(
        ordered,
        _unit,
        batch_size=config.batch_size,
        concurrency=config.concurrency,
        pause_s=config.chunk_batch_pause_s,
        sleep=sleep,
        label="chunk batch",
    )
    summaries: List[Tuple[int, str]] = [r for r in results if r]
    logger.info("Generated %d chunk summaries", len(summaries))
    if not summaries:
        logger.warning("No valid chunk summaries generated")
        return None

    tagged = "\n\n".join(f"[CHUNK {idx}]\n{text}" for idx, text in summaries)
    system, user = prompts.combine_chunk_summaries(tagged)
    try:
        data = await _call_json(provider, system, user, config, config.combine_max_tokens)
    except (LLMError, ParseFailure) as e:
        logger.error("Combining chunk summaries failed: %s", e)
        return None
    ok, reason = validate_page_summary(data)
    if not ok:
        logger.error("Combined summary rejected: %s", reason)
        return None
    return data
