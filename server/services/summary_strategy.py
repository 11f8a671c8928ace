"""Pick and run a summary generation strategy."""

from __future__ import annotations

import asyncio
import logging
import math
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Sequence

from rag.types import Chunk, SectionBlock
from server.config import PipelineConfig
from server.services import summary_generation
from server.services.llm.provider import LLMProvider
from server.services.summary_errors import GenerationFailure

logger = logging.getLogger("sitebrief.summary")


class Strategy(str, Enum):
    SECTIONED = "sectioned"
    DIRECT = "direct"
    CHUNKED = "chunked"


def estimate_tokens(content: str, chars_per_token: int = 4) -> int:
    """Character-based estimate: ceil(len / chars_per_token)."""
    return math.ceil(len(content) / chars_per_token)


def select_strategy(block_count: int, estimated_tokens: int, max_tokens_for_direct: int = 30000) -> Strategy:
    """First match wins: any blocks -> sectioned; small -> direct; large -> chunked."""
    if block_count > 0:
        return Strategy.SECTIONED
    if estimated_tokens <= max_tokens_for_direct:
        return Strategy.DIRECT
    return Strategy.CHUNKED


async def run_strategy(
    provider: LLMProvider,
    content: str,
    blocks: Sequence[SectionBlock],
    chunks: Sequence[Chunk],
    config: PipelineConfig,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> tuple[Strategy, Dict[str, Any]]:
    """
    Select a strategy and run it. Returns (strategy, raw_summary).

    Raises GenerationFailure when the strategy produced nothing.
    """
    tokens = estimate_tokens(content, config.chars_per_token)
    strategy = select_strategy(len(blocks), tokens, config.max_tokens_for_direct)
    logger.info(
        "Using %s strategy (%d blocks, %d estimated tokens, %d chunks)",
        strategy.value, len(blocks), tokens, len(chunks),
    )
    if strategy is Strategy.SECTIONED:
        raw = await summary_generation.generate_sectioned_summary(provider, blocks, config)
    elif strategy is Strategy.DIRECT:
        raw = await summary_generation.generate_direct_summary(provider, content, config)
    else:
        raw = await summary_generation.generate_chunked_summary(provider, chunks, config, sleep=sleep)
    if not raw:
        raise GenerationFailure(
            "Failed to generate summary",
            details=f"{strategy.value} strategy returned no result",
        )
    return strategy, raw
