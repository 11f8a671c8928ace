"""Chat model access for page summaries: provider, prompts, output validation."""

from server.services.llm.provider import (
    FakeProvider,
    LLMError,
    LLMProvider,
    OpenAIChatProvider,
    get_provider,
    parse_json_content,
    reset_provider,
)
from server.services.llm.validate import (
    validate_page_summary,
    validate_section_analysis,
)

__all__ = [
    "FakeProvider",
    "LLMError",
    "LLMProvider",
    "OpenAIChatProvider",
    "get_provider",
    "parse_json_content",
    "reset_provider",
    "validate_page_summary",
    "validate_section_analysis",
]
