"""Pydantic request/response schemas for the Sitebrief API."""

from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ---- Structured summary (stored and returned in camelCase) ----

Workflow = Literal[
    "sales_alert",
    "optimization_workflow",
    "validation_path",
    "diagnostic_education",
    "diagnostic_response",
    "legacy",
]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OptionFlow(_CamelModel):
    for_option: str
    diagnostic_answer: str = ""
    follow_up_question: str = ""
    feature_mapping_answer: str = ""
    loop_closure: str = ""


class Question(_CamelModel):
    question: str = ""
    options: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    workflow: Workflow = "diagnostic_education"


class SalesQuestion(Question):
    workflow: Workflow = "diagnostic_response"
    option_flows: List[OptionFlow] = Field(default_factory=list)


class Section(_CamelModel):
    section_name: str
    section_content: str = Field(..., min_length=1)
    section_summary: str = ""
    start_substring: Optional[str] = None
    end_substring: Optional[str] = None
    chunk_indices: Optional[List[int]] = None
    block_id: Optional[int] = None
    lead_questions: List[Question] = Field(default_factory=list)
    sales_questions: List[SalesQuestion] = Field(default_factory=list)


class StructuredSummary(_CamelModel):
    page_type: str = "other"
    business_vertical: str = "other"
    primary_features: List[str] = Field(default_factory=list)
    pain_points_addressed: List[str] = Field(default_factory=list)
    solutions: List[str] = Field(default_factory=list)
    target_customers: List[str] = Field(default_factory=list)
    business_outcomes: List[str] = Field(default_factory=list)
    competitive_advantages: List[str] = Field(default_factory=list)
    industry_terms: List[str] = Field(default_factory=list)
    price_points: List[str] = Field(default_factory=list)
    integrations: List[str] = Field(default_factory=list)
    use_cases: List[str] = Field(default_factory=list)
    calls_to_action: List[str] = Field(default_factory=list)
    trust_signals: List[str] = Field(default_factory=list)
    sections: List[Section] = Field(default_factory=list)


# ---- Summaries API ----

class SummaryRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)
    regenerate: bool = False

    @field_validator("url")
    @classmethod
    def _valid_url(cls, v: str) -> str:
        v = v.strip()
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("url must be a valid http(s) URL")
        return v


class DeleteSummaryRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)


class SummaryResponse(BaseModel):
    success: bool
    summary: Dict[str, Any]
    source: str
    cached: bool = False
    strategy: Optional[str] = None
    summary_generated_at: Optional[str] = None


class PageInfo(BaseModel):
    page_id: int
    url: str
    has_structured_summary: bool
    summary_generated_at: Optional[str] = None


class PagesResponse(BaseModel):
    success: bool
    pages: List[PageInfo]


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
