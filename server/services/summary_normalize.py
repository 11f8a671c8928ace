"""Canonical shape for structured summaries, whatever strategy produced them."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from server.schemas import StructuredSummary
from server.services.reconcile import CONTENT_NOT_AVAILABLE

LIST_FIELDS = (
    "primaryFeatures",
    "painPointsAddressed",
    "solutions",
    "targetCustomers",
    "businessOutcomes",
    "competitiveAdvantages",
    "industryTerms",
    "pricePoints",
    "integrations",
    "useCases",
    "callsToAction",
    "trustSignals",
)

WORKFLOWS = frozenset({
    "sales_alert",
    "optimization_workflow",
    "validation_path",
    "diagnostic_education",
    "diagnostic_response",
    "legacy",
})
LEAD_DEFAULT_WORKFLOW = "diagnostic_education"
SALES_DEFAULT_WORKFLOW = "diagnostic_response"

_FLOW_FIELDS = ("diagnosticAnswer", "followUpQuestion", "featureMappingAnswer", "loopClosure")


def _str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    out = []
    for item in value:
        if isinstance(item, bool) or item is None or isinstance(item, (dict, list)):
            continue
        text = str(item).strip()
        if text:
            out.append(text)
    return out


def _int_list(value: Any) -> Optional[List[int]]:
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, int) and not isinstance(v, bool)]


def _workflow(value: Any, default: str) -> str:
    w = _str(value)
    return w if w in WORKFLOWS else default


def _option_flows(options: List[str], flows: Any) -> List[Dict[str, str]]:
    """One flow per option, in option order. Existing flows matched by forOption, then position."""
    flows = [f for f in flows if isinstance(f, dict)] if isinstance(flows, list) else []
    by_option = {}
    for f in flows:
        key = _str(f.get("forOption")).lower()
        if key and key not in by_option:
            by_option[key] = f
    out = []
    for pos, option in enumerate(options):
        flow = by_option.get(option.lower())
        if flow is None and pos < len(flows) and not _str(flows[pos].get("forOption")):
            flow = flows[pos]
        flow = flow or {}
        entry = {"forOption": option}
        for field in _FLOW_FIELDS:
            entry[field] = _str(flow.get(field))
        out.append(entry)
    return out


def _question(q: Any, *, sales: bool) -> Dict[str, Any]:
    q = q if isinstance(q, dict) else {}
    default = SALES_DEFAULT_WORKFLOW if sales else LEAD_DEFAULT_WORKFLOW
    out: Dict[str, Any] = {
        "question": _str(q.get("question")),
        "options": _str_list(q.get("options")),
        "tags": _str_list(q.get("tags")),
        "workflow": _workflow(q.get("workflow"), default),
    }
    if sales:
        out["optionFlows"] = _option_flows(out["options"], q.get("optionFlows"))
    return out


def _legacy_question(section: Dict[str, Any], prefix: str) -> List[Dict[str, Any]]:
    """Upgrade pre-list fields (leadQuestion, leadOptions, ...) to a one-item list."""
    text = _str(section.get(f"{prefix}Question"))
    if not text:
        return []
    return [{
        "question": text,
        "options": _str_list(section.get(f"{prefix}Options")),
        "tags": _str_list(section.get(f"{prefix}Tags")),
        "workflow": _workflow(section.get(f"{prefix}Workflow"), "legacy"),
    }]


def _questions(section: Dict[str, Any], key: str, prefix: str, *, sales: bool) -> List[Dict[str, Any]]:
    qs = section.get(key)
    if isinstance(qs, dict):
        qs = [qs]
    if isinstance(qs, list):
        return [_question(q, sales=sales) for q in qs if isinstance(q, dict)]
    legacy = _legacy_question(section, prefix)
    if sales:
        for q in legacy:
            q["optionFlows"] = _option_flows(q["options"], None)
    return legacy


def _section(raw: Dict[str, Any], position: int) -> Dict[str, Any]:
    summary = _str(raw.get("sectionSummary"))
    content = raw.get("sectionContent")
    if not isinstance(content, str) or not content.strip():
        content = summary or CONTENT_NOT_AVAILABLE
    out: Dict[str, Any] = {
        "sectionName": _str(raw.get("sectionName")) or f"Section {position + 1}",
        "sectionContent": content,
        "sectionSummary": summary,
        "leadQuestions": _questions(raw, "leadQuestions", "lead", sales=False),
        "salesQuestions": _questions(raw, "salesQuestions", "sales", sales=True),
    }
    for key in ("startSubstring", "endSubstring"):
        if isinstance(raw.get(key), str):
            out[key] = raw[key]
    indices = _int_list(raw.get("chunkIndices"))
    if indices is not None:
        out["chunkIndices"] = indices
    block_id = raw.get("blockId")
    if isinstance(block_id, int) and not isinstance(block_id, bool):
        out["blockId"] = block_id
    return out


def normalize_structured_summary(raw: Any) -> Dict[str, Any]:
    """
    Map a raw summary to the stable output shape. Pure; never raises on
    malformed input, which is repaired or defaulted field by field.
    """
    raw = raw if isinstance(raw, dict) else {}
    sections = raw.get("sections")
    if isinstance(sections, dict):
        sections = [sections]
    if not isinstance(sections, list):
        sections = []

    coerced: Dict[str, Any] = {
        "pageType": _str(raw.get("pageType")) or "other",
        "businessVertical": _str(raw.get("businessVertical")) or "other",
    }
    for field in LIST_FIELDS:
        coerced[field] = _str_list(raw.get(field))
    coerced["sections"] = [
        _section(s, i) for i, s in enumerate(s for s in sections if isinstance(s, dict))
    ]
    model = StructuredSummary.model_validate(coerced)
    return model.model_dump(by_alias=True, exclude_none=True)
