"""Hard validation for model outputs. Repair what is safe; reject the rest."""

from typing import Any, Dict, List, Tuple

QUESTIONS_PER_KIND = 2


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _check_question(q: Any, *, sales: bool) -> Tuple[bool, str]:
    if not isinstance(q, dict):
        return False, "question not an object"
    if not _is_text(q.get("question")):
        return False, "missing question text"
    options = q.get("options")
    if not isinstance(options, list) or not options:
        return False, "missing options"
    if not all(isinstance(o, str) for o in options):
        return False, "options must be strings"
    tags = q.get("tags", [])
    if not isinstance(tags, list):
        return False, "tags must be a list"
    if sales:
        flows = q.get("optionFlows")
        if not isinstance(flows, list):
            return False, "sales question missing optionFlows"
        if not all(isinstance(f, dict) for f in flows):
            return False, "optionFlows entries must be objects"
    return True, ""


def repair_section_analysis(obj: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy with safe repairs applied: surplus questions trimmed to two,
    a single question object wrapped in a list, summary stripped.
    """
    out = dict(obj)
    for key in ("leadQuestions", "salesQuestions"):
        qs = out.get(key)
        if isinstance(qs, dict):
            qs = [qs]
        if isinstance(qs, list):
            out[key] = qs[:QUESTIONS_PER_KIND]
    if isinstance(out.get("sectionSummary"), str):
        out["sectionSummary"] = out["sectionSummary"].strip()
    return out


def validate_section_analysis(obj: Any) -> Tuple[bool, str]:
    """
    Validate one section's generated questions. Returns (ok, reason).
    """
    if not isinstance(obj, dict):
        return False, "not a dict"
    if obj.get("error") == "reject":
        return False, "model rejected"
    if not _is_text(obj.get("sectionSummary")):
        return False, "missing sectionSummary"
    for key, sales in (("leadQuestions", False), ("salesQuestions", True)):
        qs = obj.get(key)
        if not isinstance(qs, list):
            return False, f"{key} not a list"
        if len(qs) != QUESTIONS_PER_KIND:
            return False, f"{key} count {len(qs)}"
        for q in qs:
            ok, reason = _check_question(q, sales=sales)
            if not ok:
                return False, f"{key}: {reason}"
    return True, ""


def validate_page_summary(obj: Any) -> Tuple[bool, str]:
    """
    Validate a whole-page summary (direct or combined). Returns (ok, reason).
    Section questions are checked loosely; the normalizer fills gaps.
    """
    if not isinstance(obj, dict):
        return False, "not a dict"
    if obj.get("error") == "reject":
        return False, "model rejected"
    sections = obj.get("sections")
    if sections is None:
        return True, ""
    if isinstance(sections, dict):
        sections = [sections]
    if not isinstance(sections, list):
        return False, "sections not a list"
    bad: List[int] = [i for i, s in enumerate(sections) if not isinstance(s, dict)]
    if bad and len(bad) == len(sections):
        return False, "no usable sections"
    return True, ""
