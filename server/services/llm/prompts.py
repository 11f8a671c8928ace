"""Prompts for page summary generation. Every prompt asks for bare JSON."""

from typing import List, Tuple

PAGE_TYPES = "homepage|pricing|features|about|contact|blog|product|service"
BUSINESS_VERTICALS = "fitness|healthcare|legal|restaurant|saas|ecommerce|consulting|other"

TAG_TAXONOMY = """TAG TAXONOMY (use EXACTLY 2 tags per question: 1 Primary + 1 Secondary):
    Primary (Problem/Readiness): manual_scheduling, scheduling_gap, onboarding_delay, onboarding_dropoff, pipeline_leakage, inconsistent_process, handoff_friction, visibility_gap, no_show_risk, late_engagement, stakeholder_coordination, capacity_constraint, validated_flow, optimization_ready, awareness_missing, unknown_state, low_friction
    Secondary (Risk/Modifier): low_risk, conversion_risk, high_risk, critical_risk, validated_flow, optimization_ready, awareness_missing
WORKFLOWS: sales_alert (if risk), optimization_workflow (if friction), validation_path (if good), diagnostic_education (if unknown). Sales questions use diagnostic_response."""

_QUESTIONS_SCHEMA = """"leadQuestions": [
    { "question": "Problem recognition question", "options": ["Opt1", "Opt2"], "tags": ["primary_tag", "modifier_tag"], "workflow": "sales_alert" },
    { "question": "Problem recognition question 2", "options": ["Opt1", "Opt2"], "tags": ["primary_tag", "modifier_tag"], "workflow": "optimization_workflow" }
  ],
  "salesQuestions": [
    {
      "question": "Diagnostic question",
      "options": ["Opt1", "Opt2"],
      "tags": ["primary_tag", "modifier_tag"],
      "workflow": "diagnostic_response",
      "optionFlows": [
        {
          "forOption": "Opt1",
          "diagnosticAnswer": "Empathetic, validating response",
          "followUpQuestion": "Question that deepens the diagnosis",
          "featureMappingAnswer": "Maps the problem to a feature from the content",
          "loopClosure": "Summarizes and moves to next steps"
        }
      ]
    },
    { "question": "Diagnostic question 2", "options": ["Opt1", "Opt2"], "tags": ["primary_tag", "modifier_tag"], "workflow": "diagnostic_response", "optionFlows": [] }
  ]"""

_METADATA_SCHEMA = f"""{{
  "pageType": "{PAGE_TYPES}",
  "businessVertical": "{BUSINESS_VERTICALS}",
  "primaryFeatures": ["feature1", "feature2", "feature3"],
  "painPointsAddressed": ["pain1", "pain2", "pain3"],
  "solutions": ["solution1", "solution2", "solution3"],
  "targetCustomers": ["small business", "enterprise", "startups"]
}}"""

_FULL_METADATA_FIELDS = f"""  "pageType": "{PAGE_TYPES}",
  "businessVertical": "{BUSINESS_VERTICALS}",
  "primaryFeatures": ["feature1", "feature2", "feature3"],
  "painPointsAddressed": ["pain1", "pain2", "pain3"],
  "solutions": ["solution1", "solution2", "solution3"],
  "targetCustomers": ["small business", "enterprise", "startups"],
  "businessOutcomes": ["outcome1", "outcome2"],
  "competitiveAdvantages": ["advantage1", "advantage2"],
  "industryTerms": ["term1", "term2", "term3"],
  "pricePoints": ["free", "$X/month", "enterprise"],
  "integrations": ["tool1", "tool2"],
  "useCases": ["usecase1", "usecase2"],
  "callsToAction": ["Get Started", "Book Demo"],
  "trustSignals": ["testimonial", "certification", "clientcount"],"""

_QUESTION_RULES = """REQUIREMENTS:
1. EXACTLY 2 leadQuestions and EXACTLY 2 salesQuestions.
2. Questions MUST come from the specific content; no generic phrasing like "How can we help?".
3. Lead questions ask about the visitor's current challenges; sales questions ask about urgency or the specific use case.
4. Every sales question has one optionFlows entry for EACH of its options, in option order.
"""

JSON_ONLY = "Return ONLY a valid JSON object. Do not include any markdown formatting or additional text."


def page_metadata(section_titles: List[str], preview: str) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt) for page-level metadata in the sectioned strategy."""
    system = f"You are an expert web page analyzer. {JSON_ONLY}"
    titles = ", ".join(t for t in section_titles if t) or "(untitled)"
    user = f"""Analyze this web page and extract key business intelligence.

Section Titles: {titles}

Content Preview:
{preview}

Return a JSON object with this exact structure:
{_METADATA_SCHEMA}

Do NOT leave arrays empty if information can be inferred. Use terminology from the content."""
    return system, user


def section_questions(title: str, body: str) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt) for one section block. Body must be pre-truncated."""
    system = f"You are an expert sales strategist. {JSON_ONLY}"
    user = f"""Analyze this specific website section and generate HIGHLY SPECIFIC lead/sales questions.

Section Title: "{title}"
Section Content:
\"\"\"{body}\"\"\"

Return a JSON object with:
{{
  "sectionSummary": "Brief summary of this section",
  {_QUESTIONS_SCHEMA}
}}

{_QUESTION_RULES}5. Use ONLY this section's content; do not draw on other parts of the page.

{TAG_TAXONOMY}"""
    return system, user


def direct_summary(content: str) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt) for the one-shot whole-document summary."""
    system = (
        "You are an expert web page analyzer. Analyze the provided web page content and "
        f"extract key business information. {JSON_ONLY}"
    )
    user = f"""Analyze this web page content and extract key information:

{content}

Return a JSON object with:
{{
{_FULL_METADATA_FIELDS}
  "sections": [
    {{
      "sectionName": "Name of the section",
      "startSubstring": "First 5-10 words of the section, copied EXACTLY from the content",
      "endSubstring": "Last 5-10 words of the section, copied EXACTLY from the content",
      "sectionSummary": "Brief summary of this section",
      {_QUESTIONS_SCHEMA}
    }}
  ]
}}

{_QUESTION_RULES}5. Detect every distinct section of the page, in page order.
6. startSubstring and endSubstring must be verbatim text from the content, with endSubstring appearing after startSubstring.

{TAG_TAXONOMY}"""
    return system, user


def chunk_summary(chunk_text: str) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt) for a free-text micro-summary of one chunk."""
    system = (
        "Extract key business information from this content chunk. Be concise but comprehensive. "
        "Return a brief summary of business-relevant information."
    )
    user = f"""Analyze this content chunk and extract key business information:

{chunk_text}

Focus on: business features, pain points, solutions, target customers, pricing, integrations, use cases."""
    return system, user


def combine_chunk_summaries(tagged_summaries: str) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt) for merging [CHUNK i] summaries into one structured summary."""
    system = (
        "You are an expert business analyst. Combine the provided chunk summaries into a "
        f"comprehensive business intelligence summary. {JSON_ONLY}"
    )
    user = f"""Combine these chunk summaries into a comprehensive business analysis.
Each summary is tagged [CHUNK i] with the index of the chunk it came from.

{tagged_summaries}

Return a JSON object with:
{{
{_FULL_METADATA_FIELDS}
  "sections": [
    {{
      "sectionName": "Name of the section",
      "chunkIndices": [0, 1],
      "sectionSummary": "Brief summary of this section",
      {_QUESTIONS_SCHEMA}
    }}
  ]
}}

{_QUESTION_RULES}5. chunkIndices lists the i values of every [CHUNK i] that informed the section.

{TAG_TAXONOMY}"""
    return system, user
