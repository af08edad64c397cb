from __future__ import annotations

import json
import logging
from functools import partial
from typing import Any, Callable

from job_forwarder.config import Settings
from job_forwarder.llm import anthropic
from job_forwarder.models import JobPosting

logger = logging.getLogger(__name__)

MAX_BODY_CHARS = 4000

CompleteFn = Callable[[str], str]


def build_prompt(cleaned_body: str, subject: str) -> str:
    return f"""
Extract job posting details from this email and return ONLY valid JSON.

Subject: {subject}

Body:
{cleaned_body[:MAX_BODY_CHARS]}

Return JSON with this structure (fill in what you can find):
{{
  "positionTitle": "string",
  "location": {{"city": "string", "state": "string", "remote": boolean}},
  "payRate": {{"min": number, "max": number, "type": "hourly"|"annual"}},
  "requiredSkills": ["skill1", "skill2"],
  "contractType": "W2"|"C2C"|"1099",
  "dueDate": "string",
  "duration": "string",
  "startDate": "string",
  "confidence": number (0.0-1.0)
}}
""".strip()


def find_json_object(text: str) -> str | None:
    """First balanced top-level ``{...}`` in ``text``, ignoring braces inside strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next one.
        start = text.find("{", start + 1)
    return None


def parse_job_posting(text: str) -> JobPosting | None:
    candidate = find_json_object(text or "")
    if candidate is None:
        return None
    payload: Any = json.loads(candidate)
    if not isinstance(payload, dict):
        return None
    return JobPosting.from_payload(payload)


def completion_for(settings: Settings) -> CompleteFn:
    return partial(
        anthropic.complete,
        api_key=settings.anthropic_api_key,
        api_url=settings.anthropic_api_url,
        model=settings.anthropic_model,
        max_tokens=settings.anthropic_max_tokens,
        timeout_seconds=settings.llm_timeout_seconds,
    )


def extract_job_posting(
    cleaned_body: str,
    subject: str,
    settings: Settings,
    complete: CompleteFn | None = None,
) -> JobPosting | None:
    if not settings.anthropic_api_key:
        return None

    complete = complete or completion_for(settings)
    try:
        text = complete(build_prompt(cleaned_body, subject))
        return parse_job_posting(text)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Job posting parse error: %s", exc)
        return None
