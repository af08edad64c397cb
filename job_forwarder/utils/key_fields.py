from __future__ import annotations

from job_forwarder.models import KeyFieldSummary
from job_forwarder.profiles import SenderProfile


def extract_key_fields(body: str, profile: SenderProfile | None) -> KeyFieldSummary:
    """Run the profile's field rules over the raw, uncleaned body."""
    if profile is None:
        return KeyFieldSummary()

    fields: list[tuple[str, str]] = []
    for rule in profile.field_rules:
        value = rule.search(body or "")
        if value:
            fields.append((rule.label, value))
    return KeyFieldSummary(fields=tuple(fields))


def render_key_fields(summary: KeyFieldSummary) -> str:
    return summary.render()
