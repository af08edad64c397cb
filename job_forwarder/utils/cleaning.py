from __future__ import annotations

import logging
import re
from typing import Sequence

from job_forwarder.profiles import SenderProfile

logger = logging.getLogger(__name__)

# Forwarded-message debris left by mail clients.
_HEADER_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^From:.*$", re.MULTILINE), ""),
    (re.compile(r"^Sent:.*$", re.MULTILINE), ""),
    (re.compile(r"^To:.*$", re.MULTILINE), ""),
    (re.compile(r"^Subject:.*$", re.MULTILINE), ""),
    (re.compile(r"^Cc:.*$", re.MULTILINE), ""),
    (re.compile(r"^Date:.*$", re.MULTILINE), ""),
    (re.compile(r"^--\s*$", re.MULTILINE), "\n"),
    (re.compile(r"^___+\s*$", re.MULTILINE), ""),
    (re.compile(r"^-+\s*Forwarded message\s*-+", re.MULTILINE | re.IGNORECASE), ""),
    (re.compile(r"^Begin forwarded message:", re.MULTILINE | re.IGNORECASE), ""),
)

JOB_START_MARKERS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(re.escape(m), re.IGNORECASE)
    for m in (
        "DUE DATE:",
        "POSITION:",
        "JOB TITLE:",
        "LOCATION:",
        "Duration of engagement:",
        "Job Description:",
        "Position Description:",
        "Position Title:",
        "Need:",
        "Role:",
    )
)

FOOTER_MARKERS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE | re.MULTILINE)
    for p in (
        r"^This email and any files transmitted with it",
        r"^CONFIDENTIALITY NOTICE",
        r"^The information contained in this",
        r"^Please consider the environment",
        r"^IRS CIRCULAR 230 NOTICE",
        r"^Unsubscribe",
        r"^Click here to unsubscribe",
    )
)

_MULTI_BLANK = re.compile(r"\n\n\n+")
_BLANK_RUN = re.compile(r"^\s*\n", re.MULTILINE)


def collapse_blank_lines(text: str) -> str:
    text = _MULTI_BLANK.sub("\n\n", text)
    text = _BLANK_RUN.sub("\n", text)
    return text.strip()


def strip_forward_headers(text: str) -> str:
    for pattern, replacement in _HEADER_RULES:
        text = pattern.sub(replacement, text)
    return text


def find_marker(text: str, markers: Sequence[re.Pattern[str]], policy: str = "priority") -> int | None:
    """Offset of the marker chosen by ``policy``.

    ``priority`` returns the first marker in list order that occurs anywhere,
    even when a lower-priority marker appears earlier in the text.
    ``earliest`` returns the lowest offset across all markers.
    """
    if policy == "earliest":
        positions = [m.start() for m in (p.search(text) for p in markers) if m is not None]
        return min(positions) if positions else None

    for pattern in markers:
        match = pattern.search(text)
        if match is not None:
            return match.start()
    return None


def truncate_to_job_start(text: str, policy: str = "priority") -> str:
    index = find_marker(text, JOB_START_MARKERS, policy)
    return text if index is None else text[index:]


def truncate_footer(text: str, policy: str = "priority") -> str:
    index = find_marker(text, FOOTER_MARKERS, policy)
    return text if index is None else text[:index]


def clean_email_body(body: str, profile: SenderProfile | None = None, marker_policy: str = "priority") -> str:
    cleaned = body or ""

    if profile is not None:
        logger.debug("Applying %s cleaning rules", profile.name)
        for rule in profile.cleanup_rules:
            cleaned = rule.apply(cleaned)

    cleaned = strip_forward_headers(cleaned)
    cleaned = collapse_blank_lines(cleaned)
    cleaned = truncate_to_job_start(cleaned, marker_policy)
    cleaned = truncate_footer(cleaned, marker_policy)

    cleaned = _MULTI_BLANK.sub("\n\n", cleaned)
    return cleaned.strip()
