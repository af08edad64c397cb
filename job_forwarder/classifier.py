from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from job_forwarder.config import Settings
from job_forwarder.models import RawMessage
from job_forwarder.profiles import ProfileRegistry, SenderProfile

SYSTEM_SUBJECT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"deploy.*crashed",
        r"build.*failed",
        r"notification",
        r"unsubscribe",
        r"do not reply",
        r"automated message",
    )
)

SKIP_ALREADY_FORWARDED = "already forwarded"
SKIP_SYSTEM = "system notification"
SKIP_NOT_CONTRACTOR = "not from contractor"


def is_system_email(from_address: str, subject: str, ignore_from_domains: Iterable[str]) -> bool:
    sender = (from_address or "").lower()
    for domain in ignore_from_domains:
        if domain and domain.lower() in sender:
            return True
    return any(pattern.search(subject or "") for pattern in SYSTEM_SUBJECT_PATTERNS)


def is_from_known_contractor(from_address: str, contractor_emails: Iterable[str]) -> bool:
    sender = (from_address or "").lower()
    return any(c.lower() in sender for c in contractor_emails if c)


def select_profile(from_address: str, registry: ProfileRegistry) -> SenderProfile | None:
    return registry.select(from_address)


@dataclass(frozen=True)
class Classification:
    skip_reason: str | None
    profile: SenderProfile | None = None

    @property
    def eligible(self) -> bool:
        return self.skip_reason is None


def classify(message: RawMessage, settings: Settings, registry: ProfileRegistry) -> Classification:
    if is_system_email(message.sender, message.subject, settings.ignore_from_domains):
        return Classification(skip_reason=SKIP_SYSTEM)
    if not is_from_known_contractor(message.sender, settings.contractor_emails):
        return Classification(skip_reason=SKIP_NOT_CONTRACTOR)
    return Classification(skip_reason=None, profile=select_profile(message.sender, registry))
