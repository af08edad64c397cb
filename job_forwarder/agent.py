from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Iterable

from job_forwarder.classifier import SKIP_ALREADY_FORWARDED, classify
from job_forwarder.config import Settings, default_forwarded_path, require_settings
from job_forwarder.llm.job_posting import extract_job_posting
from job_forwarder.mailbox.imap import fetch_recent_messages
from job_forwarder.models import JobPosting, RawMessage
from job_forwarder.notify.emailer import send_email
from job_forwarder.profile_config import load_sender_profiles
from job_forwarder.profiles import ProfileRegistry, default_registry
from job_forwarder.storage.forwarded_emails import ForwardedEmailsStore
from job_forwarder.utils.cleaning import clean_email_body
from job_forwarder.utils.key_fields import extract_key_fields, render_key_fields

logger = logging.getLogger(__name__)

SendFn = Callable[[str, str], None]
EnrichFn = Callable[[str, str], "JobPosting | None"]
FetchFn = Callable[[Settings], list[RawMessage]]

FORWARDED = "forwarded"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(frozen=True)
class ForwarderOptions:
    dry_run: bool = False
    forwarded_file: Path | None = None
    profile_config: Path | None = None


@dataclass(frozen=True)
class ComposedMessage:
    subject: str
    body: str


@dataclass(frozen=True)
class MessageOutcome:
    message_id: str
    status: str
    reason: str | None = None
    job_posting: JobPosting | None = None


@dataclass
class RunSummary:
    outcomes: list[MessageOutcome] = field(default_factory=list)

    @property
    def forwarded(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FORWARDED)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FAILED)

    @property
    def skipped(self) -> Counter[str]:
        return Counter(o.reason or "" for o in self.outcomes if o.status == SKIPPED)


def forward_subject(subject: str, tag: str) -> str:
    stripped = (subject or "").replace("Fwd:", "", 1).replace("Need:", "", 1).strip()
    return f"{tag} - {stripped}"


def compose_message(message: RawMessage, key_fields: str, cleaned_body: str, tag: str) -> ComposedMessage:
    body = f"🚨 {tag} New Job Posting\n\n{key_fields}{cleaned_body}"
    return ComposedMessage(subject=forward_subject(message.subject, tag), body=body)


class Forwarder:
    """Runs each fetched message through dedup, classification, cleaning and forwarding."""

    def __init__(
        self,
        settings: Settings,
        store: ForwardedEmailsStore,
        send: SendFn,
        *,
        registry: ProfileRegistry | None = None,
        enrich: EnrichFn | None = None,
        record: bool = True,
    ):
        self.settings = settings
        self.store = store
        self.send = send
        self.registry = registry if registry is not None else default_registry()
        self.enrich = enrich
        self.record = record

    def process_batch(self, messages: Iterable[RawMessage]) -> RunSummary:
        summary = RunSummary()
        for message in messages:
            summary.outcomes.append(self.process_message(message))
        return summary

    def process_message(self, message: RawMessage) -> MessageOutcome:
        logger.info("Message %s | %s | from %s", message.message_id, message.subject, message.sender)

        if self.store.contains(message.message_id):
            return self._skip(message, SKIP_ALREADY_FORWARDED)
        classification = classify(message, self.settings, self.registry)
        if classification.skip_reason is not None:
            return self._skip(message, classification.skip_reason)

        profile = classification.profile
        logger.info("From contractor (profile=%s) - processing", profile.name if profile else "none")

        cleaned_body = clean_email_body(message.body, profile, self.settings.marker_policy)
        key_fields = extract_key_fields(message.body, profile)
        job_posting = self._enrich(cleaned_body, message.subject)
        composed = compose_message(message, render_key_fields(key_fields), cleaned_body, self.settings.forward_tag)

        try:
            self.send(composed.subject, composed.body)
        except Exception as exc:  # noqa: BLE001
            logger.error("Forward failed for %s: %s", message.message_id, exc)
            return MessageOutcome(message.message_id, FAILED, str(exc), job_posting)

        logger.info("Forwarded %s successfully", message.message_id)
        if self.record:
            self.store.record_forwarded(message.message_id)
        return MessageOutcome(message.message_id, FORWARDED, None, job_posting)

    def _enrich(self, cleaned_body: str, subject: str) -> JobPosting | None:
        if self.enrich is None:
            return None
        try:
            job_posting = self.enrich(cleaned_body, subject)
            if job_posting is not None:
                logger.info(
                    "Parsed position: %s (confidence %.0f%%)",
                    job_posting.title,
                    job_posting.confidence * 100,
                )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Enrichment failed, forwarding without it: %s", exc)
            return None
        return job_posting

    def _skip(self, message: RawMessage, reason: str) -> MessageOutcome:
        logger.info("Skipping %s: %s", message.message_id, reason)
        return MessageOutcome(message.message_id, SKIPPED, reason)


def build_sender(settings: Settings, *, dry_run: bool) -> SendFn:
    if dry_run:
        def _log_only(subject: str, body: str) -> None:
            logger.info("Dry run enabled. Would send %r:\n%s", subject, body)

        return _log_only

    def _send(subject: str, body: str) -> None:
        send_email(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            email_user=settings.email_user,
            email_pass=settings.email_pass,
            recipients=settings.recruiter_emails,
            subject=subject,
            body=body,
            timeout_seconds=settings.request_timeout_seconds,
        )

    return _send


def run_agent(
    settings: Settings,
    options: ForwarderOptions,
    *,
    store: ForwardedEmailsStore | None = None,
    fetch: FetchFn = fetch_recent_messages,
) -> int:
    require_settings(settings, require_email=True)

    logger.info("Recruiters: %s", ", ".join(settings.recruiter_emails))
    if settings.contractor_emails:
        logger.info("Contractors: %s", ", ".join(settings.contractor_emails))

    if store is None:
        store = ForwardedEmailsStore(options.forwarded_file or default_forwarded_path())
        store.load()
    logger.info("Loaded %d previously forwarded emails", len(store))

    registry = default_registry(load_sender_profiles(options.profile_config))
    enrich = partial(extract_job_posting, settings=settings) if settings.anthropic_api_key else None
    forwarder = Forwarder(
        settings,
        store,
        build_sender(settings, dry_run=options.dry_run),
        registry=registry,
        enrich=enrich,
        record=not options.dry_run,
    )

    messages = fetch(settings)
    logger.info("Processing %d emails...", len(messages))
    summary = forwarder.process_batch(messages)

    logger.info(
        "Processed %d contractor email(s); %d failed; skipped %s",
        summary.forwarded,
        summary.failed,
        dict(summary.skipped) or "none",
    )
    return 0
