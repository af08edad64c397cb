from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from job_forwarder.errors import ConfigurationError

DEFAULT_IGNORE_FROM_DOMAINS: tuple[str, ...] = (
    "railway.app",
    "railway.com",
    "github.com",
    "noreply",
    "no-reply",
    "notifications@",
    "donotreply",
    "kaydevtech.com",
    "kaydevai.com",
)

MARKER_POLICIES = ("priority", "earliest")


@dataclass(frozen=True)
class Settings:
    email_user: str
    email_pass: str
    recruiter_emails: tuple[str, ...]
    contractor_emails: tuple[str, ...] = ()
    ignore_from_domains: tuple[str, ...] = DEFAULT_IGNORE_FROM_DOMAINS
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_api_url: str = "https://api.anthropic.com/v1/messages"
    anthropic_max_tokens: int = 2000
    imap_host: str = "imap.mail.yahoo.com"
    imap_port: int = 993
    imap_mailbox: str = "INBOX"
    smtp_host: str = "smtp.mail.yahoo.com"
    smtp_port: int = 465
    max_emails_to_process: int = 30
    scan_interval_seconds: int = 300
    forward_tag: str = "KayDev"
    marker_policy: str = "priority"
    request_timeout_seconds: int = 30
    llm_timeout_seconds: int = 60


def _env(name: str, default: str = "", *fallbacks: str) -> str:
    for key in (name, *fallbacks):
        value = (os.getenv(key) or "").strip()
        if value:
            return value
    return default


def _env_list(name: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(*, dotenv_path: Path | None = None) -> Settings:
    load_dotenv(dotenv_path=dotenv_path or find_dotenv(usecwd=True))

    marker_policy = _env("MARKER_POLICY", "priority").lower()
    if marker_policy not in MARKER_POLICIES:
        raise ConfigurationError(
            f"MARKER_POLICY must be one of {', '.join(MARKER_POLICIES)}, got {marker_policy!r}"
        )

    return Settings(
        email_user=_env("EMAIL_USER", "", "YAHOO_EMAIL"),
        email_pass=_env("EMAIL_PASS", "", "YAHOO_APP_PASSWORD").replace(" ", ""),
        recruiter_emails=_env_list("RECRUITER_EMAILS"),
        contractor_emails=_env_list("CONTRACTOR_EMAILS"),
        ignore_from_domains=_env_list("IGNORE_FROM_DOMAINS", DEFAULT_IGNORE_FROM_DOMAINS),
        anthropic_api_key=_env("ANTHROPIC_API_KEY"),
        anthropic_model=_env("ANTHROPIC_MODEL", "claude-sonnet-4-20250514"),
        anthropic_api_url=_env("ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages"),
        anthropic_max_tokens=_env_int("ANTHROPIC_MAX_TOKENS", 2000),
        imap_host=_env("IMAP_HOST", "imap.mail.yahoo.com"),
        imap_port=_env_int("IMAP_PORT", 993),
        imap_mailbox=_env("IMAP_MAILBOX", "INBOX"),
        smtp_host=_env("SMTP_HOST", "smtp.mail.yahoo.com"),
        smtp_port=_env_int("SMTP_PORT", 465),
        max_emails_to_process=max(1, _env_int("MAX_EMAILS_TO_PROCESS", 30)),
        scan_interval_seconds=max(1, _env_int("SCAN_INTERVAL_SECONDS", 300)),
        forward_tag=_env("FORWARD_TAG", "KayDev"),
        marker_policy=marker_policy,
        request_timeout_seconds=_env_int("REQUEST_TIMEOUT_SECONDS", 30),
        llm_timeout_seconds=_env_int("LLM_TIMEOUT_SECONDS", 60),
    )


def require_settings(settings: Settings, *, require_email: bool) -> None:
    if not settings.recruiter_emails:
        raise ConfigurationError("No RECRUITER_EMAILS configured")
    missing: list[str] = []
    if require_email:
        if not settings.email_user:
            missing.append("EMAIL_USER")
        if not settings.email_pass:
            missing.append("EMAIL_PASS")
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")


def default_forwarded_path() -> Path:
    return Path(".job_forwarder/forwarded-emails.json")


def default_profile_config_path() -> Path:
    return Path("config/sender_profiles.yml")
