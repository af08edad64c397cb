from __future__ import annotations

import email
import imaplib
import logging
import re
from email.header import decode_header, make_header
from email.message import Message
from email.utils import parsedate_to_datetime

from bs4 import BeautifulSoup

from job_forwarder.config import Settings
from job_forwarder.errors import SessionError
from job_forwarder.models import RawMessage, fallback_message_id

logger = logging.getLogger(__name__)

_UID_RE = re.compile(rb"UID (\d+)")
_FLAGS_RE = re.compile(rb"FLAGS \(([^)]*)\)")


def sequence_range(total: int, limit: int) -> tuple[int, int]:
    """Inclusive sequence-number range covering the most recent ``limit`` messages."""
    return max(1, total - limit + 1), total


def decode_header_value(value: str | None) -> str:
    if not value:
        return ""
    try:
        return str(make_header(decode_header(value))).strip()
    except (UnicodeDecodeError, LookupError, ValueError):
        return str(value).strip()


def _decode_part(part: Message) -> str:
    payload = part.get_payload(decode=True)
    if not payload:
        return ""
    charset = part.get_content_charset() or "utf-8"
    try:
        text = payload.decode(charset, errors="replace")
    except LookupError:
        text = payload.decode("utf-8", errors="replace")
    return text.replace("\r\n", "\n")


def _html_to_text(markup: str) -> str:
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return soup.get_text("\n", strip=True)


def extract_body_text(msg: Message) -> str:
    """Plain-text body; HTML is rendered to text only when no plain part exists."""
    plain_parts: list[str] = []
    html_parts: list[str] = []
    for part in msg.walk() if msg.is_multipart() else [msg]:
        if part.is_multipart():
            continue
        if "attachment" in str(part.get("Content-Disposition", "")).lower():
            continue
        ctype = part.get_content_type()
        if ctype == "text/plain":
            plain_parts.append(_decode_part(part))
        elif ctype == "text/html":
            html_parts.append(_html_to_text(_decode_part(part)))

    if any(p.strip() for p in plain_parts):
        return "\n".join(plain_parts)
    return "\n".join(html_parts)


def parse_message(raw: bytes, *, uid: int | None = None, flags: tuple[str, ...] = ()) -> RawMessage:
    msg = email.message_from_bytes(raw)

    date = None
    if msg.get("Date"):
        try:
            date = parsedate_to_datetime(msg["Date"])
        except (TypeError, ValueError):
            date = None

    message_id = (msg.get("Message-ID") or "").strip() or fallback_message_id(uid, date)
    return RawMessage(
        message_id=message_id,
        sender=decode_header_value(msg.get("From")),
        subject=decode_header_value(msg.get("Subject")),
        body=extract_body_text(msg),
        date=date,
        uid=uid,
        flags=flags,
    )


def _parse_fetch_item(item: object) -> RawMessage | None:
    if not isinstance(item, tuple) or len(item) < 2 or not isinstance(item[1], bytes):
        return None
    envelope = item[0] if isinstance(item[0], bytes) else b""
    uid_match = _UID_RE.search(envelope)
    flags_match = _FLAGS_RE.search(envelope)
    flags = tuple(f.decode("ascii", "replace") for f in flags_match.group(1).split()) if flags_match else ()
    return parse_message(item[1], uid=int(uid_match.group(1)) if uid_match else None, flags=flags)


def fetch_recent_messages(settings: Settings) -> list[RawMessage]:
    """Fetch and fully parse the newest messages before any processing starts."""
    logger.info("Connecting to %s:%s ...", settings.imap_host, settings.imap_port)
    try:
        mail = imaplib.IMAP4_SSL(settings.imap_host, settings.imap_port, timeout=settings.request_timeout_seconds)
    except OSError as exc:
        raise SessionError(f"Unable to connect to {settings.imap_host}: {exc}") from exc

    try:
        mail.login(settings.email_user, settings.email_pass)
        status, data = mail.select(settings.imap_mailbox, readonly=True)
        if status != "OK":
            raise SessionError(f"Failed to open {settings.imap_mailbox}")
        total = int((data[0] or b"0").decode() or 0)
        logger.info("%s has %d total emails", settings.imap_mailbox, total)
        if total == 0:
            return []

        start, end = sequence_range(total, settings.max_emails_to_process)
        logger.info("Scanning last %d emails (%d:%d)", settings.max_emails_to_process, start, end)
        status, fetched = mail.fetch(f"{start}:{end}", "(UID FLAGS RFC822)")
        if status != "OK":
            raise SessionError(f"Failed to fetch {start}:{end}")

        messages: list[RawMessage] = []
        for item in fetched or []:
            parsed = _parse_fetch_item(item)
            if parsed is not None:
                messages.append(parsed)
        return messages
    except (imaplib.IMAP4.error, OSError, ValueError) as exc:
        raise SessionError(f"IMAP error: {exc}") from exc
    finally:
        try:
            mail.logout()
        except (imaplib.IMAP4.error, OSError):
            pass
