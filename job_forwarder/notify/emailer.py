from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Sequence

from job_forwarder.errors import SendError


def build_message(*, email_user: str, recipients: Sequence[str], subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = email_user
    message["To"] = ", ".join(recipients)
    message.set_content(body, charset="utf-8")
    return message


def send_email(
    *,
    smtp_host: str,
    smtp_port: int,
    email_user: str,
    email_pass: str,
    recipients: Sequence[str],
    subject: str,
    body: str,
    timeout_seconds: int = 30,
) -> None:
    if not recipients:
        raise SendError("No recipients given")

    message = build_message(email_user=email_user, recipients=recipients, subject=subject, body=body)

    try:
        if smtp_port == 465:
            server: smtplib.SMTP = smtplib.SMTP_SSL(smtp_host, smtp_port, timeout=timeout_seconds)
        else:
            server = smtplib.SMTP(smtp_host, smtp_port, timeout=timeout_seconds)
    except (OSError, smtplib.SMTPException) as exc:
        raise SendError(f"Unable to connect to {smtp_host}:{smtp_port}: {exc}") from exc

    try:
        server.ehlo()
        if smtp_port != 465:
            server.starttls()
            server.ehlo()
        server.login(email_user, email_pass)
        server.send_message(message)
    except (OSError, smtplib.SMTPException) as exc:
        raise SendError(str(exc)) from exc
    finally:
        try:
            server.quit()
        except (OSError, smtplib.SMTPException):
            pass
