"""
Shared fixtures for the forwarder test suite.
"""
from datetime import datetime, timezone

import pytest

from job_forwarder.config import Settings
from job_forwarder.models import RawMessage
from job_forwarder.profiles import default_registry
from job_forwarder.storage.forwarded_emails import ForwardedEmailsStore

MVP_SENDER = "Nancy Gordon <nancyg@mvpconsultingplus.com>"
MINDLANCE_SENDER = "Aakash Patel <aakashp@mindlance.com>"


# ==========================================================================
# Message bodies
# ==========================================================================

MVP_BODY = """MVP Consulting Plus, Inc. has a job opening for the following position.

DUE DATE: 05/01/2025
POSITION: Senior Java Developer
Location: Albany, NY
Duration of engagement: 12 months
Targeted start: 06/01/2025

Description of the role goes here.

If you know of anyone who might be interested, please forward.

Thank you,
Nancy Gordon
Contract Manager
MVP Consulting Plus
nancyg@mvpconsultingplus.com
"""

MINDLANCE_BODY = """Greetings,

We have an urgent requirement with our client. Please advise if you require any information or any help from our end.

Role: Data Engineer
Location: Remote
Duration: 6 Months
Job Id: 12345
Category: IT
Due Date: 05/15/2025

Job Description: Build pipelines.

Regards,
Aakash Patel
Team Recruitment
aakashp@mindlance.com
To unsubscribe click here
"""


@pytest.fixture
def mvp_body():
    return MVP_BODY


@pytest.fixture
def mindlance_body():
    return MINDLANCE_BODY


# ==========================================================================
# Settings / collaborators
# ==========================================================================

@pytest.fixture
def settings():
    return Settings(
        email_user="me@yahoo.com",
        email_pass="app-password",
        recruiter_emails=("rec1@example.com", "rec2@example.com"),
        contractor_emails=("nancyg@mvpconsultingplus.com", "aakashp@mindlance.com", "jobs@acme.com"),
    )


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "forwarded-emails.json"


@pytest.fixture
def store(store_path):
    forwarded = ForwardedEmailsStore(store_path)
    forwarded.load()
    return forwarded


class FakeSender:
    def __init__(self, fail_on=()):
        self.sent = []
        self.fail_on = set(fail_on)

    def __call__(self, subject, body):
        if any(marker in subject for marker in self.fail_on):
            raise ConnectionError("SMTP connection reset")
        self.sent.append((subject, body))


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def make_sender():
    return FakeSender


@pytest.fixture
def make_message():
    def _make(
        message_id="<abc@mail.example.com>",
        sender=MVP_SENDER,
        subject="Fwd: Need: Senior Java Dev",
        body=MVP_BODY,
    ):
        return RawMessage(
            message_id=message_id,
            sender=sender,
            subject=subject,
            body=body,
            date=datetime(2025, 4, 20, 9, 30, tzinfo=timezone.utc),
            uid=42,
        )

    return _make
