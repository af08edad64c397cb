"""
Tests for configuration loading, the single-flight scheduler and the CLI entry point.
"""
import threading
from dataclasses import replace

import pytest

from job_forwarder import main as cli
from job_forwarder.config import DEFAULT_IGNORE_FROM_DOMAINS, load_settings, require_settings
from job_forwarder.errors import ConfigurationError
from job_forwarder.mailbox import imap
from job_forwarder.scheduler import SingleFlightScheduler

ENV_KEYS = (
    "EMAIL_USER", "YAHOO_EMAIL", "EMAIL_PASS", "YAHOO_APP_PASSWORD", "RECRUITER_EMAILS",
    "CONTRACTOR_EMAILS", "IGNORE_FROM_DOMAINS", "ANTHROPIC_API_KEY", "MAX_EMAILS_TO_PROCESS",
    "MARKER_POLICY", "FORWARD_TAG", "SMTP_PORT", "SCAN_INTERVAL_SECONDS",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestLoadSettings:

    def test_defaults(self, clean_env, tmp_path):
        settings = load_settings(dotenv_path=tmp_path / ".env")

        assert settings.recruiter_emails == ()
        assert settings.ignore_from_domains == DEFAULT_IGNORE_FROM_DOMAINS
        assert settings.max_emails_to_process == 30
        assert settings.scan_interval_seconds == 300
        assert settings.forward_tag == "KayDev"
        assert settings.marker_policy == "priority"
        assert settings.anthropic_api_key == ""

    def test_lists_and_fallbacks(self, clean_env, tmp_path):
        clean_env.setenv("RECRUITER_EMAILS", "a@x.com, b@y.com,")
        clean_env.setenv("CONTRACTOR_EMAILS", "nancyg@mvpconsultingplus.com")
        clean_env.setenv("YAHOO_EMAIL", "me@yahoo.com")
        clean_env.setenv("YAHOO_APP_PASSWORD", "abcd efgh")
        clean_env.setenv("MAX_EMAILS_TO_PROCESS", "50")

        settings = load_settings(dotenv_path=tmp_path / ".env")

        assert settings.recruiter_emails == ("a@x.com", "b@y.com")
        assert settings.contractor_emails == ("nancyg@mvpconsultingplus.com",)
        assert settings.email_user == "me@yahoo.com"
        assert settings.email_pass == "abcdefgh"
        assert settings.max_emails_to_process == 50

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RECRUITER_EMAILS=r@x.com\nFORWARD_TAG=Acme\n", encoding="utf-8")

        settings = load_settings(dotenv_path=env_file)

        assert settings.recruiter_emails == ("r@x.com",)
        assert settings.forward_tag == "Acme"

    def test_invalid_marker_policy(self, clean_env, tmp_path):
        clean_env.setenv("MARKER_POLICY", "latest")
        with pytest.raises(ConfigurationError, match="MARKER_POLICY"):
            load_settings(dotenv_path=tmp_path / ".env")

    def test_invalid_integer(self, clean_env, tmp_path):
        clean_env.setenv("SMTP_PORT", "smtp")
        with pytest.raises(ConfigurationError, match="SMTP_PORT"):
            load_settings(dotenv_path=tmp_path / ".env")


class TestRequireSettings:

    def test_recruiters_required(self, settings):
        with pytest.raises(ConfigurationError, match="RECRUITER_EMAILS"):
            require_settings(replace(settings, recruiter_emails=()), require_email=False)

    def test_credentials_required(self, settings):
        with pytest.raises(ConfigurationError, match="EMAIL_USER, EMAIL_PASS"):
            require_settings(replace(settings, email_user="", email_pass=""), require_email=True)


class TestSingleFlightScheduler:

    def test_run_once(self):
        calls = []
        scheduler = SingleFlightScheduler(lambda: calls.append(1), interval_seconds=60)

        assert scheduler.run_once() is True
        assert calls == [1]
        assert not scheduler.in_flight

    def test_overlapping_run_is_skipped(self):
        nested = []

        def job():
            nested.append(scheduler.run_once())

        scheduler = SingleFlightScheduler(job, interval_seconds=60)
        assert scheduler.run_once() is True
        assert nested == [False]

    def test_lock_released_after_failure(self):
        def job():
            raise RuntimeError("boom")

        scheduler = SingleFlightScheduler(job, interval_seconds=60)
        with pytest.raises(RuntimeError):
            scheduler.run_once()
        assert not scheduler.in_flight

    def test_concurrent_thread_is_skipped(self):
        started = threading.Event()
        release = threading.Event()

        def job():
            started.set()
            release.wait(5)

        scheduler = SingleFlightScheduler(job, interval_seconds=60)
        worker = threading.Thread(target=scheduler.run_once)
        worker.start()
        started.wait(5)

        assert scheduler.run_once() is False

        release.set()
        worker.join(5)

    def test_run_forever_until_stopped(self):
        stop = threading.Event()
        calls = []

        def job():
            calls.append(1)
            if len(calls) == 2:
                stop.set()

        SingleFlightScheduler(job, interval_seconds=0.01).run_forever(stop)

        assert calls == [1, 1]


class TestMain:

    def test_missing_recruiters_exits_1(self, clean_env, tmp_path):
        assert cli.main(["--once", "--forwarded-file", str(tmp_path / "f.json")]) == 1

    def test_mailbox_failure_exits_1(self, clean_env, tmp_path):
        clean_env.setenv("RECRUITER_EMAILS", "r@x.com")
        clean_env.setenv("EMAIL_USER", "me@yahoo.com")
        clean_env.setenv("EMAIL_PASS", "pw")

        def refuse(*args, **kwargs):
            raise OSError("network unreachable")

        clean_env.setattr(imap.imaplib, "IMAP4_SSL", refuse)

        assert cli.main(["--once", "--forwarded-file", str(tmp_path / "f.json")]) == 1

    def test_parser_defaults(self):
        args = cli.build_parser().parse_args([])

        assert args.once is False
        assert args.dry_run is False
        assert args.log_level == "INFO"
