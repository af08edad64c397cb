from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from job_forwarder.agent import ForwarderOptions, run_agent
from job_forwarder.config import default_forwarded_path, default_profile_config_path, load_settings
from job_forwarder.errors import ConfigurationError, SessionError
from job_forwarder.scheduler import SingleFlightScheduler
from job_forwarder.storage.forwarded_emails import ForwardedEmailsStore

logger = logging.getLogger("job_forwarder")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Forward cleaned contractor job postings to recruiters")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Scan the mailbox a single time instead of every SCAN_INTERVAL_SECONDS",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between scans (overrides SCAN_INTERVAL_SECONDS)",
    )
    parser.add_argument(
        "--max-emails",
        type=int,
        default=None,
        help="How many of the newest messages to scan (overrides MAX_EMAILS_TO_PROCESS)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the composed messages instead of sending them",
    )
    parser.add_argument(
        "--forwarded-file",
        type=Path,
        default=None,
        help="Path to the forwarded emails JSON file",
    )
    parser.add_argument(
        "--profile-config",
        type=Path,
        default=None,
        help="Path to a YAML file with extra sender profiles (defaults to config/sender_profiles.yml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    options = ForwarderOptions(
        dry_run=args.dry_run,
        forwarded_file=args.forwarded_file or default_forwarded_path(),
        profile_config=args.profile_config or default_profile_config_path(),
    )

    try:
        settings = load_settings()
        if args.max_emails is not None:
            settings = replace(settings, max_emails_to_process=max(1, args.max_emails))
        store = ForwardedEmailsStore(options.forwarded_file)
        store.load()

        if args.once:
            return run_agent(settings, options, store=store)

        interval = max(1, args.interval or settings.scan_interval_seconds)
        logger.info("Scanning every %d seconds", interval)
        scheduler = SingleFlightScheduler(lambda: run_agent(settings, options, store=store), interval)
        scheduler.run_forever()
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return 130
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except SessionError as exc:
        logger.error("IMAP error: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
