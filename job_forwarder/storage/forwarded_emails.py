from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from job_forwarder.errors import PersistenceError

logger = logging.getLogger(__name__)


class ForwardedEmailsStore:
    """Durable set of message identifiers that were forwarded successfully.

    The file holds a JSON array. Missing or corrupt files read as empty.
    Writes replace the whole file, so a crash mid-write leaves the previous
    version in place.
    """

    def __init__(self, path: Path):
        self.path = path
        self._ids: set[str] = set()

    def load(self) -> set[str]:
        if not self.path.exists():
            logger.warning("No forwarded log at %s, starting fresh", self.path)
        self._ids = self._read()
        return set(self._ids)

    def contains(self, message_id: str) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def record_forwarded(self, message_id: str) -> bool:
        """Mark ``message_id`` as forwarded; returns False when it could not be persisted."""
        self._ids.add(message_id)
        persisted = self._read() | self._ids
        try:
            self.save(persisted)
        except PersistenceError as exc:
            logger.error("Could not save to forwarded log: %s", exc)
            return False
        self._ids |= persisted
        return True

    def save(self, ids: set[str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".forwarded-", suffix=".json", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(sorted(ids), handle, ensure_ascii=True, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Unable to write {self.path}: {exc}") from exc

    def _read(self) -> set[str]:
        if not self.path.exists():
            return set()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Could not load forwarded log %s, starting fresh: %s", self.path, exc)
            return set()
        if not isinstance(raw, list):
            logger.warning("Forwarded log %s is not a JSON array, starting fresh", self.path)
            return set()
        return {str(item) for item in raw if str(item).strip()}
