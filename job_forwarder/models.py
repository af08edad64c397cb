from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

KEY_FIELD_BORDER = "═" * 39
CONTRACT_TYPES = ("W2", "C2C", "1099")
PAY_UNITS = ("hourly", "annual")


@dataclass(frozen=True)
class RawMessage:
    message_id: str
    sender: str
    subject: str
    body: str
    date: datetime | None = None
    uid: int | None = None
    flags: tuple[str, ...] = ()


def fallback_message_id(uid: int | None, date: datetime | None) -> str:
    """Composite identifier for messages without a Message-ID header."""
    timestamp = int(date.timestamp() * 1000) if date is not None else "unknown"
    return f"{uid}-{timestamp}"


@dataclass(frozen=True)
class KeyFieldSummary:
    fields: tuple[tuple[str, str], ...] = ()

    def __bool__(self) -> bool:
        return bool(self.fields)

    def as_dict(self) -> dict[str, str]:
        return dict(self.fields)

    def render(self) -> str:
        if not self.fields:
            return ""
        lines = [KEY_FIELD_BORDER]
        lines.extend(f"{label}: {value}" for label, value in self.fields)
        lines.append(KEY_FIELD_BORDER)
        return "\n".join(lines) + "\n\n"


@dataclass(frozen=True)
class JobLocation:
    city: str | None = None
    region: str | None = None
    remote: bool | None = None


@dataclass(frozen=True)
class PayRange:
    min: float | None = None
    max: float | None = None
    unit: str | None = None


@dataclass(frozen=True)
class JobPosting:
    title: str | None = None
    location: JobLocation = field(default_factory=JobLocation)
    pay_range: PayRange = field(default_factory=PayRange)
    required_skills: tuple[str, ...] = ()
    contract_type: str | None = None
    due_date: str | None = None
    duration: str | None = None
    start_date: str | None = None
    confidence: float = 0.0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "JobPosting":
        location = payload.get("location")
        if not isinstance(location, dict):
            location = {}
        pay = payload.get("payRate") or payload.get("pay_range")
        if not isinstance(pay, dict):
            pay = {}
        skills = payload.get("requiredSkills") or payload.get("required_skills") or []
        if not isinstance(skills, list):
            skills = []

        unit = _text(pay.get("type") or pay.get("unit"))
        contract_type = _text(payload.get("contractType") or payload.get("contract_type"))

        return cls(
            title=_text(payload.get("positionTitle") or payload.get("title")),
            location=JobLocation(
                city=_text(location.get("city")),
                region=_text(location.get("state") or location.get("region")),
                remote=location.get("remote") if isinstance(location.get("remote"), bool) else None,
            ),
            pay_range=PayRange(
                min=_number(pay.get("min")),
                max=_number(pay.get("max")),
                unit=unit.lower() if unit and unit.lower() in PAY_UNITS else None,
            ),
            required_skills=tuple(s for s in (_text(item) for item in skills) if s),
            contract_type=contract_type.upper() if contract_type and contract_type.upper() in CONTRACT_TYPES else None,
            due_date=_text(payload.get("dueDate") or payload.get("due_date")),
            duration=_text(payload.get("duration")),
            start_date=_text(payload.get("startDate") or payload.get("start_date")),
            confidence=_confidence(payload.get("confidence")),
        )


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").replace("$", "").strip())
        except ValueError:
            return None
    return None


def _confidence(value: Any) -> float:
    number = _number(value)
    if number is None:
        return 0.0
    return min(1.0, max(0.0, number))
