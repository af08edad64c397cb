from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class ReplaceRule:
    pattern: re.Pattern[str]
    replacement: str = ""
    count: int = 0  # 0 replaces every occurrence

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text, count=self.count)


@dataclass(frozen=True)
class FieldRule:
    label: str
    pattern: re.Pattern[str]

    def search(self, text: str) -> str | None:
        match = self.pattern.search(text)
        if match is None or match.lastindex is None:
            return None
        value = (match.group(1) or "").strip()
        return value or None


@dataclass(frozen=True)
class SenderProfile:
    name: str
    address_patterns: tuple[str, ...]
    cleanup_rules: tuple[ReplaceRule, ...] = ()
    field_rules: tuple[FieldRule, ...] = ()

    def matches(self, from_address: str) -> bool:
        sender = (from_address or "").lower()
        return any(p.lower() in sender for p in self.address_patterns if p)


def replace_rule(
    pattern: str,
    replacement: str = "",
    *,
    flags: int = re.IGNORECASE,
    count: int = 0,
) -> ReplaceRule:
    return ReplaceRule(pattern=re.compile(pattern, flags), replacement=replacement, count=count)


def field_rule(label: str, pattern: str | None = None) -> FieldRule:
    source = pattern or rf"{re.escape(label)}:\s*([^\n]+)"
    return FieldRule(label=label, pattern=re.compile(source, re.IGNORECASE))


@dataclass
class ProfileRegistry:
    """Ordered sender profiles; the first profile whose address pattern matches wins."""

    _profiles: list[SenderProfile] = field(default_factory=list)

    def register(self, profile: SenderProfile) -> None:
        if any(existing.name == profile.name for existing in self._profiles):
            raise ValueError(f"Sender profile already registered: {profile.name}")
        self._profiles.append(profile)

    def extend(self, profiles: Iterable[SenderProfile]) -> None:
        for profile in profiles:
            self.register(profile)

    @property
    def profiles(self) -> tuple[SenderProfile, ...]:
        return tuple(self._profiles)

    def select(self, from_address: str) -> SenderProfile | None:
        for profile in self._profiles:
            if profile.matches(from_address):
                return profile
        return None


_ML = re.IGNORECASE | re.MULTILINE

MVP_PROFILE = SenderProfile(
    name="mvp",
    address_patterns=("michealbillings76@gmail", "nancyg@mvpconsultingplus"),
    cleanup_rules=(
        replace_rule(r"MVP Consulting Plus, Inc\. has a job opening[^\n]*"),
        replace_rule(r"If you know of anyone.*$", flags=re.IGNORECASE | re.DOTALL, count=1),
        replace_rule(
            r"Thank you,[\s\S]*?(?:Nancy Gordon|Ramesh)[\s\S]*?mvpconsultingplus\.com.*$",
            flags=_ML,
            count=1,
        ),
        replace_rule(r"\[image:.*?\]"),
        replace_rule(r"Nancy Gordon"),
        replace_rule(r"Ramesh.*?mvpconsultingplus\.com"),
        replace_rule(r"Contract Manager"),
        replace_rule(r"MVP Consulting Plus.*$", flags=_ML),
        replace_rule(r"\(A Speridian Technologies LLC Company\)"),
        replace_rule(r"401 New Karner Road.*$", flags=_ML),
        replace_rule(r"Albany NY \d{5}.*$", flags=_ML),
        replace_rule(r"O: \d{3}-\d{3}-\d{4}"),
        replace_rule(r"rameshr@mvpconsultingplus\.com"),
        replace_rule(r"nancyg@mvpconsultingplus\.com"),
        replace_rule(r"www\.mvpconsultingplus\.com"),
    ),
    field_rules=(
        field_rule("DUE DATE"),
        field_rule("Duration of engagement"),
        field_rule("Location"),
        field_rule("Targeted start"),
    ),
)

MINDLANCE_PROFILE = SenderProfile(
    name="mindlance",
    address_patterns=("mwilliy2k@gmail", "aakashp@mindlance"),
    cleanup_rules=(
        replace_rule(
            r"Greetings,?[\s\S]*?Please advise if you require any information or any help from our end\.?"
        ),
        replace_rule(r"Regards,?[\s\S]*?Aakash[\s\S]*?mindlance\.com.*$", flags=_ML, count=1),
        replace_rule(r"Team Recruitment"),
        replace_rule(r"mindlance open jobs"),
        replace_rule(r"Union, NJ"),
        replace_rule(r"Follow us on.*"),
        replace_rule(r"w: \d{3}-\d{3}-\d{4}"),
        replace_rule(r"aakashp@mindlance\.com"),
        replace_rule(r"www\.mindlance\.com"),
        replace_rule(r"<http://[^>]*>"),
        replace_rule(r"<https://[^>]*>"),
        replace_rule(r"<mailto:[^>]*>"),
        replace_rule(r"To provide feedback.*$", flags=_ML, count=1),
        replace_rule(r"To unsubscribe.*$", flags=_ML, count=1),
        replace_rule(r"feedback@mindlance\.com"),
        replace_rule(r"unsubscribe@mindlance\.com"),
    ),
    field_rules=(
        field_rule("Role"),
        field_rule("Location"),
        field_rule("Duration"),
        field_rule("Job Id"),
        field_rule("Category"),
        field_rule("Due Date"),
    ),
)

BUILTIN_PROFILES: tuple[SenderProfile, ...] = (MVP_PROFILE, MINDLANCE_PROFILE)


def default_registry(extra: Iterable[SenderProfile] = ()) -> ProfileRegistry:
    registry = ProfileRegistry()
    registry.extend(BUILTIN_PROFILES)
    registry.extend(extra)
    return registry
