from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from job_forwarder.errors import ConfigurationError
from job_forwarder.profiles import FieldRule, ReplaceRule, SenderProfile, field_rule, replace_rule

_FLAG_NAMES = {
    "IGNORECASE": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "DOTALL": re.DOTALL,
}


def load_sender_profiles(config_path: Path | None) -> list[SenderProfile]:
    """Read extra sender profiles from YAML; a missing file means no extras."""
    if config_path is None or not config_path.exists():
        return []

    data = _read_yaml_mapping(config_path)
    profiles = data.get("profiles") or []
    if not isinstance(profiles, list):
        raise ConfigurationError("Sender profile config 'profiles' must be a list")
    return [_parse_profile(item, index) for index, item in enumerate(profiles)]


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Unable to read config file: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file: {path}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Sender profile config must be a YAML mapping/object: {path}")
    return raw


def _parse_profile(item: Any, index: int) -> SenderProfile:
    if not isinstance(item, dict):
        raise ConfigurationError(f"Sender profile #{index} must be a mapping")

    name = str(item.get("name") or "").strip()
    if not name:
        raise ConfigurationError(f"Sender profile #{index} is missing 'name'")

    addresses = item.get("addresses") or []
    if not isinstance(addresses, list):
        raise ConfigurationError(f"Sender profile '{name}': 'addresses' must be a list")
    patterns = tuple(str(a).strip() for a in addresses if str(a).strip())
    if not patterns:
        raise ConfigurationError(f"Sender profile '{name}' needs at least one address")

    cleanup = item.get("cleanup") or []
    fields = item.get("fields") or []
    if not isinstance(cleanup, list) or not isinstance(fields, list):
        raise ConfigurationError(f"Sender profile '{name}': 'cleanup' and 'fields' must be lists")

    return SenderProfile(
        name=name,
        address_patterns=patterns,
        cleanup_rules=tuple(_parse_cleanup_rule(name, rule) for rule in cleanup),
        field_rules=tuple(_parse_field_rule(name, rule) for rule in fields),
    )


def _parse_flags(name: str, raw: Any) -> int:
    if raw is None:
        return re.IGNORECASE
    if not isinstance(raw, list):
        raise ConfigurationError(f"Sender profile '{name}': 'flags' must be a list")
    flags = 0
    for flag in raw:
        key = str(flag).strip().upper()
        if key not in _FLAG_NAMES:
            raise ConfigurationError(f"Sender profile '{name}': unknown regex flag {flag!r}")
        flags |= _FLAG_NAMES[key]
    return flags


def _parse_cleanup_rule(name: str, rule: Any) -> ReplaceRule:
    if isinstance(rule, str):
        rule = {"pattern": rule}
    if not isinstance(rule, dict) or not rule.get("pattern"):
        raise ConfigurationError(f"Sender profile '{name}': cleanup rules need a 'pattern'")
    try:
        return replace_rule(
            str(rule["pattern"]),
            str(rule.get("replacement") or ""),
            flags=_parse_flags(name, rule.get("flags")),
            count=int(rule.get("count") or 0),
        )
    except (re.error, ValueError) as exc:
        raise ConfigurationError(f"Sender profile '{name}': invalid cleanup rule {rule!r}: {exc}") from exc


def _parse_field_rule(name: str, rule: Any) -> FieldRule:
    if isinstance(rule, str):
        rule = {"label": rule}
    if not isinstance(rule, dict) or not str(rule.get("label") or "").strip():
        raise ConfigurationError(f"Sender profile '{name}': field rules need a 'label'")
    pattern = rule.get("pattern")
    try:
        compiled = field_rule(str(rule["label"]).strip(), str(pattern) if pattern else None)
    except re.error as exc:
        raise ConfigurationError(f"Sender profile '{name}': invalid field pattern {pattern!r}: {exc}") from exc
    if compiled.pattern.groups < 1:
        raise ConfigurationError(f"Sender profile '{name}': field pattern {pattern!r} needs a capture group")
    return compiled
