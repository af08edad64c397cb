from __future__ import annotations

from typing import Any

import requests

from job_forwarder.errors import CompletionError

ANTHROPIC_VERSION = "2023-06-01"


def complete(
    prompt: str,
    *,
    api_key: str,
    api_url: str,
    model: str,
    max_tokens: int,
    timeout_seconds: int,
) -> str:
    response = requests.post(
        api_url,
        headers={
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        },
        json={
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        },
        timeout=timeout_seconds,
    )
    response.raise_for_status()

    data: dict[str, Any] = response.json()
    if data.get("type") == "error" or "error" in data:
        raise CompletionError(f"Anthropic API error: {data.get('error')}")
    if "content" not in data:
        raise CompletionError(f"Unexpected Anthropic response: {data}")

    try:
        block = data["content"][0]
    except (IndexError, TypeError) as exc:
        raise CompletionError(f"Unable to parse Anthropic response: {data}") from exc
    if not isinstance(block, dict) or block.get("type") != "text":
        return ""
    return str(block.get("text") or "")
