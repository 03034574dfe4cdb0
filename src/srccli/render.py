"""Helpers for turning loosely-shaped API payloads into terminal text.

Response payloads differ between endpoints and API revisions (``status`` vs
``state`` vs ``status_slug``, ``items`` vs ``data``), so most helpers accept
several candidate values or keys and use the first usable one.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

SHORT_ID_LENGTH = 8
_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d\d:\d\d$|$)")


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3] + "..."


def indent(text: str, spaces: int) -> str:
    pad = " " * spaces
    return "\n".join(pad + line for line in text.rstrip("\n").split("\n"))


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def first_string(*values: Any) -> str:
    """First non-empty string among ``values``; mappings contribute their ``slug``."""
    for value in values:
        if isinstance(value, str) and value:
            return value
        if isinstance(value, Mapping):
            slug = value.get("slug")
            if isinstance(slug, str) and slug:
                return slug
    return ""


def first_text(*values: Any) -> str:
    """Like :func:`first_string` but numbers count too."""
    for value in values:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return to_text(value)
        text = first_string(value)
        if text:
            return text
    return ""


def ref(value: Any, *keys: str) -> str:
    """Render a nested object as ``slug/id`` style text from the given keys."""
    if not isinstance(value, Mapping):
        return ""
    parts = [to_text(value.get(k)) for k in keys]
    parts = [p for p in parts if p]
    return "/".join(parts)


def short_id(identifier: str) -> str:
    head, sep, tail = identifier.partition("/")
    if len(head) > SHORT_ID_LENGTH:
        head = head[:SHORT_ID_LENGTH]
    return head + sep + tail


def _parse_timestamp(value: str) -> datetime | None:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def pretty_date(value: Any) -> str:
    if not isinstance(value, str) or not value:
        return ""
    parsed = _parse_timestamp(value)
    return parsed.strftime("%Y-%m-%d") if parsed else value


def pretty_time(value: Any) -> str:
    if not isinstance(value, str) or not value:
        return ""
    parsed = _parse_timestamp(value)
    return parsed.strftime("%Y-%m-%d %H:%M") if parsed else value


def date_from(mapping: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        rendered = pretty_date(mapping.get(key))
        if rendered:
            return rendered
    return ""


def join_labels(labels: Any) -> str:
    if labels is None:
        return ""
    if not isinstance(labels, list):
        return to_text(labels)
    out: list[str] = []
    for item in labels:
        if isinstance(item, Mapping):
            name = first_string(item.get("name"), item.get("slug"))
            if name:
                out.append(name)
        elif isinstance(item, str) and item:
            out.append(item)
    return ", ".join(out)


def extract_items(payload: Mapping[str, Any], *keys: str) -> list[Any] | None:
    """First list found under ``keys``; ``None`` when no key holds a list."""
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, Mapping):
            return list(value.values())
    return None


def number_from(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def float_from(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def visibility_symbol(visibility: str) -> str:
    lowered = visibility.lower()
    if lowered == "internal":
        return "🔒 internal"
    if lowered == "private":
        return "🔐 private"
    return "🌐 public"


def issue_state_symbol(state: str) -> str:
    lowered = state.lower()
    if lowered in ("open", "opened"):
        return "○"
    if lowered in ("inprogress", "in_progress", "in progress"):
        return "◐"
    if lowered in ("closed", "done"):
        return "●"
    return "·"


def milestone_state_symbol(state: str) -> str:
    lowered = state.lower()
    if lowered in ("open", "opened"):
        return "○ open"
    if lowered in ("closed", "done"):
        return "● done"
    return "·"


def pr_state_symbol(state: str) -> str:
    lowered = state.lower()
    if lowered in ("open", "opened"):
        return "○ open"
    if lowered == "merged":
        return "◆ merged"
    if lowered in ("closed", "declined"):
        return "● closed"
    if lowered == "draft":
        return "… draft"
    return "·"


def run_status_symbol(status: str) -> str:
    lowered = status.lower()
    if lowered in ("running", "in_progress", "inprogress"):
        return "▶ running"
    if lowered in ("queued", "pending"):
        return "⏳ queued"
    if lowered in ("success", "passed", "completed"):
        return "✔ success"
    if lowered in ("failed", "error"):
        return "✖ failed"
    return lowered


def pretty_key(key: str) -> str:
    return key.replace("_", " ")


def to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


__all__ = [
    "date_from",
    "extract_items",
    "first_string",
    "first_text",
    "float_from",
    "indent",
    "issue_state_symbol",
    "join_labels",
    "milestone_state_symbol",
    "number_from",
    "pr_state_symbol",
    "pretty_date",
    "pretty_key",
    "pretty_time",
    "ref",
    "run_status_symbol",
    "short_id",
    "to_json",
    "to_text",
    "truncate",
    "visibility_symbol",
]
