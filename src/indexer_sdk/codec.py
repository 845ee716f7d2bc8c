"""RawEvent payload codec - JSON documents carried as queue message bodies."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any

from indexer_sdk.errors import EventDecodeError
from indexer_sdk.models.events import RawEvent

# RFC 3339 fractional seconds; the indexer emits up to nanoseconds with trailing zeros trimmed
_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _string_list(doc: dict[str, Any], key: str) -> tuple[str, ...]:
    value = doc.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise EventDecodeError(f"field {key!r} must be a list of strings")
    return tuple(value)


def _string(doc: dict[str, Any], key: str) -> str:
    value = doc.get(key, "")
    if not isinstance(value, str):
        raise EventDecodeError(f"field {key!r} must be a string")
    return value


def decode_raw_event(payload: bytes) -> RawEvent:
    """Decode a queue message body into a RawEvent.

    Raises EventDecodeError on any malformed payload.
    """
    try:
        doc = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EventDecodeError(f"invalid payload: {exc}") from exc

    if not isinstance(doc, dict):
        raise EventDecodeError("payload is not a JSON object")

    recorded_at = doc.get("recorded_at")
    if not isinstance(recorded_at, str):
        raise EventDecodeError("field 'recorded_at' is missing")
    try:
        ts = _parse_timestamp(recorded_at)
    except ValueError as exc:
        raise EventDecodeError(f"invalid recorded_at {recorded_at!r}") from exc

    return RawEvent(
        recorded_at=ts,
        event_id=_string(doc, "event_id"),
        from_address=_string(doc, "from_address"),
        keys=_string_list(doc, "keys"),
        data=_string_list(doc, "data"),
    )


def encode_raw_event(event: RawEvent) -> bytes:
    """Encode a RawEvent the way the indexer publishes it."""
    doc = {
        "recorded_at": event.recorded_at.isoformat(),
        "event_id": event.event_id,
        "from_address": event.from_address,
        "keys": list(event.keys),
        "data": list(event.data),
    }
    return json.dumps(doc).encode("utf-8")
