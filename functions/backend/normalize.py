"""
Normalisation of stored Firestore documents into Review and Beverage records.

Every stored shape maps to exactly one output shape:

- timestamps: `datetime` (Firestore returns DatetimeWithNanoseconds; naive
  values are read as UTC), protobuf-style objects with `seconds`/`nanos`,
  mappings with `seconds`/`_seconds` and optional
  `nanoseconds`/`_nanoseconds`, and plain numbers (already epoch millis)
  become epoch milliseconds. Anything else, including a missing field, NaN or
  infinite numbers, and an unresolved SERVER_TIMESTAMP sentinel, becomes the
  current client time.
- optional fields missing from the document (or stored as NaN) become
  None; a missing or non-numeric `likes` becomes 0 and a missing
  `userName` becomes "Anonymous".
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from dacite import Config, from_dict

from shared.json_utils import convert_keys
from shared.types import ANONYMOUS_USER_NAME, Beverage, Review

_DACITE_CONFIG = Config(check_types=False)


def now_millis() -> int:
    return int(time.time() * 1000)


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _from_seconds(seconds: Any, nanos: Any) -> Optional[int]:
    if not _is_finite_number(seconds):
        return None
    if not _is_finite_number(nanos):
        nanos = 0
    return int(seconds * 1000 + nanos // 1_000_000)


def timestamp_to_millis(value: Any) -> int:
    """Converts a stored timestamp of any observed shape to epoch millis."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)

    if _is_finite_number(value):
        return int(value)
    if isinstance(value, (int, float)):
        # NaN, infinities and booleans
        return now_millis()

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
        millis = _from_seconds(seconds, nanos)
        return millis if millis is not None else now_millis()

    if hasattr(value, "seconds") and hasattr(value, "nanos"):
        millis = _from_seconds(value.seconds, value.nanos)
        if millis is not None:
            return millis

    return now_millis()


def review_from_document(doc_id: str, data: Mapping[str, Any]) -> Review:
    fields = convert_keys(dict(data), "camel_to_snake")
    fields["id"] = doc_id
    fields["created_at"] = timestamp_to_millis(fields.get("created_at"))
    fields["image_url"] = fields.get("image_url") or None
    likes = fields.get("likes")
    fields["likes"] = int(likes) if _is_finite_number(likes) else 0
    fields["user_name"] = fields.get("user_name") or ANONYMOUS_USER_NAME
    return from_dict(data_class=Review, data=fields, config=_DACITE_CONFIG)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def beverage_from_document(doc_id: str, data: Mapping[str, Any]) -> Beverage:
    fields = convert_keys(dict(data), "camel_to_snake")
    fields["id"] = doc_id
    fields["created_at"] = timestamp_to_millis(fields.get("created_at"))
    fields["updated_at"] = (
        timestamp_to_millis(fields["updated_at"])
        if fields.get("updated_at") is not None
        else fields["created_at"]
    )
    fields["alcohol_percentage"] = _optional_float(fields.get("alcohol_percentage"))
    fields["manufacturer"] = fields.get("manufacturer") or None
    fields["description"] = fields.get("description") or None
    return from_dict(data_class=Beverage, data=fields, config=_DACITE_CONFIG)
