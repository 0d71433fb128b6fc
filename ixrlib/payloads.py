"""
Payload builders for the collect, services and storage endpoints.

Pure functions shared by the sync and async clients. Each collection
payload wraps a single timestamped entry as ``{"data": [entry]}``.
"""

from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


DEFAULT_ENTRY_NAME = "state"


class ResultOptions(IntEnum):
    """Outcome attached to assessment and objective completion events."""
    NULL = 0
    PASS = 1
    FAIL = 2
    COMPLETE = 3
    INCOMPLETE = 4

    @property
    def wire_name(self) -> str:
        return self.name.capitalize()


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_meta_string(meta_string: str) -> Dict[str, str]:
    """Parse ``"key=value,key2=value2"``; pairs without both parts are skipped."""
    meta: Dict[str, str] = {}
    if not meta_string:
        return meta
    for pair in meta_string.split(","):
        key, _, value = pair.partition("=")
        key, value = key.strip(), value.strip()
        if key and value:
            meta[key] = value
    return meta


def _collection(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {"data": [entry]}


def event_payload(
    name: str,
    meta: Union[str, Mapping[str, Any], None] = None,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    if isinstance(meta, str):
        meta = parse_meta_string(meta)
    return _collection({
        "timestamp": timestamp or utc_timestamp(),
        "name": name,
        "meta": dict(meta or {}),
    })


def log_payload(level: str, text: str, timestamp: Optional[str] = None) -> Dict[str, Any]:
    return _collection({
        "timestamp": timestamp or utc_timestamp(),
        "logLevel": level,
        "text": text,
    })


def telemetry_payload(
    name: str,
    data: Mapping[str, Any],
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    return _collection({
        "timestamp": timestamp or utc_timestamp(),
        "name": name,
        "data": dict(data),
    })


def _format_score(score: float) -> str:
    """Whole-number floats drop the fractional part: 90.0 -> "90"."""
    if isinstance(score, float) and score.is_integer():
        return str(int(score))
    return str(score)


def milestone_event(
    kind: str,
    phase: str,
    name: str,
    score: Optional[float] = None,
    result: Optional[ResultOptions] = None,
    meta: Optional[Mapping[str, str]] = None,
) -> Tuple[str, Dict[str, str]]:
    """Name and meta for a lifecycle event, e.g. ``level_complete_<name>``."""
    merged = dict(meta or {})
    if score is not None:
        merged["score"] = _format_score(score)
    if result is not None:
        merged["result"] = ResultOptions(result).wire_name
    return f"{kind}_{phase}_{name}", merged


def prompt_payload(
    prompt: str,
    llm_provider: Optional[str] = None,
    past_messages: Optional[List[Mapping[str, str]]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"prompt": prompt}
    if llm_provider is not None:
        payload["llmProvider"] = llm_provider
    if past_messages is not None:
        payload["pastMessages"] = [
            {"role": m["role"], "content": m["content"]} for m in past_messages
        ]
    return payload


def storage_payload(
    name: str,
    data: Mapping[str, Any],
    keep_policy: Optional[str] = None,
    origin: Optional[str] = None,
    session_data: Optional[bool] = None,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": timestamp or utc_timestamp(),
        "name": name,
        "data": [dict(data)],
    }
    if keep_policy is not None:
        entry["keepPolicy"] = keep_policy
    if origin is not None:
        entry["origin"] = origin
    if session_data is not None:
        entry["sessionData"] = session_data
    return _collection(entry)


def query_params(**filters: Any) -> Dict[str, Any]:
    """Storage query filters in wire form; None values are dropped."""
    wire = {
        "name": "name",
        "origin": "origin",
        "tags_any": "tagsAny",
        "tags_all": "tagsAll",
        "user_only": "userOnly",
        "session_only": "sessionOnly",
    }
    params: Dict[str, Any] = {}
    for key, value in filters.items():
        if value is None:
            continue
        if key not in wire:
            raise TypeError(f"Unknown storage filter: {key}")
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[wire[key]] = value
    return params


def first_entry_data(storage_response: Any) -> Dict[str, Any]:
    """Extract the first stored data object from a storage GET response body."""
    entries = storage_response.get("data") if isinstance(storage_response, dict) else None
    if not entries:
        return {}
    data = entries[0].get("data") or [{}]
    return data[0]


def entries_by_name(storage_response: Any) -> Dict[str, Dict[str, Any]]:
    """Map entry name to its first data object."""
    entries = storage_response.get("data") if isinstance(storage_response, dict) else None
    result: Dict[str, Dict[str, Any]] = {}
    for entry in entries or []:
        data = entry.get("data") or [{}]
        result[entry.get("name", "")] = data[0]
    return result
