"""Declarative mapping of loosely-shaped backend payloads onto canonical records.

Each entity is described by a tuple of :class:`FieldRule`. A rule names the
canonical field, the backend field names to try in order, the form attribute
to fall back to when a submitted form is available, and a final default.
Supporting a new backend revision means adding a source name, not a branch.
A coercer raises ValueError for a value it cannot use, and the next candidate
is tried instead.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterator

from petrecords.core.logging import get_logger

NOT_SPECIFIED = "Not specified"

log = get_logger("normalization")

_MISSING = object()


@dataclass(frozen=True)
class FieldRule:
    field: str
    sources: tuple[str, ...]
    default: Any = ""
    form_field: str | None = None
    coerce: Callable[[Any], Any] | None = None

    def resolve_default(self) -> Any:
        return self.default() if callable(self.default) else self.default


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def first_present(raw: dict[str, Any], sources: tuple[str, ...]) -> Any:
    for source in sources:
        value = raw.get(source)
        if not is_missing(value):
            return value
    return None


def _candidates(
    raw: dict[str, Any], rule: FieldRule, fallback: dict[str, Any] | None
) -> Iterator[tuple[str, Any]]:
    for source in rule.sources:
        value = raw.get(source)
        if not is_missing(value):
            yield source, value
    if fallback is not None:
        name = rule.form_field or rule.sources[0]
        value = fallback.get(name)
        if not is_missing(value):
            yield f"form.{name}", value


def normalize_record(
    raw: dict[str, Any],
    rules: tuple[FieldRule, ...],
    fallback: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a canonical record dict from ``raw``.

    Precedence per field: backend sources in order, then ``fallback`` (the
    submitted form, keyed by wire name), then the rule's default. A value the
    rule's coercer rejects is logged and skipped.
    """
    record: dict[str, Any] = {}
    for rule in rules:
        value = _MISSING
        for origin, candidate in _candidates(raw, rule, fallback):
            if rule.coerce is None:
                value = candidate
                break
            try:
                value = rule.coerce(candidate)
                break
            except (TypeError, ValueError):
                log.warning("field_value_rejected", field=rule.field, source=origin, value=candidate)
        record[rule.field] = rule.resolve_default() if value is _MISSING else value
    return record


def record_id(raw: dict[str, Any]) -> str | None:
    value = first_present(raw, ("id", "_id", "recordId"))
    return None if value is None else str(value)


def local_id() -> str:
    return f"local-{uuid.uuid4().hex}"


def today_iso() -> str:
    return date.today().isoformat()


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def as_float(value: Any) -> float:
    return float(value)


_WEIGHT_UNITS = {
    "kg": "kg",
    "kgs": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "lb": "lb",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
}


def as_weight_unit(value: Any) -> str:
    unit = str(value).strip().lower()
    if unit not in _WEIGHT_UNITS:
        raise ValueError(f"unknown weight unit: {value!r}")
    return _WEIGHT_UNITS[unit]


def as_date_text(value: Any) -> str:
    # Backends send either a bare date or a full ISO timestamp.
    text = as_text(value)
    return text[:10] if len(text) > 10 and text[10] == "T" else text
