"""Conversion between storage rows and typed records.

Rows may be ORM instances or plain mappings keyed either by attribute
name (``native_id``) or by column name (``nativeID``).
"""

from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel

from .schemas import ContactOut, ContactWithNoteCount, NoteOut


CONTACT_COLUMNS = {
    "id": "id",
    "native_id": "nativeID",
    "first_name": "firstName",
    "last_name": "lastName",
    "category": "category",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

NOTE_COLUMNS = {
    "id": "id",
    "user_id": "userId",
    "category": "category",
    "content": "content",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def utc_now_iso() -> str:
    """Current UTC time as a sortable ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def advance_timestamp(previous: str | None) -> str:
    """
    Timestamp for a mutation of a row last stamped at ``previous``.

    Never returns a value earlier than ``previous``, even if the clock
    has stepped back.
    """
    now = utc_now_iso()
    if previous and previous > now:
        return previous
    return now


def coerce_count(value: Any) -> int:
    """
    Normalize an aggregate count to a non-negative integer.

    SQLite may hand back the count as text, and an absent aggregate comes
    back as ``None``; both unparseable values and ``None`` map to ``0``.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.strip()
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def _read(row: Any, attr: str, column: str) -> Any:
    if isinstance(row, Mapping):
        return row[attr] if attr in row else row[column]
    if hasattr(row, attr):
        return getattr(row, attr)
    return getattr(row, column)


def _fields(row: Any, columns: Mapping[str, str]) -> dict:
    return {attr: _read(row, attr, column) for attr, column in columns.items()}


def contact_fields(row: Any) -> dict:
    """Attribute-name dict of a contact row."""
    return _fields(row, CONTACT_COLUMNS)


def note_fields(row: Any) -> dict:
    """Attribute-name dict of a note row."""
    return _fields(row, NOTE_COLUMNS)


def to_contact(row: Any) -> ContactOut:
    return ContactOut(**contact_fields(row))


def to_contact_with_count(row: Any, note_count: Any) -> ContactWithNoteCount:
    return ContactWithNoteCount(
        **contact_fields(row), note_count=coerce_count(note_count)
    )


def to_note(row: Any) -> NoteOut:
    return NoteOut(**note_fields(row))


def merge_patch(current: Mapping[str, Any], patch: BaseModel) -> dict:
    """
    Overlay the fields explicitly set on ``patch`` onto ``current``.

    Fields left out of the patch, or set to ``None``, keep their current
    value. ``current`` is not modified.

    Args:
        current (Mapping): Attribute-name values of the stored row.
        patch (BaseModel): ``ContactUpdate`` or ``NoteUpdate``.

    Returns:
        dict: Merged values.
    """
    merged = dict(current)
    for name in patch.model_fields_set:
        value = getattr(patch, name)
        if value is not None:
            merged[name] = value
    return merged
