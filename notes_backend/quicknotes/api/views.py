"""
View membership rules.

A note sits in exactly one primary view (active, archived or trashed) and may
additionally appear under reminders. Both the store and the client cache
derive membership from these functions.
"""

import enum
from datetime import datetime
from typing import Any, Iterable, List, Set


class View(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    TRASHED = "trashed"
    REMINDERS = "reminders"


def _get(note: Any, field: str):
    # ORM rows and plain dicts (client side) are both accepted
    if isinstance(note, dict):
        return note.get(field)
    return getattr(note, field)


def primary_view(note: Any) -> View:
    """Deletion overrides archival."""
    if _get(note, "is_deleted"):
        return View.TRASHED
    if _get(note, "is_archived"):
        return View.ARCHIVED
    return View.ACTIVE


def has_reminder(note: Any) -> bool:
    return _get(note, "reminder") is not None and not _get(note, "is_deleted")


def views_of(note: Any) -> Set[View]:
    views = {primary_view(note)}
    if has_reminder(note):
        views.add(View.REMINDERS)
    return views


def in_view(note: Any, view: View) -> bool:
    if view is View.REMINDERS:
        return has_reminder(note)
    return primary_view(note) is view


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def order_for_view(notes: Iterable[Any], view: View) -> List[Any]:
    """
    Sort notes the way the view is listed.

    Reminders come soonest first; every other view is most recently
    updated first.
    """
    if view is View.REMINDERS:
        return sorted(notes, key=lambda n: _as_datetime(_get(n, "reminder")))
    return sorted(notes, key=lambda n: _as_datetime(_get(n, "updated_at")), reverse=True)
