"""
Lifecycle Controller.

Turns user intents into store calls and guards the one hard rule of the
state machine: the trash is the only way in and out of destruction.

    active  <-> archived        (archive / unarchive)
    active | archived -> trashed (trash, archived flag preserved)
    trashed -> active | archived (restore, back to the preserved flag)
    trashed -> gone              (delete_forever)

Reminders are orthogonal: a note shows under reminders while it has one and
is not in the trash.

Preconditions are handed to the store as guards, so they are checked on the
row the store has just loaded for writing, not on an earlier read.
"""

from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional

from quicknotes.api.errors import InvalidReminder, InvalidTransition
from quicknotes.api.log import get_logger
from quicknotes.api.models import Note, utcnow
from quicknotes.api.store import Guard, NoteStore, to_naive_utc
from quicknotes.api.views import View, primary_view

logger = get_logger(__name__)

# Clock skew allowed between a client asking for "now" and the server storing it
REMINDER_GRACE = timedelta(minutes=1)


def require_view(view: View, intent: str) -> Guard:
    """Guard refusing the intent unless the note currently sits in view."""

    def guard(note: Note) -> None:
        current = primary_view(note)
        if current is not view:
            logger.warning("transition rejected", intent=intent, note_id=note.id, view=current.value)
            raise InvalidTransition(f"Cannot {intent.replace('_', ' ')} a note that is {current.value}",
                                    note_id=note.id)

    return guard


def require_not_trashed(intent: str) -> Guard:
    """Guard refusing the intent for a note in the trash."""

    def guard(note: Note) -> None:
        if note.is_deleted:
            logger.warning("transition rejected", intent=intent, note_id=note.id, view=View.TRASHED.value)
            raise InvalidTransition(f"Cannot {intent} a note that is in the trash", note_id=note.id)

    return guard


def require_upcoming_reminder(when: Optional[datetime]) -> Guard:
    """Guard refusing a reminder older than REMINDER_GRACE. None always passes."""

    def guard(note: Note) -> None:
        if when is not None and to_naive_utc(when) < utcnow() - REMINDER_GRACE:
            logger.warning("reminder rejected", note_id=note.id, reminder=when.isoformat())
            raise InvalidReminder(note_id=note.id)

    return guard


def all_of(*guards: Optional[Guard]) -> Optional[Guard]:
    """Combine guards into one that runs each in turn."""
    active = [g for g in guards if g is not None]
    if not active:
        return None

    def guard(note: Note) -> None:
        for check in active:
            check(note)

    return guard


class LifecycleController:
    def __init__(self, store: NoteStore) -> None:
        self.store = store

    # -------- queries --------

    def list(self, owner: int, view: View) -> List[Note]:
        return self.store.list(owner, view)

    def get(self, owner: int, note_id: int) -> Note:
        return self.store.get(owner, note_id)

    # -------- intents --------

    def create(self, owner: int, title: Optional[str] = None, content: Optional[str] = None,
               color: Optional[str] = None) -> Note:
        note = self.store.create(owner, title=title, content=content, color=color)
        logger.info("note created", note_id=note.id, owner=owner)
        return note

    def edit(self, owner: int, note_id: int, **fields: Optional[str]) -> Note:
        """Change title, content or color; the note keeps its view."""
        changes = {k: v for k, v in fields.items() if k in ("title", "content", "color")}
        return self.store.update(owner, note_id, changes)

    def archive(self, owner: int, note_id: int) -> Note:
        """Archiving an archived note is accepted and only refreshes updated_at."""
        return self._transition(owner, note_id, "archive", {"is_archived": True},
                                require_not_trashed("archive"))

    def unarchive(self, owner: int, note_id: int) -> Note:
        return self._transition(owner, note_id, "unarchive", {"is_archived": False},
                                require_not_trashed("unarchive"))

    def trash(self, owner: int, note_id: int) -> Note:
        note = self.store.trash(owner, note_id)
        logger.info("note trashed", note_id=note_id, owner=owner, archived=note.is_archived)
        return note

    def restore(self, owner: int, note_id: int) -> Note:
        note = self.store.restore(owner, note_id, guard=require_view(View.TRASHED, "restore"))
        logger.info("note restored", note_id=note_id, owner=owner, view=primary_view(note).value)
        return note

    def delete_forever(self, owner: int, note_id: int) -> None:
        self.store.destroy(owner, note_id, guard=require_view(View.TRASHED, "delete_forever"))
        logger.info("note destroyed", note_id=note_id, owner=owner)

    def set_reminder(self, owner: int, note_id: int, when: Optional[datetime]) -> Note:
        return self._transition(owner, note_id, "set_reminder", {"reminder": when},
                                require_upcoming_reminder(when))

    def clear_reminder(self, owner: int, note_id: int) -> Note:
        return self._transition(owner, note_id, "clear_reminder", {"reminder": None})

    def apply(self, owner: int, note_id: int, fields: Mapping[str, Any]) -> Note:
        """
        Generic partial update, as sent by PUT /notes/{id}.

        Touching the archived flag of a trashed note is refused, the same way
        the archive and unarchive intents are. A reminder further in the past
        than REMINDER_GRACE is refused like in set_reminder.
        """
        archived = fields.get("is_archived")
        guard = all_of(
            require_not_trashed("archive" if archived else "unarchive") if archived is not None else None,
            require_upcoming_reminder(fields.get("reminder")),
        )
        return self.store.update(owner, note_id, fields, guard=guard)

    def _transition(self, owner: int, note_id: int, intent: str, changes: Mapping[str, Any],
                    guard: Optional[Guard] = None) -> Note:
        note = self.store.update(owner, note_id, changes, guard=guard)
        logger.info("note transition", intent=intent, note_id=note_id, owner=owner,
                    view=primary_view(note).value)
        return note
