"""
Note Store.

Owner-scoped persistence of notes, partitioned by lifecycle view. The
abstract NoteStore is what the lifecycle controller talks to; SQLNoteStore
backs it with any SQLAlchemy engine.
"""

import abc
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from quicknotes.api.errors import NoteNotFound, NoteUnauthorized
from quicknotes.api.log import get_logger
from quicknotes.api.models import DEFAULT_COLOR, DEFAULT_TITLE, Note, utcnow
from quicknotes.api.views import View

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("title", "content", "color", "is_archived", "reminder")

# Called with the freshly loaded row inside the mutating transaction; raising
# aborts the call before anything is written.
Guard = Callable[[Note], None]


def normalize_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        return DEFAULT_TITLE
    return title


def normalize_color(color: Optional[str]) -> str:
    return color or DEFAULT_COLOR


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Reminders are stored as naive UTC like every other timestamp."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class NoteStore(abc.ABC):
    """
    Storage interface for notes.

    Every mutating call is atomic with respect to other calls on the same id.
    Ownership is checked before anything else: an unknown id raises NoteNotFound,
    a note owned by someone else raises NoteUnauthorized. Then the optional guard
    runs on the row, in the same transaction as the write it protects.
    """

    @abc.abstractmethod
    def list(self, owner: int, view: View) -> List[Note]:
        """Notes of owner in view; reminders soonest first, others newest update first."""

    @abc.abstractmethod
    def get(self, owner: int, note_id: int) -> Note:
        ...

    @abc.abstractmethod
    def create(self, owner: int, title: Optional[str] = None, content: Optional[str] = None,
               color: Optional[str] = None) -> Note:
        ...

    @abc.abstractmethod
    def update(self, owner: int, note_id: int, fields: Mapping[str, Any],
               guard: Optional[Guard] = None) -> Note:
        """
        Apply only the keys present in fields.

        An explicit None reminder clears it; None title/content/color fall back
        to their defaults; None is_archived leaves the flag alone.
        """

    @abc.abstractmethod
    def trash(self, owner: int, note_id: int, guard: Optional[Guard] = None) -> Note:
        """Soft delete. The archived flag is kept so restore can bring it back."""

    @abc.abstractmethod
    def restore(self, owner: int, note_id: int, guard: Optional[Guard] = None) -> Note:
        ...

    @abc.abstractmethod
    def destroy(self, owner: int, note_id: int, guard: Optional[Guard] = None) -> None:
        """Remove permanently. Only the guard, if any, decides whether the note may go."""


def touch(note: Note) -> None:
    """Refresh updated_at, keeping it strictly increasing for the note."""
    now = utcnow()
    if note.updated_at is not None and now <= note.updated_at:
        now = note.updated_at + timedelta(microseconds=1)
    note.updated_at = now


class SQLNoteStore(NoteStore):
    """NoteStore on a SQLAlchemy session; one transaction per mutating call."""

    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _load(self, owner: int, note_id: int, for_update: bool = False,
              guard: Optional[Guard] = None) -> Note:
        stmt = select(Note).where(Note.id == note_id)
        if for_update:
            # row lock on engines that support it, ignored by SQLite; the row is
            # always re-read so the guard never sees a copy cached by the session
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        note = self.db.execute(stmt).scalar_one_or_none()
        if note is None:
            raise NoteNotFound(note_id=note_id)
        if note.user_id != owner:
            logger.warning("note access denied", note_id=note_id, owner=owner)
            raise NoteUnauthorized(note_id=note_id)
        if guard is not None:
            guard(note)
        return note

    def list(self, owner: int, view: View) -> List[Note]:
        stmt = select(Note).where(Note.user_id == owner)
        if view is View.ACTIVE:
            stmt = stmt.where(Note.is_deleted.is_(False), Note.is_archived.is_(False))
        elif view is View.ARCHIVED:
            stmt = stmt.where(Note.is_deleted.is_(False), Note.is_archived.is_(True))
        elif view is View.TRASHED:
            stmt = stmt.where(Note.is_deleted.is_(True))
        elif view is View.REMINDERS:
            stmt = stmt.where(Note.is_deleted.is_(False), Note.reminder.is_not(None))
        else:
            raise ValueError(f"unknown view: {view!r}")

        if view is View.REMINDERS:
            stmt = stmt.order_by(Note.reminder.asc(), Note.id.asc())
        else:
            stmt = stmt.order_by(Note.updated_at.desc(), Note.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def get(self, owner: int, note_id: int) -> Note:
        return self._load(owner, note_id)

    def create(self, owner: int, title: Optional[str] = None, content: Optional[str] = None,
               color: Optional[str] = None) -> Note:
        now = utcnow()
        note = Note(
            user_id=owner,
            title=normalize_title(title),
            content=content or "",
            color=normalize_color(color),
            is_archived=False,
            is_deleted=False,
            reminder=None,
            created_at=now,
            updated_at=now,
        )
        with self._transaction():
            self.db.add(note)
        self.db.refresh(note)
        return note

    def update(self, owner: int, note_id: int, fields: Mapping[str, Any],
               guard: Optional[Guard] = None) -> Note:
        with self._transaction():
            note = self._load(owner, note_id, for_update=True, guard=guard)
            for key in UPDATABLE_FIELDS:
                if key not in fields:
                    continue
                value = fields[key]
                if key == "title":
                    note.title = normalize_title(value)
                elif key == "content":
                    note.content = value or ""
                elif key == "color":
                    note.color = normalize_color(value)
                elif key == "is_archived":
                    if value is not None:
                        note.is_archived = bool(value)
                elif key == "reminder":
                    note.reminder = to_naive_utc(value)
            touch(note)
        self.db.refresh(note)
        return note

    def trash(self, owner: int, note_id: int, guard: Optional[Guard] = None) -> Note:
        with self._transaction():
            note = self._load(owner, note_id, for_update=True, guard=guard)
            if not note.is_deleted:
                note.is_deleted = True
                touch(note)
        self.db.refresh(note)
        return note

    def restore(self, owner: int, note_id: int, guard: Optional[Guard] = None) -> Note:
        with self._transaction():
            note = self._load(owner, note_id, for_update=True, guard=guard)
            note.is_deleted = False
            touch(note)
        self.db.refresh(note)
        return note

    def destroy(self, owner: int, note_id: int, guard: Optional[Guard] = None) -> None:
        with self._transaction():
            note = self._load(owner, note_id, for_update=True, guard=guard)
            self.db.delete(note)
