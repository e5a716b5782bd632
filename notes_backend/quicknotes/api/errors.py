"""
Domain exceptions for the note lifecycle.

Each carries the HTTP status it maps to, so the API layer can translate
any of them with one handler.
"""

from fastapi import status


class NoteError(Exception):
    """Base class for note lifecycle errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "NOTE_ERROR"
    default_message = "Note operation failed"

    def __init__(self, message: str | None = None, note_id: int | None = None) -> None:
        self.message = message or self.default_message
        self.note_id = note_id
        super().__init__(self.message)


class NoteNotFound(NoteError):
    """No note with the requested id exists."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOTE_NOT_FOUND"
    default_message = "Note not found"


class NoteUnauthorized(NoteError):
    """The note exists but belongs to another owner."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "NOTE_UNAUTHORIZED"
    default_message = "User not authorized"


class InvalidTransition(NoteError):
    """The requested intent is not allowed from the note's current view."""

    status_code = status.HTTP_409_CONFLICT
    code = "NOTE_INVALID_TRANSITION"
    default_message = "Transition not allowed"


class InvalidReminder(NoteError):
    """A reminder was set to a time that has already passed."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "NOTE_INVALID_REMINDER"
    default_message = "Reminder must not be in the past"
