"""
Client-side note cache.

One mapping from note id to the last note the server returned; the four views
are computed from it on demand, so a note can never be listed in two primary
views at once or linger in a view it has left.
"""

from typing import Any, Dict, Iterable, List, Optional

from quicknotes.api.views import View, in_view, order_for_view

NoteData = Dict[str, Any]


class NoteCache:
    def __init__(self, notes: Iterable[NoteData] = ()) -> None:
        self._notes: Dict[int, NoteData] = {}
        self.load(notes)

    def load(self, notes: Iterable[NoteData]) -> None:
        """Replace the cache with a full server listing."""
        self._notes = {note["id"]: note for note in notes}

    def reconcile(self, note: NoteData) -> None:
        """
        Take the server's authoritative copy of a mutated note.

        Whatever entry the id had before is dropped first; a stale or missing
        entry is not an error.
        """
        self._notes.pop(note["id"], None)
        self._notes[note["id"]] = note

    def discard(self, note_id: int) -> None:
        """Forget a destroyed note. Unknown ids are ignored."""
        self._notes.pop(note_id, None)

    def get(self, note_id: int) -> Optional[NoteData]:
        return self._notes.get(note_id)

    def view(self, view: View) -> List[NoteData]:
        return order_for_view((n for n in self._notes.values() if in_view(n, view)), view)

    @property
    def active(self) -> List[NoteData]:
        return self.view(View.ACTIVE)

    @property
    def archived(self) -> List[NoteData]:
        return self.view(View.ARCHIVED)

    @property
    def trashed(self) -> List[NoteData]:
        return self.view(View.TRASHED)

    @property
    def reminders(self) -> List[NoteData]:
        return self.view(View.REMINDERS)

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._notes

    def __len__(self) -> int:
        return len(self._notes)
