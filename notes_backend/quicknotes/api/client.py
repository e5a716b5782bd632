"""
HTTP client for the notes API.

Keeps a NoteCache in step with the server: the cache is touched only after a
call succeeds, and then only with the note the server sent back. A failed call
leaves the cache as it was, records a generic message in `error`, logs the
failure and re-raises.

Usage:
    client = NotesClient("http://localhost:8000")
    client.login("demo@example.com", "password123")
    client.refresh()
    note = client.create(title="Groceries", content="milk, eggs")
    client.archive(note["id"])
    client.cache.archived
"""

from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from quicknotes.api.cache import NoteCache, NoteData
from quicknotes.api.log import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class NotesClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Args:
            base_url: API root; ignored when an http client is passed in.
            token: bearer token, as returned by login.
            http: preconfigured httpx client (e.g. a FastAPI TestClient).
            timeout: request timeout in seconds.
        """
        self.token = token
        self.http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        self.cache = NoteCache()
        self.error: Optional[str] = None

    def close(self) -> None:
        self.http.close()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _call(self, action: str, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self.http.request(method, path, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            status_code = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
            logger.error("notes api call failed", action=action, method=method, path=path,
                         status=status_code, error=str(exc))
            self.error = f"Failed to {action}"
            raise
        self.error = None
        return response.json()

    # -------- session --------

    def login(self, email: str, password: str) -> str:
        body = self._call("log in", "POST", "/auth/login",
                          data={"username": email, "password": password})
        self.token = body["access_token"]
        return self.token

    def logout(self) -> None:
        self.token = None
        self.cache.load(())

    # -------- reads --------

    def refresh(self) -> NoteCache:
        """
        Reload every note. Active, archived and trashed together cover all of
        the user's notes; the reminders view is derived from them.
        """
        notes = []
        notes += self._call("fetch notes", "GET", "/notes")
        notes += self._call("fetch archived notes", "GET", "/notes/archived")
        notes += self._call("fetch trashed notes", "GET", "/notes/trash")
        self.cache.load(notes)
        return self.cache

    # -------- mutations --------

    def _mutate(self, action: str, method: str, path: str, **kwargs: Any) -> NoteData:
        note = self._call(action, method, path, **kwargs)
        self.cache.reconcile(note)
        return note

    def create(self, title: str = "", content: str = "", color: Optional[str] = None) -> NoteData:
        body = {"title": title, "content": content}
        if color is not None:
            body["color"] = color
        return self._mutate("create note", "POST", "/notes", json=body)

    def edit(self, note_id: int, **fields: Optional[str]) -> NoteData:
        body = {k: v for k, v in fields.items() if k in ("title", "content", "color")}
        return self._mutate("update note", "PUT", f"/notes/{note_id}", json=body)

    def archive(self, note_id: int) -> NoteData:
        return self._mutate("archive note", "PUT", f"/notes/{note_id}", json={"is_archived": True})

    def unarchive(self, note_id: int) -> NoteData:
        return self._mutate("unarchive note", "PUT", f"/notes/{note_id}", json={"is_archived": False})

    def set_reminder(self, note_id: int, when: Optional[datetime]) -> NoteData:
        reminder = when.isoformat() if when is not None else None
        return self._mutate("set reminder", "PUT", f"/notes/{note_id}", json={"reminder": reminder})

    def clear_reminder(self, note_id: int) -> NoteData:
        return self.set_reminder(note_id, None)

    def trash(self, note_id: int) -> NoteData:
        body = self._call("trash note", "DELETE", f"/notes/{note_id}")
        self.cache.reconcile(body["note"])
        return body["note"]

    def restore(self, note_id: int) -> NoteData:
        return self._mutate("restore note", "PUT", f"/notes/restore/{note_id}")

    def delete_forever(self, note_id: int) -> None:
        self._call("delete note permanently", "DELETE", f"/notes/permanent/{note_id}")
        self.cache.discard(note_id)
