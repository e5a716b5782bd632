"""
Tests for the notes routes.

Covers the view endpoints, partial updates, the trash/restore/destroy
cycle and ownership checks.
"""

import pytest

from quicknotes.api.auth import create_access_token


def ids(response):
    assert response.status_code == 200, response.text
    return [n["id"] for n in response.json()]


def views_containing(client, headers, note_id):
    found = set()
    for path in ("/notes", "/notes/archived", "/notes/trash", "/notes/reminders"):
        if note_id in ids(client.get(path, headers=headers)):
            found.add(path)
    return found


class TestCreateNote:
    def test_create(self, client, alice, alice_headers):
        response = client.post(
            "/notes",
            json={"title": "Groceries", "content": "milk, eggs", "color": "#d5f9e5"},
            headers=alice_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Groceries"
        assert data["content"] == "milk, eggs"
        assert data["color"] == "#d5f9e5"
        assert data["is_archived"] is False
        assert data["is_deleted"] is False
        assert data["reminder"] is None
        assert data["user_id"] == alice.id
        assert data["created_at"] == data["updated_at"]

    def test_empty_body_is_defaulted(self, client, alice_headers):
        response = client.post("/notes", json={}, headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["title"] == "Untitled"
        assert response.json()["content"] == ""
        assert response.json()["color"] == "#ffffff"

    def test_requires_token(self, client):
        response = client.post("/notes", json={"title": "x"})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_is_rejected(self, client):
        response = client.get("/notes", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_token_for_unknown_user(self, client):
        token = create_access_token({"sub": "4242"})

        response = client.get("/notes", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_legacy_header_is_accepted(self, client, alice_headers):
        token = alice_headers["Authorization"].split(" ", 1)[1]

        response = client.post("/notes", json={"title": "x"}, headers={"x-auth-token": token})

        assert response.status_code == 200

    def test_long_title_and_free_form_color(self, client, alice_headers):
        title = "t" * 300
        color = "linear-gradient(#ffffff, #000000)"

        response = client.post("/notes", json={"title": title, "color": color}, headers=alice_headers)

        assert response.status_code == 200, response.text
        assert response.json()["title"] == title
        assert response.json()["color"] == color
        fetched = client.get(f"/notes/{response.json()['id']}", headers=alice_headers).json()
        assert (fetched["title"], fetched["color"]) == (title, color)


class TestUpdateNote:
    @pytest.fixture
    def note(self, client, alice_headers):
        return client.post("/notes", json={"title": "Draft", "content": "body"}, headers=alice_headers).json()

    def test_partial_update(self, client, alice_headers, note):
        response = client.put(f"/notes/{note['id']}", json={"content": "final"}, headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["title"] == "Draft"
        assert response.json()["content"] == "final"
        assert response.json()["updated_at"] > note["updated_at"]

    def test_archived_alias(self, client, alice_headers, note):
        response = client.put(f"/notes/{note['id']}", json={"archived": True}, headers=alice_headers)

        assert response.json()["is_archived"] is True
        assert views_containing(client, alice_headers, note["id"]) == {"/notes/archived"}

    def test_reminder_set_and_clear(self, client, alice_headers, note):
        client.put(f"/notes/{note['id']}", json={"reminder": "2030-01-01T09:00:00"}, headers=alice_headers)
        assert views_containing(client, alice_headers, note["id"]) == {"/notes", "/notes/reminders"}

        client.put(f"/notes/{note['id']}", json={"title": "Renamed"}, headers=alice_headers)
        assert views_containing(client, alice_headers, note["id"]) == {"/notes", "/notes/reminders"}

        response = client.put(f"/notes/{note['id']}", json={"reminder": None}, headers=alice_headers)
        assert response.json()["reminder"] is None
        assert views_containing(client, alice_headers, note["id"]) == {"/notes"}

    def test_not_found(self, client, alice_headers):
        response = client.put("/notes/9999", json={"title": "x"}, headers=alice_headers)

        assert response.status_code == 404
        assert response.json() == {"detail": "Note not found", "code": "NOTE_NOT_FOUND"}

    def test_other_owner(self, client, alice_headers, bob_headers, note):
        response = client.put(f"/notes/{note['id']}", json={"title": "Mine now"}, headers=bob_headers)

        assert response.status_code == 401
        assert response.json()["code"] == "NOTE_UNAUTHORIZED"
        assert client.get(f"/notes/{note['id']}", headers=alice_headers).json()["title"] == "Draft"

    def test_archive_in_trash_conflicts(self, client, alice_headers, note):
        client.delete(f"/notes/{note['id']}", headers=alice_headers)

        response = client.put(f"/notes/{note['id']}", json={"is_archived": True}, headers=alice_headers)

        assert response.status_code == 409

    def test_long_title_and_free_form_color(self, client, alice_headers, note):
        title = "Long " * 100
        color = "linear-gradient(#ffffff, #000000)"

        response = client.put(f"/notes/{note['id']}", json={"title": title, "color": color},
                              headers=alice_headers)

        assert response.status_code == 200, response.text
        assert response.json()["title"] == title
        assert response.json()["color"] == color

    def test_past_reminder_is_rejected(self, client, alice_headers, note):
        response = client.put(f"/notes/{note['id']}", json={"reminder": "2020-01-01T09:00:00"},
                              headers=alice_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "NOTE_INVALID_REMINDER"
        assert client.get(f"/notes/{note['id']}", headers=alice_headers).json()["reminder"] is None
        assert views_containing(client, alice_headers, note["id"]) == {"/notes"}

    def test_past_reminder_on_missing_note(self, client, alice_headers):
        response = client.put("/notes/9999", json={"reminder": "2020-01-01T09:00:00"}, headers=alice_headers)

        assert response.status_code == 404

    def test_archive_archived_note_again(self, client, alice_headers, note):
        first = client.put(f"/notes/{note['id']}", json={"is_archived": True}, headers=alice_headers).json()

        response = client.put(f"/notes/{note['id']}", json={"is_archived": True}, headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["is_archived"] is True
        assert response.json()["updated_at"] > first["updated_at"]
        assert views_containing(client, alice_headers, note["id"]) == {"/notes/archived"}

    def test_unarchive_active_note(self, client, alice_headers, note):
        response = client.put(f"/notes/{note['id']}", json={"is_archived": False}, headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["is_archived"] is False
        assert views_containing(client, alice_headers, note["id"]) == {"/notes"}


class TestTrashRestoreDestroy:
    def test_trash_ack_carries_note(self, client, alice_headers):
        note = client.post("/notes", json={"title": "x"}, headers=alice_headers).json()

        response = client.delete(f"/notes/{note['id']}", headers=alice_headers)

        assert response.status_code == 200
        assert response.json()["msg"] == "Note moved to trash"
        assert response.json()["note"]["is_deleted"] is True

    def test_trash_twice_succeeds(self, client, alice_headers):
        note = client.post("/notes", json={}, headers=alice_headers).json()
        client.delete(f"/notes/{note['id']}", headers=alice_headers)

        assert client.delete(f"/notes/{note['id']}", headers=alice_headers).status_code == 200

    def test_destroy_requires_trash(self, client, alice_headers):
        note = client.post("/notes", json={}, headers=alice_headers).json()

        response = client.delete(f"/notes/permanent/{note['id']}", headers=alice_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "NOTE_INVALID_TRANSITION"
        assert ids(client.get("/notes", headers=alice_headers)) == [note["id"]]

    def test_restore_of_active_note_conflicts(self, client, alice_headers):
        note = client.post("/notes", json={}, headers=alice_headers).json()

        assert client.put(f"/notes/restore/{note['id']}", headers=alice_headers).status_code == 409

    @pytest.mark.parametrize(
        "method, path",
        [
            ("delete", "/notes/{id}"),
            ("delete", "/notes/permanent/{id}"),
            ("put", "/notes/restore/{id}"),
            ("get", "/notes/{id}"),
        ],
    )
    def test_other_owner(self, client, alice_headers, bob_headers, method, path):
        note = client.post("/notes", json={}, headers=alice_headers).json()
        client.delete(f"/notes/{note['id']}", headers=alice_headers)

        response = client.request(method, path.format(id=note["id"]), headers=bob_headers)

        assert response.status_code == 401
        assert ids(client.get("/notes/trash", headers=alice_headers)) == [note["id"]]

    @pytest.mark.parametrize(
        "method, path",
        [("delete", "/notes/777"), ("delete", "/notes/permanent/777"), ("put", "/notes/restore/777")],
    )
    def test_not_found(self, client, alice_headers, method, path):
        assert client.request(method, path, headers=alice_headers).status_code == 404


class TestViews:
    def test_lists_are_scoped_to_caller(self, client, alice_headers, bob_headers):
        client.post("/notes", json={"title": "alice's"}, headers=alice_headers)

        assert ids(client.get("/notes", headers=bob_headers)) == []

    def test_empty_views(self, client, alice_headers):
        for path in ("/notes", "/notes/archived", "/notes/trash", "/notes/reminders"):
            assert ids(client.get(path, headers=alice_headers)) == []

    def test_reminders_soonest_first(self, client, alice_headers):
        later = client.post("/notes", json={"title": "later"}, headers=alice_headers).json()
        sooner = client.post("/notes", json={"title": "sooner"}, headers=alice_headers).json()
        client.put(f"/notes/{later['id']}", json={"reminder": "2030-06-01T09:00:00Z"}, headers=alice_headers)
        client.put(f"/notes/{sooner['id']}", json={"reminder": "2030-05-01T09:00:00Z"}, headers=alice_headers)

        assert ids(client.get("/notes/reminders", headers=alice_headers)) == [sooner["id"], later["id"]]


class TestScenarios:
    def test_groceries_lifecycle(self, client, alice_headers):
        note = client.post(
            "/notes", json={"title": "Groceries", "content": "milk, eggs"}, headers=alice_headers
        ).json()
        note_id = note["id"]
        assert views_containing(client, alice_headers, note_id) == {"/notes"}

        archived = client.put(f"/notes/{note_id}", json={"is_archived": True}, headers=alice_headers).json()
        assert views_containing(client, alice_headers, note_id) == {"/notes/archived"}

        trashed = client.delete(f"/notes/{note_id}", headers=alice_headers).json()["note"]
        assert trashed["is_archived"] is True
        assert trashed["updated_at"] > archived["updated_at"]
        assert views_containing(client, alice_headers, note_id) == {"/notes/trash"}

        restored = client.put(f"/notes/restore/{note_id}", headers=alice_headers).json()
        assert restored["updated_at"] > trashed["updated_at"]
        assert views_containing(client, alice_headers, note_id) == {"/notes/archived"}

        client.delete(f"/notes/{note_id}", headers=alice_headers)
        response = client.delete(f"/notes/permanent/{note_id}", headers=alice_headers)
        assert response.json() == {"msg": "Note permanently deleted", "id": note_id}
        assert views_containing(client, alice_headers, note_id) == set()
        assert client.get(f"/notes/{note_id}", headers=alice_headers).status_code == 404
        assert client.put(f"/notes/{note_id}", json={"title": "x"}, headers=alice_headers).status_code == 404

    def test_reminder_on_active_note(self, client, alice_headers):
        note_id = client.post("/notes", json={"title": "Dentist"}, headers=alice_headers).json()["id"]

        client.put(f"/notes/{note_id}", json={"reminder": "2030-03-03T08:30:00"}, headers=alice_headers)
        assert views_containing(client, alice_headers, note_id) == {"/notes", "/notes/reminders"}

        client.put(f"/notes/{note_id}", json={"reminder": None}, headers=alice_headers)
        assert views_containing(client, alice_headers, note_id) == {"/notes"}
