"""
Ticket, comment and history API tests.

Verifies:
- Workers reach only the tickets assigned to them; managers and admins reach all
- Ticket mutations through HTTP produce the audit trail
- History stays readable after deletion for audit readers only
- Comment edit/delete limited to the author or ticket:update holders
"""

import pytest


def _ticket_url(ticket, suffix=""):
    return f"/api/projects/{ticket.project_id}/tickets/{ticket.id}{suffix}"


class TestAssignmentScenario:

    def test_unassigned_worker_rejected(self, client, ticket, other_worker_headers):
        resp = client.get(_ticket_url(ticket), headers=other_worker_headers)
        assert resp.status_code == 403

    def test_assigned_worker_allowed(self, client, ticket, worker_headers):
        resp = client.get(_ticket_url(ticket), headers=worker_headers)
        assert resp.status_code == 200
        assert resp.get_json()["assignee"]["username"] == "worker@example.com"

    @pytest.mark.parametrize("headers_fixture", ["admin_headers", "manager_headers"])
    def test_admin_and_manager_always_allowed(self, request, client, ticket, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        assert client.get(_ticket_url(ticket), headers=headers).status_code == 200

    def test_worker_updates_assigned_ticket(self, client, ticket, worker_headers):
        resp = client.put(_ticket_url(ticket), headers=worker_headers, json={"state": "in_progress"})
        assert resp.status_code == 200
        assert resp.get_json()["state"] == "in_progress"

    def test_worker_cannot_update_other_ticket(self, client, ticket, other_worker_headers):
        resp = client.put(_ticket_url(ticket), headers=other_worker_headers, json={"state": "done"})
        assert resp.status_code == 403

    def test_denied_update_leaves_no_history(self, client, ticket, other_worker_headers, manager_headers):
        client.put(_ticket_url(ticket), headers=other_worker_headers, json={"state": "done"})

        history = client.get(_ticket_url(ticket, "/history"), headers=manager_headers).get_json()
        assert [e["action"] for e in history] == ["CREATED"]

    def test_worker_cannot_list_project_tickets(self, client, ticket, worker_headers):
        resp = client.get(f"/api/projects/{ticket.project_id}/tickets", headers=worker_headers)
        assert resp.status_code == 403


class TestTicketCrud:

    def test_create_and_list(self, client, project, manager_headers, worker):
        resp = client.post(f"/api/projects/{project.id}/tickets", headers=manager_headers, json={
            "name": "Add dark mode",
            "type": "feature",
            "priority": "low",
            "assignee_id": worker.id,
        })
        assert resp.status_code == 201
        created = resp.get_json()
        assert created["state"] == "open"
        assert created["owner"]["username"] == "manager@example.com"

        listing = client.get(f"/api/projects/{project.id}/tickets", headers=manager_headers)
        assert [t["id"] for t in listing.get_json()] == [created["id"]]

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "bug", "priority": "low"},
            {"name": "x", "type": "epic", "priority": "low"},
            {"name": "x", "type": "bug", "priority": "urgent"},
            {"name": "x" * 161, "type": "bug", "priority": "low"},
            {"name": "x", "type": "bug", "priority": "low", "assignee_id": "7"},
        ],
    )
    def test_create_validation(self, client, project, manager_headers, payload):
        resp = client.post(f"/api/projects/{project.id}/tickets", headers=manager_headers, json=payload)
        assert resp.status_code == 400

    def test_create_unknown_assignee(self, client, project, manager_headers):
        resp = client.post(f"/api/projects/{project.id}/tickets", headers=manager_headers, json={
            "name": "x", "type": "bug", "priority": "low", "assignee_id": 999999,
        })
        assert resp.status_code == 404

    def test_create_in_unknown_project(self, client, db_session, manager_headers):
        resp = client.post("/api/projects/999999/tickets", headers=manager_headers, json={
            "name": "x", "type": "bug", "priority": "low",
        })
        assert resp.status_code == 404

    def test_worker_cannot_create(self, client, project, worker_headers):
        resp = client.post(f"/api/projects/{project.id}/tickets", headers=worker_headers, json={
            "name": "x", "type": "bug", "priority": "low",
        })
        assert resp.status_code == 403

    def test_update_records_each_changed_field(self, client, ticket, manager_headers):
        resp = client.put(_ticket_url(ticket), headers=manager_headers, json={
            "name": "Login broken",
            "description": ticket.description,
            "priority": "high",
            "state": "done",
        })
        assert resp.status_code == 200

        history = client.get(_ticket_url(ticket, "/history"), headers=manager_headers).get_json()
        assert [e["action"] for e in history] == ["CREATED", "UPDATED", "UPDATED", "UPDATED"]
        assert sorted(e["field"] for e in history[1:]) == ["name", "priority", "state"]

    def test_update_rejects_unknown_field(self, client, ticket, manager_headers):
        resp = client.put(_ticket_url(ticket), headers=manager_headers, json={"project_id": 99})
        assert resp.status_code == 400

    def test_update_rejects_bad_state(self, client, ticket, manager_headers):
        resp = client.put(_ticket_url(ticket), headers=manager_headers, json={"state": "closed"})
        assert resp.status_code == 400

    def test_ticket_in_other_project_not_found(self, client, ticket, manager_headers):
        resp = client.get(f"/api/projects/{ticket.project_id + 1000}/tickets/{ticket.id}", headers=manager_headers)
        assert resp.status_code == 404

    def test_delete(self, client, ticket, manager_headers):
        url = _ticket_url(ticket)
        assert client.delete(url, headers=manager_headers).status_code == 204
        assert client.get(url, headers=manager_headers).status_code == 404

    def test_worker_cannot_delete(self, client, ticket, worker_headers):
        assert client.delete(_ticket_url(ticket), headers=worker_headers).status_code == 403


class TestAssigneeListing:

    def test_worker_lists_own(self, client, ticket, worker, worker_headers):
        resp = client.get(f"/api/tickets/assignee/{worker.id}", headers=worker_headers)
        assert resp.status_code == 200
        assert [t["id"] for t in resp.get_json()] == [ticket.id]

    def test_worker_cannot_list_others(self, client, ticket, worker, other_worker_headers):
        resp = client.get(f"/api/tickets/assignee/{worker.id}", headers=other_worker_headers)
        assert resp.status_code == 403

    def test_manager_lists_anyone(self, client, ticket, worker, manager_headers):
        resp = client.get(f"/api/tickets/assignee/{worker.id}", headers=manager_headers)
        assert len(resp.get_json()) == 1


class TestHistoryEndpoint:

    def test_assigned_worker_reads_history(self, client, ticket, worker_headers):
        resp = client.get(_ticket_url(ticket, "/history"), headers=worker_headers)
        assert resp.status_code == 200

    def test_unassigned_worker_rejected(self, client, ticket, other_worker_headers):
        resp = client.get(_ticket_url(ticket, "/history"), headers=other_worker_headers)
        assert resp.status_code == 403

    def test_deleted_ticket_history_for_auditors(self, client, ticket, admin_headers, manager_headers):
        url = _ticket_url(ticket, "/history")
        client.delete(_ticket_url(ticket), headers=manager_headers)

        # Manager lacks system:audit_read
        assert client.get(url, headers=manager_headers).status_code == 404

        resp = client.get(url, headers=admin_headers)
        assert resp.status_code == 200
        actions = [e["action"] for e in resp.get_json()]
        assert actions == ["CREATED", "DELETED"]

    def test_unknown_ticket_history(self, client, project, admin_headers):
        resp = client.get(f"/api/projects/{project.id}/tickets/999999/history", headers=admin_headers)
        assert resp.status_code == 404


class TestComments:

    def test_assigned_worker_comments(self, client, ticket, worker_headers):
        resp = client.post(_ticket_url(ticket, "/comments"), headers=worker_headers, json={"text": "On it"})
        assert resp.status_code == 201

        listing = client.get(_ticket_url(ticket, "/comments"), headers=worker_headers)
        assert [c["text"] for c in listing.get_json()] == ["On it"]

    def test_unassigned_worker_cannot_comment(self, client, ticket, other_worker_headers):
        resp = client.post(_ticket_url(ticket, "/comments"), headers=other_worker_headers, json={"text": "Hi"})
        assert resp.status_code == 403

    def test_blank_comment_rejected(self, client, ticket, worker_headers):
        resp = client.post(_ticket_url(ticket, "/comments"), headers=worker_headers, json={"text": "   "})
        assert resp.status_code == 400

    def test_author_edits_own_comment(self, client, ticket, worker_headers):
        comment = client.post(_ticket_url(ticket, "/comments"), headers=worker_headers, json={"text": "typo"}).get_json()

        resp = client.put(_ticket_url(ticket, f"/comments/{comment['id']}"), headers=worker_headers, json={"text": "fixed"})
        assert resp.status_code == 200
        assert resp.get_json()["text"] == "fixed"
        assert resp.get_json()["updated_at"] is not None

    def test_other_user_cannot_edit(self, client, ticket, worker_headers, other_worker_headers):
        comment = client.post(_ticket_url(ticket, "/comments"), headers=worker_headers, json={"text": "mine"}).get_json()

        resp = client.put(_ticket_url(ticket, f"/comments/{comment['id']}"), headers=other_worker_headers, json={"text": "hijack"})
        assert resp.status_code == 403

    def test_manager_deletes_any_comment(self, client, ticket, worker_headers, manager_headers):
        comment = client.post(_ticket_url(ticket, "/comments"), headers=worker_headers, json={"text": "mine"}).get_json()

        resp = client.delete(_ticket_url(ticket, f"/comments/{comment['id']}"), headers=manager_headers)
        assert resp.status_code == 204
        assert client.get(_ticket_url(ticket, "/comments"), headers=manager_headers).get_json() == []

    def test_comments_do_not_touch_history(self, client, ticket, worker_headers, manager_headers):
        client.post(_ticket_url(ticket, "/comments"), headers=worker_headers, json={"text": "note"})

        history = client.get(_ticket_url(ticket, "/history"), headers=manager_headers).get_json()
        assert len(history) == 1
