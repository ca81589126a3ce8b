"""Task status rules, kanban moves, dependencies, comments and contact tags."""
import pytest

API = "/api/v1"


@pytest.fixture
def project(owner, create_project):
    return create_project(owner)


def _patch(client, account, task_id, force=False, **fields):
    url = f"{API}/tasks/{task_id}" + ("?force=true" if force else "")
    return client.patch(url, headers=account.headers, json=fields)


def _depend(client, account, task_id, on_task_id, **fields):
    return client.post(
        f"{API}/tasks/{task_id}/dependencies", headers=account.headers,
        json={"depends_on_task_id": on_task_id, **fields},
    )


class TestStatusRules:
    def test_completing_stamps_completed_at(self, client, owner, project, create_task):
        task = create_task(owner, project["id"], progress=30)
        done = _patch(client, owner, task["id"], status="completed", progress=50).json()
        assert done["status"] == "completed"
        assert done["progress"] == 100
        assert done["completed_at"] is not None

        reopened = _patch(client, owner, task["id"], status="in_progress").json()
        assert reopened["completed_at"] is None

    def test_create_as_completed(self, owner, project, create_task):
        task = create_task(owner, project["id"], status="completed")
        assert task["completed_at"] is not None
        assert task["progress"] == 100

    def test_null_for_required_field_is_rejected(self, client, owner, project, create_task):
        task = create_task(owner, project["id"], description="Rebar inspection")
        for field in ("title", "progress", "tags"):
            assert _patch(client, owner, task["id"], **{field: None}).status_code == 422

        cleared = _patch(client, owner, task["id"], description=None)
        assert cleared.status_code == 200
        assert cleared.json()["description"] is None
        assert cleared.json()["title"] == task["title"]

    def test_unfinished_predecessor_blocks_start(self, client, owner, project, create_task):
        pour = create_task(owner, project["id"], "Pour foundation")
        frame = create_task(owner, project["id"], "Frame walls")
        assert _depend(client, owner, frame["id"], pour["id"]).status_code == 201

        blocked = _patch(client, owner, frame["id"], status="in_progress")
        assert blocked.status_code == 409
        assert "Pour foundation" in blocked.json()["detail"]

        forced = _patch(client, owner, frame["id"], force=True, status="in_progress")
        assert forced.status_code == 200

    def test_finished_predecessor_allows_start(self, client, owner, project, create_task):
        pour = create_task(owner, project["id"], "Pour foundation")
        frame = create_task(owner, project["id"], "Frame walls")
        _depend(client, owner, frame["id"], pour["id"])
        _patch(client, owner, pour["id"], status="completed")

        assert _patch(client, owner, frame["id"], status="in_progress").status_code == 200

    def test_start_to_start_does_not_block(self, client, owner, project, create_task):
        pour = create_task(owner, project["id"], "Pour foundation")
        cure = create_task(owner, project["id"], "Cure monitoring")
        _depend(client, owner, cure["id"], pour["id"], dependency_type="start_to_start")

        assert _patch(client, owner, cure["id"], status="in_progress").status_code == 200


class TestKanban:
    def test_new_tasks_go_to_end_of_column(self, owner, project, create_task):
        positions = [create_task(owner, project["id"], f"Task {n}")["position"] for n in range(3)]
        assert positions == [0, 1, 2]

    def test_move_shifts_following_cards(self, client, owner, project, create_task):
        first = create_task(owner, project["id"], "First", status="in_progress")
        second = create_task(owner, project["id"], "Second", status="in_progress")
        moving = create_task(owner, project["id"], "Moving")

        moved = client.post(
            f"{API}/tasks/{moving['id']}/move", headers=owner.headers,
            json={"status": "in_progress", "position": 0},
        )
        assert moved.status_code == 200
        assert moved.json()["status"] == "in_progress"

        column = client.get(
            f"{API}/tasks?project_id={project['id']}&status=in_progress", headers=owner.headers
        ).json()["items"]
        assert [t["id"] for t in column] == [moving["id"], first["id"], second["id"]]

    def test_move_respects_dependencies(self, client, owner, project, create_task):
        pour = create_task(owner, project["id"], "Pour foundation")
        frame = create_task(owner, project["id"], "Frame walls")
        _depend(client, owner, frame["id"], pour["id"])

        response = client.post(
            f"{API}/tasks/{frame['id']}/move", headers=owner.headers,
            json={"status": "in_progress", "position": 0},
        )
        assert response.status_code == 409


class TestFilters:
    def test_assigned_to_me_and_overdue(self, client, owner, project, create_task):
        create_task(owner, project["id"], "Mine", assigned_to=owner.user_id)
        create_task(owner, project["id"], "Late", due_date="2000-01-01T00:00:00")
        create_task(owner, project["id"], "Late but done", due_date="2000-01-01T00:00:00", status="completed")

        mine = client.get(f"{API}/tasks?assigned_to=me", headers=owner.headers).json()
        assert [t["title"] for t in mine["items"]] == ["Mine"]

        overdue = client.get(f"{API}/tasks?overdue=true", headers=owner.headers).json()
        assert [t["title"] for t in overdue["items"]] == ["Late"]
        assert overdue["items"][0]["is_overdue"] is True

    def test_search(self, client, owner, project, create_task):
        create_task(owner, project["id"], "Install HVAC ducts")
        create_task(owner, project["id"], "Paint lobby")
        found = client.get(f"{API}/tasks?search=hvac", headers=owner.headers).json()
        assert [t["title"] for t in found["items"]] == ["Install HVAC ducts"]


class TestDependencies:
    def test_self_dependency(self, client, owner, project, create_task):
        task = create_task(owner, project["id"])
        assert _depend(client, owner, task["id"], task["id"]).status_code == 400

    def test_cycle_is_rejected(self, client, owner, project, create_task):
        a, b, c = (create_task(owner, project["id"], name)["id"] for name in ("A", "B", "C"))
        assert _depend(client, owner, b, a).status_code == 201
        assert _depend(client, owner, c, b).status_code == 201

        response = _depend(client, owner, a, c)
        assert response.status_code == 400
        assert "cycle" in response.json()["detail"]

    def test_duplicate_dependency(self, client, owner, project, create_task):
        a = create_task(owner, project["id"], "A")["id"]
        b = create_task(owner, project["id"], "B")["id"]
        _depend(client, owner, b, a)
        assert _depend(client, owner, b, a).status_code == 409

    def test_cross_project_dependency(self, client, owner, project, create_project, create_task):
        other = create_project(owner, "Other job")
        a = create_task(owner, project["id"], "A")["id"]
        b = create_task(owner, other["id"], "B")["id"]
        assert _depend(client, owner, b, a).status_code == 400

    def test_list_and_remove(self, client, owner, project, create_task):
        a = create_task(owner, project["id"], "A")["id"]
        b = create_task(owner, project["id"], "B")["id"]
        dependency = _depend(client, owner, b, a, lag_days=2).json()

        detail = client.get(f"{API}/tasks/{b}", headers=owner.headers).json()
        assert [d["depends_on_task_id"] for d in detail["dependencies"]] == [a]

        url = f"{API}/tasks/{b}/dependencies"
        assert client.delete(f"{url}/{dependency['id']}", headers=owner.headers).status_code == 204
        assert client.get(url, headers=owner.headers).json() == []

    def test_deleting_predecessor_removes_dependency(self, client, owner, project, create_task):
        a = create_task(owner, project["id"], "A")["id"]
        b = create_task(owner, project["id"], "B")["id"]
        _depend(client, owner, b, a)

        assert client.delete(f"{API}/tasks/{a}", headers=owner.headers).status_code == 204
        assert client.get(f"{API}/tasks/{b}/dependencies", headers=owner.headers).json() == []
        assert _patch(client, owner, b, status="in_progress").status_code == 200


class TestComments:
    def test_author_or_admin_deletes(self, client, owner, invite_member, project, create_task):
        member = invite_member(owner, "mo@acme.com")
        other = invite_member(owner, "ot@acme.com")
        task = create_task(owner, project["id"])
        url = f"{API}/tasks/{task['id']}/comments"

        first = client.post(url, headers=member.headers, json={"comment": "Rebar delivered"}).json()
        second = client.post(url, headers=member.headers, json={"comment": "Inspector booked"}).json()
        assert [c["comment"] for c in client.get(url, headers=owner.headers).json()] == [
            "Rebar delivered", "Inspector booked",
        ]

        assert client.delete(f"{url}/{first['id']}", headers=other.headers).status_code == 403
        assert client.delete(f"{url}/{first['id']}", headers=member.headers).status_code == 204
        assert client.delete(f"{url}/{second['id']}", headers=owner.headers).status_code == 204

    def test_viewer_cannot_comment(self, client, owner, invite_member, project, create_task):
        viewer = invite_member(owner, "vi@acme.com", role="viewer")
        task = create_task(owner, project["id"])
        response = client.post(f"{API}/tasks/{task['id']}/comments", headers=viewer.headers, json={"comment": "Hi"})
        assert response.status_code == 403


class TestContactTags:
    def test_replace_tags(self, client, owner, project, create_task):
        electric = client.post(f"{API}/contacts", headers=owner.headers, json={
            "name": "Volt Electric", "contact_type": "contractor",
        }).json()
        architect = client.post(f"{API}/contacts", headers=owner.headers, json={
            "name": "Lines & Co", "contact_type": "design_professional",
        }).json()
        task = create_task(owner, project["id"])
        url = f"{API}/tasks/{task['id']}/contacts"

        tagged = client.put(url, headers=owner.headers, json={"contact_ids": [electric["id"], architect["id"]]})
        assert tagged.status_code == 200
        assert {c["name"] for c in tagged.json()["contacts"]} == {"Volt Electric", "Lines & Co"}

        retagged = client.put(url, headers=owner.headers, json={"contact_ids": [architect["id"]]}).json()
        assert [c["name"] for c in retagged["contacts"]] == ["Lines & Co"]

    def test_unknown_contact(self, client, owner, project, create_task):
        task = create_task(owner, project["id"])
        response = client.put(
            f"{API}/tasks/{task['id']}/contacts", headers=owner.headers, json={"contact_ids": ["missing"]}
        )
        assert response.status_code == 404
