"""Project CRUD, soft delete, summary and project teams."""
from datetime import date

API = "/api/v1"


class TestProjectCrud:
    def test_create_generates_code_and_adds_lead(self, client, owner, create_project):
        project = create_project(owner, client_name="Riverside LLC", budget=250000)
        assert project["project_code"] == f"PRJ-{date.today().year}-001"
        assert project["code_auto_generated"] is True
        assert project["status"] == "Planning"
        assert project["budget_remaining"] == 250000

        members = client.get(f"{API}/projects/{project['id']}/members", headers=owner.headers).json()
        assert [(m["user_id"], m["role"]) for m in members] == [(owner.user_id, "lead")]

    def test_codes_increment(self, owner, create_project):
        year = date.today().year
        codes = [create_project(owner, f"Job {n}")["project_code"] for n in range(3)]
        assert codes == [f"PRJ-{year}-001", f"PRJ-{year}-002", f"PRJ-{year}-003"]

    def test_explicit_code_must_be_unique(self, client, owner, create_project):
        create_project(owner, project_code="RIV-01")
        response = client.post(f"{API}/projects", headers=owner.headers, json={"name": "Dup", "project_code": "RIV-01"})
        assert response.status_code == 409

    def test_same_code_allowed_in_other_tenant(self, owner, other_org, create_project):
        create_project(owner, project_code="RIV-01")
        assert create_project(other_org, project_code="RIV-01")["project_code"] == "RIV-01"

    def test_invalid_date_range(self, client, owner):
        response = client.post(f"{API}/projects", headers=owner.headers, json={
            "name": "Backwards", "start_date": "2025-06-01", "end_date": "2025-05-01",
        })
        assert response.status_code == 422

    def test_update_to_completed_sets_actual_end_date(self, client, owner, create_project):
        project = create_project(owner)
        response = client.patch(f"{API}/projects/{project['id']}", headers=owner.headers, json={"status": "Completed"})
        assert response.status_code == 200
        assert response.json()["actual_end_date"] == date.today().isoformat()

    def test_list_filters(self, client, owner, create_project):
        create_project(owner, "Riverside Office Tower", client_name="Riverside LLC")
        create_project(owner, "Harbor Bridge", status="In Progress")

        by_status = client.get(f"{API}/projects?status=In Progress", headers=owner.headers).json()
        assert [p["name"] for p in by_status["items"]] == ["Harbor Bridge"]

        by_search = client.get(f"{API}/projects?search=riverside", headers=owner.headers).json()
        assert [p["name"] for p in by_search["items"]] == ["Riverside Office Tower"]

    def test_pagination(self, client, owner, create_project):
        for n in range(3):
            create_project(owner, f"Job {n}")
        body = client.get(f"{API}/projects?page=2&page_size=2", headers=owner.headers).json()
        assert body["total"] == 3
        assert body["page"] == 2
        assert len(body["items"]) == 1


class TestProjectDeletion:
    def test_soft_delete_and_restore(self, client, owner, create_project):
        project = create_project(owner)
        url = f"{API}/projects/{project['id']}"

        assert client.delete(url, headers=owner.headers).status_code == 204
        assert client.get(url, headers=owner.headers).status_code == 404
        listed = client.get(f"{API}/projects?include_deleted=true", headers=owner.headers).json()
        assert listed["items"][0]["is_deleted"] is True

        restored = client.post(f"{url}/restore", headers=owner.headers)
        assert restored.status_code == 200
        assert restored.json()["is_deleted"] is False

    def test_hard_delete(self, client, owner, create_project):
        project = create_project(owner)
        url = f"{API}/projects/{project['id']}"
        assert client.delete(f"{url}?hard_delete=true", headers=owner.headers).status_code == 204
        assert client.post(f"{url}/restore", headers=owner.headers).status_code == 404

    def test_member_deletes_only_own_projects(self, client, owner, invite_member, create_project):
        member = invite_member(owner, "mo@acme.com")
        owners_project = create_project(owner)
        members_project = create_project(member, "Member Job")

        assert client.delete(f"{API}/projects/{owners_project['id']}", headers=member.headers).status_code == 403
        assert client.delete(f"{API}/projects/{members_project['id']}", headers=member.headers).status_code == 204

    def test_viewer_is_read_only(self, client, owner, invite_member, create_project):
        viewer = invite_member(owner, "vi@acme.com", role="viewer")
        project = create_project(owner)

        assert client.get(f"{API}/projects/{project['id']}", headers=viewer.headers).status_code == 200
        assert client.post(f"{API}/projects", headers=viewer.headers, json={"name": "Nope"}).status_code == 403
        assert client.patch(
            f"{API}/projects/{project['id']}", headers=viewer.headers, json={"name": "Nope"}
        ).status_code == 403


class TestProjectSummaryAndTeam:
    def test_summary_counts(self, client, owner, create_project, create_task):
        project = create_project(owner, budget=1000)
        create_task(owner, project["id"], "Survey")
        create_task(owner, project["id"], "Excavate", status="completed")
        create_task(owner, project["id"], "Permit", due_date="2000-01-01T00:00:00")
        client.patch(f"{API}/projects/{project['id']}", headers=owner.headers, json={"spent": 400})

        summary = client.get(f"{API}/projects/{project['id']}/summary", headers=owner.headers).json()
        assert summary["total_tasks"] == 3
        assert summary["task_counts"]["pending"] == 2
        assert summary["task_counts"]["completed"] == 1
        assert summary["overdue_tasks"] == 1
        assert summary["budget_remaining"] == 600
        assert summary["team_size"] == 1

    def test_add_and_remove_member(self, client, owner, invite_member, create_project):
        member = invite_member(owner, "mo@acme.com")
        project = create_project(owner)
        url = f"{API}/projects/{project['id']}/members"

        added = client.post(url, headers=owner.headers, json={"user_id": member.user_id, "role": "member"})
        assert added.status_code == 201
        assert added.json()["email"] == "mo@acme.com"
        assert client.post(url, headers=owner.headers, json={"user_id": member.user_id}).status_code == 409

        assert client.delete(f"{url}/{member.user_id}", headers=owner.headers).status_code == 204
        assert len(client.get(url, headers=owner.headers).json()) == 1

    def test_outsider_cannot_join_project(self, client, owner, other_org, create_project):
        project = create_project(owner)
        response = client.post(
            f"{API}/projects/{project['id']}/members", headers=owner.headers, json={"user_id": other_org.user_id}
        )
        assert response.status_code == 400


class TestProjectLimit:
    def test_free_plan_allows_five_projects(self, client, owner, create_project):
        for n in range(5):
            create_project(owner, f"Job {n}")
        response = client.post(f"{API}/projects", headers=owner.headers, json={"name": "Job 6"})
        assert response.status_code == 402

    def test_deleted_projects_free_a_slot(self, client, owner, create_project):
        projects = [create_project(owner, f"Job {n}") for n in range(5)]
        client.delete(f"{API}/projects/{projects[0]['id']}", headers=owner.headers)
        assert client.post(f"{API}/projects", headers=owner.headers, json={"name": "Job 6"}).status_code == 201
