"""
Tenant isolation: every request is bound to one organization, and rows
of another organization behave as if they did not exist.
"""
API = "/api/v1"


class TestTenantResolution:
    def test_missing_tenant_identifier(self, client, owner):
        response = client.get(f"{API}/projects", headers={"Authorization": f"Bearer {owner.token}"})
        assert response.status_code == 400
        assert response.json()["type"] == "tenant_required"

    def test_unknown_tenant(self, client, owner):
        headers = {"Authorization": f"Bearer {owner.token}", "X-Tenant-Slug": "ghost-co"}
        response = client.get(f"{API}/projects", headers=headers)
        assert response.status_code == 404
        assert response.json()["type"] == "tenant_not_found"

    def test_tenant_by_id_header(self, client, owner):
        headers = {"Authorization": f"Bearer {owner.token}", "X-Tenant-ID": owner.tenant_id}
        assert client.get(f"{API}/projects", headers=headers).status_code == 200

    def test_tenant_by_subdomain(self, client, owner):
        headers = {"Authorization": f"Bearer {owner.token}", "Host": f"{owner.slug}.projectpro.app"}
        assert client.get(f"{API}/projects", headers=headers).status_code == 200

    def test_public_paths_need_no_tenant(self, client):
        assert client.get("/health").status_code == 200
        assert client.get("/").status_code == 200
        assert client.get(f"{API}/billing/plans").status_code == 200

    def test_inactive_tenant_is_rejected(self, client, db, owner):
        from projectpro.models.tenant import Tenant

        tenant = db.query(Tenant).filter(Tenant.id == owner.tenant_id).one()
        tenant.is_active = False
        db.commit()

        response = client.get(f"{API}/projects", headers=owner.headers)
        assert response.status_code == 403
        assert response.json()["type"] == "tenant_inactive"


class TestTokenBinding:
    def test_token_for_other_tenant_is_rejected(self, client, owner, other_org):
        headers = {"Authorization": f"Bearer {owner.token}", "X-Tenant-Slug": other_org.slug}
        response = client.get(f"{API}/projects", headers=headers)
        assert response.status_code == 403
        assert response.json()["type"] == "tenant_isolation_error"

    def test_garbage_token(self, client, owner):
        headers = {"Authorization": "Bearer not-a-jwt", "X-Tenant-Slug": owner.slug}
        assert client.get(f"{API}/projects", headers=headers).status_code == 401


class TestCrossTenantAccess:
    def test_foreign_project_is_not_found(self, client, owner, other_org, create_project):
        project = create_project(owner)

        assert client.get(f"{API}/projects/{project['id']}", headers=other_org.headers).status_code == 404
        assert client.patch(
            f"{API}/projects/{project['id']}", headers=other_org.headers, json={"name": "Hijacked"}
        ).status_code == 404
        assert client.delete(f"{API}/projects/{project['id']}", headers=other_org.headers).status_code == 404

    def test_lists_only_show_own_rows(self, client, owner, other_org, create_project, create_task):
        project = create_project(owner)
        create_task(owner, project["id"])
        create_project(other_org, "Harbor Bridge Retrofit")

        projects = client.get(f"{API}/projects", headers=other_org.headers).json()
        assert [p["name"] for p in projects["items"]] == ["Harbor Bridge Retrofit"]
        assert client.get(f"{API}/tasks", headers=other_org.headers).json()["total"] == 0

    def test_cannot_attach_task_to_foreign_project(self, client, owner, other_org, create_project):
        project = create_project(owner)
        response = client.post(
            f"{API}/tasks", headers=other_org.headers, json={"project_id": project["id"], "title": "Sneak in"}
        )
        assert response.status_code == 404

    def test_cannot_tag_foreign_contact(self, client, owner, other_org, create_project, create_task):
        foreign_contact = client.post(
            f"{API}/contacts", headers=other_org.headers, json={"name": "Beacon Electric"}
        ).json()
        task = create_task(owner, create_project(owner)["id"])

        response = client.put(
            f"{API}/tasks/{task['id']}/contacts", headers=owner.headers,
            json={"contact_ids": [foreign_contact["id"]]},
        )
        assert response.status_code == 404

    def test_cannot_assign_task_to_outsider(self, client, owner, other_org, create_project):
        project = create_project(owner)
        response = client.post(f"{API}/tasks", headers=owner.headers, json={
            "project_id": project["id"], "title": "Frame walls", "assigned_to": other_org.user_id,
        })
        assert response.status_code == 400
