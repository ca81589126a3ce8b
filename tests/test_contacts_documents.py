"""Vendors directory and project documents."""
API = "/api/v1"


class TestContacts:
    def test_crud(self, client, owner):
        created = client.post(f"{API}/contacts", headers=owner.headers, json={
            "name": "Volt Electric",
            "contact_type": "contractor",
            "email": "Dispatch@VoltElectric.com",
            "trade": "Electrical",
        })
        assert created.status_code == 201
        contact = created.json()
        assert contact["email"] == "dispatch@voltelectric.com"

        url = f"{API}/contacts/{contact['id']}"
        updated = client.patch(url, headers=owner.headers, json={"phone": "555-0100", "is_active": False})
        assert updated.json()["phone"] == "555-0100"

        assert client.delete(url, headers=owner.headers).status_code == 204
        assert client.get(url, headers=owner.headers).status_code == 404

    def test_email_unique_within_tenant(self, client, owner, other_org):
        body = {"name": "Volt Electric", "email": "dispatch@voltelectric.com"}
        assert client.post(f"{API}/contacts", headers=owner.headers, json=body).status_code == 201
        assert client.post(f"{API}/contacts", headers=owner.headers, json=body).status_code == 409
        assert client.post(f"{API}/contacts", headers=other_org.headers, json=body).status_code == 201

    def test_filters(self, client, owner):
        for body in (
            {"name": "Volt Electric", "contact_type": "contractor", "trade": "Electrical"},
            {"name": "Stone Supply", "contact_type": "vendor"},
            {"name": "Old Vendor", "contact_type": "vendor", "is_active": False},
        ):
            client.post(f"{API}/contacts", headers=owner.headers, json=body)

        vendors = client.get(f"{API}/contacts?contact_type=vendor&is_active=true", headers=owner.headers).json()
        assert [c["name"] for c in vendors["items"]] == ["Stone Supply"]

        electrical = client.get(f"{API}/contacts?search=electric", headers=owner.headers).json()
        assert [c["name"] for c in electrical["items"]] == ["Volt Electric"]

    def test_viewer_is_read_only(self, client, owner, invite_member):
        viewer = invite_member(owner, "vi@acme.com", role="viewer")
        assert client.get(f"{API}/contacts", headers=viewer.headers).status_code == 200
        assert client.post(f"{API}/contacts", headers=viewer.headers, json={"name": "Nope"}).status_code == 403


class TestDocuments:
    def test_inline_content_sets_size_and_updates_bump_version(self, client, owner, create_project):
        project = create_project(owner)
        created = client.post(f"{API}/documents", headers=owner.headers, json={
            "name": "Site notes",
            "category": "report",
            "project_id": project["id"],
            "content": "Concrete poured ✓",
        })
        assert created.status_code == 201
        document = created.json()
        assert document["version"] == 1
        assert document["file_size"] == len("Concrete poured ✓".encode("utf-8"))

        url = f"{API}/documents/{document['id']}"
        renamed = client.patch(url, headers=owner.headers, json={"name": "Site notes (day 1)"}).json()
        assert renamed["version"] == 2
        assert renamed["file_size"] == document["file_size"]

        rewritten = client.patch(url, headers=owner.headers, json={"content": "abc"}).json()
        assert rewritten["version"] == 3
        assert rewritten["file_size"] == 3

    def test_file_reference(self, client, owner):
        response = client.post(f"{API}/documents", headers=owner.headers, json={
            "name": "Structural drawings",
            "category": "drawing",
            "file_url": "https://files.example.com/s-101.pdf",
            "file_size": 2 * 1024 * 1024,
            "mime_type": "application/pdf",
        })
        assert response.status_code == 201
        assert response.json()["file_size_mb"] == 2.0
        assert response.json()["project_id"] is None

    def test_project_must_belong_to_tenant(self, client, owner, other_org, create_project):
        project = create_project(other_org)
        response = client.post(f"{API}/documents", headers=owner.headers, json={
            "name": "Sneaky", "project_id": project["id"],
        })
        assert response.status_code == 404

    def test_filters(self, client, owner, create_project):
        project = create_project(owner)
        client.post(f"{API}/documents", headers=owner.headers, json={
            "name": "Building permit", "category": "permit", "project_id": project["id"],
        })
        client.post(f"{API}/documents", headers=owner.headers, json={"name": "Master contract", "category": "contract"})

        permits = client.get(f"{API}/documents?category=permit", headers=owner.headers).json()
        assert [d["name"] for d in permits["items"]] == ["Building permit"]

        in_project = client.get(f"{API}/documents?project_id={project['id']}", headers=owner.headers).json()
        assert in_project["total"] == 1

        found = client.get(f"{API}/documents?search=contract", headers=owner.headers).json()
        assert [d["name"] for d in found["items"]] == ["Master contract"]

    def test_delete(self, client, owner):
        document = client.post(f"{API}/documents", headers=owner.headers, json={"name": "Old invoice"}).json()
        url = f"{API}/documents/{document['id']}"
        assert client.delete(url, headers=owner.headers).status_code == 204
        assert client.get(url, headers=owner.headers).status_code == 404
