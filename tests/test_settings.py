"""Organization settings: project code numbering, report template, profile."""
API = "/api/v1"


class TestProjectCodeSettings:
    def test_defaults(self, client, owner):
        settings = client.get(f"{API}/settings/project-codes", headers=owner.headers).json()
        assert settings["format"] == "PRJ-{YEAR}-{NUMBER}"
        assert settings["prefix"] == "PRJ"
        assert settings["auto_generate"] is True
        assert settings["next_number"] == 1

    def test_invalid_format(self, client, owner):
        response = client.put(f"{API}/settings/project-codes", headers=owner.headers, json={"format": "JOB-{YEAR}"})
        assert response.status_code == 400

    def test_preview_consumes_nothing(self, client, owner):
        response = client.post(f"{API}/settings/project-codes/preview", headers=owner.headers, json={
            "format": "{PREFIX}-{NUM}", "prefix": "BLD", "start": 9, "count": 2,
        })
        assert response.status_code == 200
        assert response.json()["codes"] == ["BLD-0009", "BLD-0010"]
        assert client.get(f"{API}/settings/project-codes", headers=owner.headers).json()["next_number"] == 1

    def test_members_cannot_change(self, client, owner, invite_member):
        member = invite_member(owner, "mo@acme.com")
        response = client.put(f"{API}/settings/project-codes", headers=member.headers, json={"prefix": "X"})
        assert response.status_code == 403

    def test_null_prefix_is_rejected(self, client, owner):
        response = client.put(f"{API}/settings/project-codes", headers=owner.headers, json={"prefix": None})
        assert response.status_code == 422
        assert client.get(f"{API}/settings/project-codes", headers=owner.headers).json()["prefix"] == "PRJ"


class TestReportTemplate:
    def test_defaults_until_saved(self, client, owner):
        template = client.get(f"{API}/settings/report-template", headers=owner.headers).json()
        assert template["is_default"] is True
        assert template["report_header"] == "PROJECT UPDATE REPORT"
        assert template["id"] is None

    def test_upsert(self, client, owner):
        url = f"{API}/settings/report-template"
        first = client.put(url, headers=owner.headers, json={"company_name": "Acme Builders"}).json()
        assert first["is_default"] is False
        assert first["company_name"] == "Acme Builders"
        assert first["report_header"] == "PROJECT UPDATE REPORT"

        second = client.put(url, headers=owner.headers, json={"report_header": None, "include_page_numbers": False})
        assert second.json()["id"] == first["id"]
        assert second.json()["report_header"] == "PROJECT UPDATE REPORT"
        assert second.json()["include_page_numbers"] is False
        assert client.get(url, headers=owner.headers).json()["company_name"] == "Acme Builders"


class TestOrganizationProfile:
    def test_admin_updates_profile(self, client, owner):
        response = client.patch(f"{API}/tenants/current", headers=owner.headers, json={
            "city": "Portland", "company_size": "medium",
        })
        assert response.status_code == 200
        assert response.json()["city"] == "Portland"

    def test_subdomain_routing_after_update(self, client, owner):
        client.patch(f"{API}/tenants/current", headers=owner.headers, json={"subdomain": "acme"})
        headers = {"Authorization": f"Bearer {owner.token}", "Host": "acme.projectpro.app"}
        assert client.get(f"{API}/tenants/current", headers=headers).json()["slug"] == owner.slug

    def test_activity_feed(self, client, owner, create_project):
        project = create_project(owner)
        client.patch(f"{API}/projects/{project['id']}", headers=owner.headers, json={"name": "Renamed"})

        feed = client.get(f"{API}/activity?entity_type=project", headers=owner.headers).json()
        assert [entry["action"] for entry in feed["items"]] == ["updated", "created"]
