from datetime import date

import pytest

from projectpro.core.exceptions import InvalidInputError
from projectpro.core.project_codes import preview_codes, render_project_code, validate_format

API = "/api/v1"
TODAY = date(2024, 3, 15)


class TestRender:
    @pytest.mark.parametrize("code_format,prefix,expected", [
        ("PRJ-{YEAR}-{NUMBER}", None, "PRJ-2024-007"),
        ("{PREFIX}-{YY}-{NUM}", "CONST", "CONST-24-0007"),
        ("{PREFIX}/{YEAR}/{NUMBER}", "BUILD", "BUILD/2024/007"),
        ("P{NUMBER}", None, "P007"),
    ])
    def test_formats(self, code_format, prefix, expected):
        assert render_project_code(code_format, 7, prefix=prefix, today=TODAY) == expected

    def test_number_wider_than_padding(self):
        assert render_project_code("P{NUMBER}", 1234, today=TODAY) == "P1234"

    def test_missing_prefix_uses_default(self):
        assert render_project_code("{PREFIX}-{NUMBER}", 1, today=TODAY) == "PRJ-001"


class TestValidate:
    @pytest.mark.parametrize("code_format", ["", "   ", "PRJ-{YEAR}", "PRJ-{COUNTER}-{NUMBER}"])
    def test_rejected(self, code_format):
        with pytest.raises(InvalidInputError):
            validate_format(code_format)

    def test_preview_does_not_need_a_database(self):
        assert preview_codes("{PREFIX}-{NUM}", "JOB", 41, count=2, today=TODAY) == ["JOB-0041", "JOB-0042"]


class TestAllocation:
    def test_taken_numbers_are_skipped(self, owner, create_project):
        year = date.today().year
        create_project(owner, "Manual", project_code=f"PRJ-{year}-001")
        assert create_project(owner, "Auto")["project_code"] == f"PRJ-{year}-002"

    def test_auto_generation_off(self, client, owner, create_project):
        client.put(f"{API}/settings/project-codes", headers=owner.headers, json={"auto_generate": False})
        project = create_project(owner)
        assert project["project_code"] is None
        assert project["code_auto_generated"] is False

    def test_custom_format_and_counter(self, client, owner, create_project):
        response = client.put(f"{API}/settings/project-codes", headers=owner.headers, json={
            "format": "{PREFIX}-{NUM}", "prefix": "ACME", "next_number": 50,
        })
        assert response.status_code == 200
        assert response.json()["example"] == "ACME-0050"

        assert create_project(owner)["project_code"] == "ACME-0050"
        settings = client.get(f"{API}/settings/project-codes", headers=owner.headers).json()
        assert settings["next_number"] == 51
