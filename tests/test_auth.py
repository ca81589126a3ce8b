"""Signup, login, tenant switching and the profile endpoints."""

API = "/api/v1"
PASSWORD = "Sup3rSecret!"


class TestSignup:
    def test_signup_creates_owner_and_free_subscription(self, client, owner):
        assert owner.role == "owner"
        assert owner.slug == "acme-builders"

        tenant = client.get(f"{API}/tenants/current", headers=owner.headers).json()
        assert tenant["name"] == "Acme Builders"
        assert tenant["plan_name"] == "Free"
        assert tenant["primary_contact_email"] == "owner@acme.com"

    def test_duplicate_organization_name_gets_suffixed_slug(self, signup):
        first = signup("Acme Builders", "first@acme.com")
        second = signup("Acme Builders", "second@acme.com")
        assert first.slug == "acme-builders"
        assert second.slug == "acme-builders-2"

    def test_existing_user_can_create_second_organization(self, client, owner):
        response = client.post(f"{API}/auth/signup", json={
            "email": "owner@acme.com",
            "password": PASSWORD,
            "full_name": "Olivia Owner",
            "organization_name": "Acme Renovations",
        })
        assert response.status_code == 201
        assert response.json()["user_id"] == owner.user_id
        assert response.json()["tenant_id"] != owner.tenant_id

    def test_existing_user_with_wrong_password_is_rejected(self, client, owner):
        response = client.post(f"{API}/auth/signup", json={
            "email": "owner@acme.com",
            "password": "not-the-password",
            "full_name": "Olivia Owner",
            "organization_name": "Acme Renovations",
        })
        assert response.status_code == 401

    def test_short_password_is_invalid(self, client):
        response = client.post(f"{API}/auth/signup", json={
            "email": "short@acme.com",
            "password": "short",
            "full_name": "Sam Short",
            "organization_name": "Acme",
        })
        assert response.status_code == 422


class TestLogin:
    def test_login_returns_token_for_tenant(self, client, owner):
        response = client.post(f"{API}/auth/login", json={
            "email": "OWNER@acme.com", "password": PASSWORD, "tenant_slug": owner.slug,
        })
        assert response.status_code == 200
        token = response.json()
        assert token["token_type"] == "bearer"
        assert token["tenant_id"] == owner.tenant_id
        assert token["role"] == "owner"

    def test_failures_share_one_message(self, client, owner, other_org):
        attempts = [
            {"email": "owner@acme.com", "password": "wrong-password", "tenant_slug": owner.slug},
            {"email": "nobody@acme.com", "password": PASSWORD, "tenant_slug": owner.slug},
            {"email": "owner@acme.com", "password": PASSWORD, "tenant_slug": "no-such-org"},
            # Valid credentials, but not a member of that organization
            {"email": "owner@acme.com", "password": PASSWORD, "tenant_slug": other_org.slug},
        ]
        for body in attempts:
            response = client.post(f"{API}/auth/login", json=body)
            assert response.status_code == 401, body
            assert response.json()["detail"] == "Invalid credentials"


class TestProfile:
    def test_me_lists_memberships(self, client, owner):
        response = client.get(f"{API}/auth/me", headers=owner.headers)
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "owner@acme.com"
        assert body["current_tenant_id"] == owner.tenant_id
        assert [m["tenant_slug"] for m in body["memberships"]] == [owner.slug]

    def test_update_profile(self, client, owner):
        response = client.patch(f"{API}/auth/me", headers=owner.headers, json={"job_title": "Superintendent"})
        assert response.status_code == 200
        assert response.json()["user"]["job_title"] == "Superintendent"

    def test_me_requires_token(self, client, owner):
        response = client.get(f"{API}/auth/me", headers={"X-Tenant-Slug": owner.slug})
        assert response.status_code == 401


class TestSwitchTenant:
    def test_switch_to_own_second_organization(self, client, owner):
        second = client.post(f"{API}/auth/signup", json={
            "email": "owner@acme.com", "password": PASSWORD,
            "full_name": "Olivia Owner", "organization_name": "Acme Renovations",
        }).json()

        response = client.post(
            f"{API}/auth/switch-tenant", headers=owner.headers, json={"tenant_id": second["tenant_id"]}
        )
        assert response.status_code == 200
        assert response.json()["tenant_id"] == second["tenant_id"]

        mine = client.get(f"{API}/tenants/mine", headers=owner.headers).json()
        assert {org["slug"] for org in mine} == {"acme-builders", "acme-renovations"}
        assert [org["is_current"] for org in mine if org["slug"] == owner.slug] == [True]

    def test_switch_to_foreign_organization_is_forbidden(self, client, owner, other_org):
        response = client.post(
            f"{API}/auth/switch-tenant", headers=owner.headers, json={"tenant_id": other_org.tenant_id}
        )
        assert response.status_code == 403
