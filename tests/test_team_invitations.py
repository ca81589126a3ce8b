"""Invitations, seat limits and team management."""
from datetime import datetime, timedelta

from projectpro.models import TenantInvitation

API = "/api/v1"
PASSWORD = "Sup3rSecret!"


def _invite(client, account, *emails, role="member"):
    return client.post(f"{API}/invitations", headers=account.headers, json={"emails": list(emails), "role": role})


class TestInvitations:
    def test_batch_reports_each_email(self, client, owner):
        response = _invite(client, owner, "ana@acme.com", "ANA@acme.com", "owner@acme.com")
        assert response.status_code == 201
        body = response.json()
        assert body["sent"] == 1
        assert body["failed"] == 1

        results = {r["email"]: r for r in body["results"]}
        assert results["ana@acme.com"]["success"]
        assert results["ana@acme.com"]["url"].startswith("http://localhost:3000/invite/")
        assert results["owner@acme.com"]["error"] == "Already a member of this organization"

    def test_second_invitation_to_same_email_fails(self, client, owner):
        _invite(client, owner, "ana@acme.com")
        body = _invite(client, owner, "ana@acme.com").json()
        assert body["sent"] == 0
        assert body["results"][0]["error"] == "An invitation is already pending"

    def test_pending_invitations_use_seats(self, client, owner):
        # Free plan: 3 seats, the owner holds one
        assert _invite(client, owner, "ana@acme.com", "bo@acme.com").status_code == 201
        response = _invite(client, owner, "cy@acme.com")
        assert response.status_code == 402

    def test_batch_takes_the_seats_that_are_left(self, client, owner):
        # Free plan: owner plus one pending invitation leaves one seat
        assert _invite(client, owner, "ana@acme.com").status_code == 201

        response = _invite(client, owner, "bo@acme.com", "cy@acme.com", "di@acme.com")
        assert response.status_code == 201
        body = response.json()
        assert body["sent"] == 1
        assert body["failed"] == 2

        results = {r["email"]: r for r in body["results"]}
        assert results["bo@acme.com"]["success"]
        assert results["cy@acme.com"]["error"].startswith("Plan limit reached")
        assert results["di@acme.com"]["error"].startswith("Plan limit reached")

        pending = client.get(f"{API}/invitations", headers=owner.headers).json()
        assert sorted(i["email"] for i in pending) == ["ana@acme.com", "bo@acme.com"]

    def test_expired_invitations_free_their_seats(self, client, owner, db):
        assert _invite(client, owner, "ana@acme.com", "bo@acme.com").status_code == 201
        db.query(TenantInvitation).filter(TenantInvitation.tenant_id == owner.tenant_id).update(
            {TenantInvitation.expires_at: datetime.utcnow() - timedelta(days=1)}
        )
        db.commit()

        response = _invite(client, owner, "cy@acme.com")
        assert response.status_code == 201
        assert response.json()["sent"] == 1

    def test_lookup_and_accept(self, client, owner):
        url = _invite(client, owner, "ana@acme.com", role="manager").json()["results"][0]["url"]
        token = url.rsplit("/", 1)[1]

        lookup = client.get(f"{API}/invitations/lookup/{token}")
        assert lookup.status_code == 200
        assert lookup.json()["tenant_slug"] == owner.slug
        assert lookup.json()["role"] == "manager"
        assert lookup.json()["user_exists"] is False

        accepted = client.post(f"{API}/invitations/accept", json={"token": token, "password": PASSWORD})
        assert accepted.status_code == 200
        assert accepted.json()["role"] == "manager"
        assert accepted.json()["tenant_id"] == owner.tenant_id

        # One-time token
        again = client.post(f"{API}/invitations/accept", json={"token": token, "password": PASSWORD})
        assert again.status_code == 400

    def test_existing_account_must_confirm_password(self, client, owner, other_org):
        url = _invite(client, other_org, "owner@acme.com").json()["results"][0]["url"]
        token = url.rsplit("/", 1)[1]

        wrong = client.post(f"{API}/invitations/accept", json={"token": token, "password": "wrong-password"})
        assert wrong.status_code == 401

        right = client.post(f"{API}/invitations/accept", json={"token": token, "password": PASSWORD})
        assert right.status_code == 200
        assert right.json()["user_id"] == owner.user_id

    def test_cancel_invitation(self, client, owner):
        invitation_id = _invite(client, owner, "ana@acme.com").json()["results"][0]["id"]
        assert client.delete(f"{API}/invitations/{invitation_id}", headers=owner.headers).status_code == 204

        pending = client.get(f"{API}/invitations", headers=owner.headers).json()
        assert pending == []
        cancelled = client.get(f"{API}/invitations?status=cancelled", headers=owner.headers).json()
        assert [i["email"] for i in cancelled] == ["ana@acme.com"]

    def test_members_cannot_invite(self, client, owner, invite_member):
        member = invite_member(owner, "mo@acme.com", role="member")
        assert _invite(client, member, "friend@acme.com").status_code == 403


class TestTeam:
    def test_list_team(self, client, owner, invite_member):
        invite_member(owner, "mo@acme.com", role="viewer")
        body = client.get(f"{API}/team", headers=owner.headers).json()
        assert body["total"] == 2
        assert {m["email"]: m["role"] for m in body["items"]} == {
            "owner@acme.com": "owner",
            "mo@acme.com": "viewer",
        }

    def test_change_role(self, client, owner, invite_member):
        member = invite_member(owner, "mo@acme.com")
        response = client.patch(f"{API}/team/{member.user_id}", headers=owner.headers, json={"role": "manager"})
        assert response.status_code == 200
        assert response.json()["role"] == "manager"

    def test_admin_cannot_grant_owner(self, client, owner, invite_member):
        admin = invite_member(owner, "ad@acme.com", role="admin")
        member = invite_member(owner, "mo@acme.com")
        response = client.patch(f"{API}/team/{member.user_id}", headers=admin.headers, json={"role": "owner"})
        assert response.status_code == 403

    def test_admin_cannot_touch_owner(self, client, owner, invite_member):
        admin = invite_member(owner, "ad@acme.com", role="admin")
        assert client.delete(f"{API}/team/{owner.user_id}", headers=admin.headers).status_code == 403

    def test_last_owner_cannot_step_down(self, client, owner):
        response = client.patch(f"{API}/team/{owner.user_id}", headers=owner.headers, json={"role": "admin"})
        assert response.status_code == 409

    def test_cannot_remove_yourself(self, client, owner):
        assert client.delete(f"{API}/team/{owner.user_id}", headers=owner.headers).status_code == 400

    def test_removed_member_loses_access(self, client, owner, invite_member):
        member = invite_member(owner, "mo@acme.com")
        assert client.delete(f"{API}/team/{member.user_id}", headers=owner.headers).status_code == 204
        assert client.get(f"{API}/projects", headers=member.headers).status_code == 403

    def test_suspended_member_loses_access(self, client, owner, invite_member):
        member = invite_member(owner, "mo@acme.com")
        client.patch(f"{API}/team/{member.user_id}", headers=owner.headers, json={"status": "suspended"})
        assert client.get(f"{API}/projects", headers=member.headers).status_code == 403
