"""Plan catalogue, plan changes, cancellation and plan limits."""
import pytest

API = "/api/v1"


@pytest.fixture
def plans(client, owner):
    return {plan["name"]: plan for plan in client.get(f"{API}/billing/plans").json()}


def _change(client, account, plan, billing_cycle="monthly"):
    return client.post(f"{API}/billing/subscription", headers=account.headers, json={
        "plan_id": plan["id"], "billing_cycle": billing_cycle,
    })


class TestCatalogue:
    def test_plans_are_public_and_ordered(self, plans):
        assert list(plans) == ["Free", "Pro", "Business", "Enterprise"]
        assert plans["Free"]["max_users"] == 3
        assert plans["Free"]["max_projects"] == 5
        assert plans["Enterprise"]["max_projects"] == -1

    def test_new_tenant_starts_on_free(self, client, owner):
        subscription = client.get(f"{API}/billing/subscription", headers=owner.headers).json()
        assert subscription["status"] == "active"
        assert subscription["plan"]["name"] == "Free"
        assert subscription["usage"] == {"users": 1, "projects": 0, "storage_gb": 0.0}


class TestPlanChanges:
    def test_upgrade_lifts_project_limit(self, client, owner, plans, create_project):
        for n in range(5):
            create_project(owner, f"Job {n}")
        assert client.post(f"{API}/projects", headers=owner.headers, json={"name": "Job 6"}).status_code == 402

        upgraded = _change(client, owner, plans["Pro"], "yearly")
        assert upgraded.status_code == 200
        assert upgraded.json()["plan"]["name"] == "Pro"
        assert upgraded.json()["billing_cycle"] == "yearly"

        assert client.post(f"{API}/projects", headers=owner.headers, json={"name": "Job 6"}).status_code == 201

        history = client.get(f"{API}/billing/history", headers=owner.headers).json()
        assert [(r["type"], r["amount"]) for r in history] == [("upgrade", 290)]
        assert history[0]["invoice_number"].startswith("INV-")

    def test_downgrade_blocked_when_over_limits(self, client, owner, plans, create_project):
        _change(client, owner, plans["Pro"])
        for n in range(6):
            create_project(owner, f"Job {n}")

        response = _change(client, owner, plans["Free"])
        assert response.status_code == 409
        assert "projects" in response.json()["detail"]

    def test_downgrade_within_limits(self, client, owner, plans):
        _change(client, owner, plans["Business"])
        response = _change(client, owner, plans["Pro"])
        assert response.status_code == 200

        history = client.get(f"{API}/billing/history", headers=owner.headers).json()
        assert sorted(r["type"] for r in history) == ["downgrade", "upgrade"]

    def test_same_plan_is_rejected(self, client, owner, plans):
        assert _change(client, owner, plans["Free"]).status_code == 400

    def test_unknown_plan(self, client, owner):
        response = client.post(f"{API}/billing/subscription", headers=owner.headers, json={"plan_id": "nope"})
        assert response.status_code == 404

    def test_members_cannot_see_billing(self, client, owner, invite_member, plans):
        member = invite_member(owner, "mo@acme.com")
        assert client.get(f"{API}/billing/subscription", headers=member.headers).status_code == 403
        assert _change(client, member, plans["Pro"]).status_code == 403


class TestCancellation:
    def test_cancel_at_period_end_keeps_plan(self, client, owner, plans):
        _change(client, owner, plans["Pro"])
        response = client.post(f"{API}/billing/subscription/cancel", headers=owner.headers)
        assert response.status_code == 200
        body = response.json()
        assert body["plan"]["name"] == "Pro"
        assert body["cancel_at_period_end"] is True
        assert body["canceled_at"] is not None

    def test_immediate_cancel_falls_back_to_free(self, client, owner, plans):
        _change(client, owner, plans["Pro"])
        response = client.post(f"{API}/billing/subscription/cancel?at_period_end=false", headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["status"] == "canceled"
        assert response.json()["plan"]["name"] == "Free"

        again = client.post(f"{API}/billing/subscription/cancel", headers=owner.headers)
        assert again.status_code == 400

    def test_resubscribe_after_cancel(self, client, owner, plans):
        _change(client, owner, plans["Pro"])
        client.post(f"{API}/billing/subscription/cancel?at_period_end=false", headers=owner.headers)
        response = _change(client, owner, plans["Pro"])
        assert response.status_code == 200
        assert response.json()["status"] == "active"

    def test_only_owner_cancels(self, client, owner, invite_member, plans):
        admin = invite_member(owner, "ad@acme.com", role="admin")
        _change(client, owner, plans["Pro"])
        assert client.post(f"{API}/billing/subscription/cancel", headers=admin.headers).status_code == 403


class TestSeatLimitAfterUpgrade:
    def test_pro_allows_more_invitations(self, client, owner, plans):
        _change(client, owner, plans["Pro"])
        emails = [f"crew{n}@acme.com" for n in range(5)]
        response = client.post(f"{API}/invitations", headers=owner.headers, json={"emails": emails})
        assert response.status_code == 201
        assert response.json()["sent"] == 5
