"""The generated row-level security DDL."""
from projectpro.db import rls
from projectpro.db.rls import POLICY_NAME, TENANT_SCOPED_TABLES, all_statements
from projectpro.database import Base
import projectpro.models  # noqa: F401


def test_every_tenant_scoped_model_is_policed():
    with_tenant_column = {
        table.name for table in Base.metadata.sorted_tables if "tenant_id" in table.columns
    }
    # Membership and invitation rows are read before a principal exists
    unpoliced = {"user_tenants", "tenant_invitations"}
    assert with_tenant_column - unpoliced == set(TENANT_SCOPED_TABLES)


def test_policy_checks_tenant_and_membership():
    statements = rls.tenant_policy_statements("projects")
    create = statements[-1]
    assert create.startswith(f"CREATE POLICY {POLICY_NAME} ON projects")
    assert "current_setting('app.current_tenant_id', true)" in create
    assert "ut.status = 'active'" in create
    assert "WITH CHECK" in create


def test_statements_are_rerunnable():
    statements = all_statements()
    assert statements[0].startswith("CREATE OR REPLACE FUNCTION set_updated_at()")
    for table in TENANT_SCOPED_TABLES:
        assert f"DROP POLICY IF EXISTS {POLICY_NAME} ON {table}" in statements
        assert f"ALTER TABLE ONLY {table} FORCE ROW LEVEL SECURITY" in statements


def test_updated_at_triggers():
    assert rls.updated_at_trigger_name("tasks") == "trg_tasks_updated_at"
    assert "DROP TRIGGER IF EXISTS trg_tasks_updated_at ON tasks" in all_statements()
