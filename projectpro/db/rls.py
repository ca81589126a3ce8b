"""
Row-Level Security DDL

PostgreSQL enforces tenant isolation a second time, below the ORM:
every tenant-scoped table gets ROW LEVEL SECURITY (enabled and forced,
so the table owner is policed too) and one `tenant_isolation` policy.

A row is visible and writable only when
  - its tenant_id equals the transaction's app.current_tenant_id, and
  - app.current_user_id holds an active user_tenants row for that tenant.

Both settings are applied per transaction by projectpro.database.

tenants, users, user_tenants, tenant_invitations and subscription_plans
are intentionally left without RLS: login, signup and invitation
acceptance must read them before a principal exists.

Everything here produces SQL strings; the 0006 migration executes them
and `projectpro rls-sql` prints them for review.
"""
from typing import Dict, List
from sqlalchemy import text
from sqlalchemy.engine import Connection

POLICY_NAME = "tenant_isolation"
TENANT_SETTING = "app.current_tenant_id"
USER_SETTING = "app.current_user_id"

TENANT_SCOPED_TABLES = (
    "activity_logs",
    "projects",
    "project_members",
    "tasks",
    "task_dependencies",
    "task_comments",
    "task_contacts",
    "contacts",
    "documents",
    "calendar_events",
    "update_logs",
    "report_templates",
    "conversations",
    "conversation_participants",
    "messages",
    "tenant_subscriptions",
    "billing_history",
)

TABLES_WITH_UPDATED_AT = (
    "tenants",
    "users",
    "user_tenants",
    "projects",
    "tasks",
    "task_comments",
    "contacts",
    "documents",
    "calendar_events",
    "update_logs",
    "report_templates",
    "conversations",
    "subscription_plans",
    "tenant_subscriptions",
)

UPDATED_AT_FUNCTION = "set_updated_at"


def tenant_predicate(table: str) -> str:
    return (
        f"{table}.tenant_id = current_setting('{TENANT_SETTING}', true) "
        f"AND EXISTS (SELECT 1 FROM user_tenants ut "
        f"WHERE ut.tenant_id = {table}.tenant_id "
        f"AND ut.user_id = current_setting('{USER_SETTING}', true) "
        f"AND ut.status = 'active')"
    )


def enable_rls_statements(table: str) -> List[str]:
    # Both statements are no-ops when already applied
    return [
        f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
        f"ALTER TABLE ONLY {table} FORCE ROW LEVEL SECURITY",
    ]


def tenant_policy_statements(table: str) -> List[str]:
    predicate = tenant_predicate(table)
    return [
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON {table}",
        f"CREATE POLICY {POLICY_NAME} ON {table} "
        f"USING ({predicate}) WITH CHECK ({predicate})",
    ]


def drop_rls_statements(table: str) -> List[str]:
    return [
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON {table}",
        f"ALTER TABLE ONLY {table} NO FORCE ROW LEVEL SECURITY",
        f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY",
    ]


def updated_at_function_sql() -> str:
    return (
        f"CREATE OR REPLACE FUNCTION {UPDATED_AT_FUNCTION}() RETURNS trigger AS $$\n"
        "BEGIN\n"
        "    NEW.updated_at = NOW();\n"
        "    RETURN NEW;\n"
        "END;\n"
        "$$ LANGUAGE plpgsql"
    )


def updated_at_trigger_name(table: str) -> str:
    return f"trg_{table}_updated_at"


def updated_at_trigger_statements(table: str) -> List[str]:
    trigger = updated_at_trigger_name(table)
    return [
        f"DROP TRIGGER IF EXISTS {trigger} ON {table}",
        f"CREATE TRIGGER {trigger} BEFORE UPDATE ON {table} "
        f"FOR EACH ROW EXECUTE FUNCTION {UPDATED_AT_FUNCTION}()",
    ]


def all_statements() -> List[str]:
    """Full, re-runnable DDL in execution order."""
    statements = [updated_at_function_sql()]
    for table in TABLES_WITH_UPDATED_AT:
        statements.extend(updated_at_trigger_statements(table))
    for table in TENANT_SCOPED_TABLES:
        statements.extend(enable_rls_statements(table))
        statements.extend(tenant_policy_statements(table))
    return statements


AUDIT_QUERY = text(
    "SELECT c.relname AS table_name, c.relrowsecurity AS rls_enabled, "
    "c.relforcerowsecurity AS rls_forced, "
    "EXISTS (SELECT 1 FROM pg_policies p WHERE p.schemaname = n.nspname "
    "AND p.tablename = c.relname AND p.policyname = :policy) AS has_policy "
    "FROM pg_class c JOIN pg_namespace n ON n.oid = c.relnamespace "
    "WHERE n.nspname = current_schema() AND c.relkind = 'r' "
    "AND c.relname = ANY(:tables)"
)


def rls_audit(connection: Connection) -> List[Dict[str, object]]:
    """
    Report the RLS state of every tenant-scoped table.

    Tables missing from the database are reported with all flags False.
    """
    rows = connection.execute(
        AUDIT_QUERY,
        {"policy": POLICY_NAME, "tables": list(TENANT_SCOPED_TABLES)},
    ).mappings().all()
    found = {row["table_name"]: row for row in rows}

    report = []
    for table in TENANT_SCOPED_TABLES:
        row = found.get(table)
        entry = {
            "table": table,
            "exists": row is not None,
            "rls_enabled": bool(row and row["rls_enabled"]),
            "rls_forced": bool(row and row["rls_forced"]),
            "has_policy": bool(row and row["has_policy"]),
        }
        entry["ok"] = entry["rls_enabled"] and entry["rls_forced"] and entry["has_policy"]
        report.append(entry)
    return report
