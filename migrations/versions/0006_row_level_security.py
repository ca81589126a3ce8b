"""Row-level security policies and updated_at triggers (PostgreSQL only)

Every tenant-scoped table gets ENABLE + FORCE ROW LEVEL SECURITY and the
tenant_isolation policy; see projectpro.db.rls for the predicate.
Statements are DROP ... IF EXISTS + CREATE, so re-running is safe.

Revision ID: 0006
Revises: 0005
Create Date: 2026-10-09
"""
from alembic import op
import sqlalchemy as sa

from projectpro.db.rls import (
    TABLES_WITH_UPDATED_AT,
    TENANT_SCOPED_TABLES,
    UPDATED_AT_FUNCTION,
    all_statements,
    drop_rls_statements,
    updated_at_trigger_name,
)
from projectpro.db.schema import is_postgres

revision = "0006"
down_revision = "0005"
branch_labels = None
depends_on = None


def upgrade():
    if not is_postgres():
        return
    for statement in all_statements():
        op.execute(sa.text(statement))


def downgrade():
    if not is_postgres():
        return
    for table in TENANT_SCOPED_TABLES:
        for statement in drop_rls_statements(table):
            op.execute(sa.text(statement))
    for table in TABLES_WITH_UPDATED_AT:
        op.execute(sa.text(f"DROP TRIGGER IF EXISTS {updated_at_trigger_name(table)} ON {table}"))
    op.execute(sa.text(f"DROP FUNCTION IF EXISTS {UPDATED_AT_FUNCTION}()"))
