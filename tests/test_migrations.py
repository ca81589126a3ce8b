"""
Migration history and CLI smoke tests.

The revision graph is inspected without touching a database; the CLI
commands that run here only need the SQLite test database.
"""
import os

from alembic.config import Config
from alembic.script import ScriptDirectory
from typer.testing import CliRunner

from projectpro.cli import app as cli_app
from projectpro.db.rls import TENANT_SCOPED_TABLES

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

runner = CliRunner()


def _script_directory() -> ScriptDirectory:
    cfg = Config(os.path.join(ROOT, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(ROOT, "migrations"))
    return ScriptDirectory.from_config(cfg)


class TestMigrationHistory:

    def test_single_head(self):
        script = _script_directory()
        assert script.get_heads() == ["0006"]
        assert script.get_current_head() == "0006"

    def test_history_is_linear_back_to_base(self):
        script = _script_directory()
        revisions = [rev.revision for rev in script.walk_revisions("base", "heads")]
        assert revisions == ["0006", "0005", "0004", "0003", "0002", "0001"]
        assert script.get_revision("0001").down_revision is None


class TestCli:

    def test_seed_plans_is_idempotent(self):
        first = runner.invoke(cli_app, ["seed-plans"])
        assert first.exit_code == 0, first.output
        assert "4 plans added" in first.output

        second = runner.invoke(cli_app, ["seed-plans"])
        assert second.exit_code == 0, second.output
        assert "0 plans added" in second.output

    def test_rls_sql_prints_policy_for_every_scoped_table(self):
        result = runner.invoke(cli_app, ["rls-sql"])
        assert result.exit_code == 0, result.output
        for table in TENANT_SCOPED_TABLES:
            assert f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;" in result.output

    def test_rls_audit_requires_postgres(self):
        result = runner.invoke(cli_app, ["rls-audit"])
        assert result.exit_code == 1
        assert "PostgreSQL" in result.output

    def test_create_tenant(self):
        result = runner.invoke(
            cli_app,
            [
                "create-tenant", "Delta Civil",
                "--owner-email", "Dana@Delta.com",
                "--owner-password", "Sup3rSecret!",
                "--owner-name", "Dana Delta",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "slug:  delta-civil" in result.output
        assert "owner: dana@delta.com" in result.output

        taken = runner.invoke(
            cli_app,
            [
                "create-tenant", "Delta Again",
                "--owner-email", "other@delta.com",
                "--owner-password", "Sup3rSecret!",
                "--slug", "delta-civil",
            ],
        )
        assert taken.exit_code == 1
        assert "Slug already taken" in taken.output
