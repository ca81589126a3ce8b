"""
Idempotent Schema Helpers

Migrations run against databases that were partly built by hand from
SQL scripts, so each revision creates only what is missing.
"""
import sqlalchemy as sa
from alembic import op
import logging

logger = logging.getLogger(__name__)


def _inspector():
    return sa.inspect(op.get_bind())


def table_exists(table_name: str) -> bool:
    return _inspector().has_table(table_name)


def index_exists(table_name: str, index_name: str) -> bool:
    if not table_exists(table_name):
        return False
    return any(ix["name"] == index_name for ix in _inspector().get_indexes(table_name))


def create_table_if_missing(table_name: str, *columns, **kwargs) -> bool:
    """op.create_table, skipped when the table already exists."""
    if table_exists(table_name):
        logger.info(f"Table {table_name} already exists, skipping")
        return False
    op.create_table(table_name, *columns, **kwargs)
    return True


def create_index_if_missing(index_name: str, table_name: str, columns, **kwargs) -> bool:
    if index_exists(table_name, index_name):
        return False
    op.create_index(index_name, table_name, columns, **kwargs)
    return True


def drop_table_if_exists(table_name: str) -> None:
    if table_exists(table_name):
        op.drop_table(table_name)


def is_postgres() -> bool:
    return op.get_bind().dialect.name == "postgresql"


# Column builders shared by the revisions. Ids are 36-char uuid strings
# generated by the application, so no server-side uuid function is needed.

NOW = sa.text("CURRENT_TIMESTAMP")


def id_column() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def tenant_id_column() -> sa.Column:
    return sa.Column(
        "tenant_id", sa.String(36),
        sa.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


def user_ref(name: str, ondelete: str = "SET NULL", nullable: bool = True, index: bool = False) -> sa.Column:
    return sa.Column(
        name, sa.String(36),
        sa.ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable, index=index,
    )


def timestamps(updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(), server_default=NOW, nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), server_default=NOW, nullable=False))
    return columns


def json_column(name: str, default: str = "[]") -> sa.Column:
    return sa.Column(name, sa.JSON(), server_default=sa.text(f"'{default}'"), nullable=False)
