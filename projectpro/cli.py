"""ProjectPro CLI - database and tenant administration.

Commands:
- init-db: Create tables from the models (development databases)
- create-tenant: Create an organization with its owner account
- seed-plans: Insert the default subscription plans
- rls-audit: Check row-level security on every tenant-scoped table
- rls-sql: Print the row-level security DDL for review
"""
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from projectpro.config import get_settings
from projectpro.database import Base, SessionLocal, engine, init_db
from projectpro.db.rls import all_statements, rls_audit
from projectpro.models.tenant import Tenant
from projectpro.models.user import User
from projectpro.core.billing import ensure_default_plans
from projectpro.core.security import get_password_hash
from projectpro.core.tenancy import provision_tenant, slugify

app = typer.Typer(
    name="projectpro",
    help="ProjectPro - multi-tenant construction project management",
    no_args_is_help=True,
)

console = Console()


@app.command(name="init-db")
def init_db_cmd(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables first"),
):
    """Create all tables. Deployed databases use `alembic upgrade head` instead."""
    console.print(f"[bold]Initializing database:[/bold] {engine.url.render_as_string(hide_password=True)}")
    if drop:
        typer.confirm("Drop every table and all data?", abort=True)
        console.print("[yellow]Dropping existing tables...[/yellow]")
        Base.metadata.drop_all(bind=engine)
    init_db()
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="seed-plans")
def seed_plans_cmd():
    """Insert the default plan catalogue (Free, Pro, Business, Enterprise)."""
    db = SessionLocal()
    try:
        added = ensure_default_plans(db)
        db.commit()
    finally:
        db.close()
    console.print(f"[bold green]✓[/bold green] {added} plans added")


@app.command(name="create-tenant")
def create_tenant_cmd(
    name: str = typer.Argument(..., help="Organization name"),
    owner_email: str = typer.Option(..., "--owner-email", help="Owner login email"),
    owner_password: str = typer.Option(
        ..., "--owner-password", prompt=True, hide_input=True, confirmation_prompt=True,
        help="Owner password (prompted when omitted)",
    ),
    owner_name: Optional[str] = typer.Option(None, "--owner-name", help="Owner full name"),
    slug: Optional[str] = typer.Option(None, "--slug", help="Tenant slug (derived from the name by default)"),
):
    """Create an organization, its owner and a Free subscription."""
    db = SessionLocal()
    try:
        if slug:
            slug = slugify(slug)
            if db.query(Tenant.id).filter(Tenant.slug == slug).first():
                console.print(f"[red]✗[/red] Slug already taken: {slug}")
                raise typer.Exit(code=1)

        email = owner_email.strip().lower()
        owner = db.query(User).filter(User.email == email).first()
        if owner is None:
            owner = User(
                email=email,
                hashed_password=get_password_hash(owner_password),
                full_name=owner_name,
                is_active=True,
                is_verified=True,
            )
            db.add(owner)
        else:
            console.print(f"[yellow]⚠[/yellow] Reusing existing account {email}")

        tenant = provision_tenant(db, name, owner, slug=slug)
        db.commit()
    finally:
        db.close()

    console.print(f"[bold green]✓[/bold green] Tenant created: {tenant.name}")
    console.print(f"  id:    {tenant.id}")
    console.print(f"  slug:  {tenant.slug}")
    console.print(f"  owner: {email}")


@app.command(name="rls-audit")
def rls_audit_cmd():
    """
    List tenant-scoped tables and their row-level security state.

    Exits with status 1 when any table lacks RLS, FORCE RLS or the
    tenant_isolation policy.
    """
    if engine.dialect.name != "postgresql":
        console.print(f"[yellow]Row-level security needs PostgreSQL; current dialect is {engine.dialect.name}[/yellow]")
        raise typer.Exit(code=1)

    with engine.connect() as connection:
        report = rls_audit(connection)

    table = Table(title="Row-level security")
    table.add_column("Table", style="cyan")
    table.add_column("Exists")
    table.add_column("RLS")
    table.add_column("Forced")
    table.add_column("Policy")

    def mark(value: bool) -> str:
        return "[green]yes[/green]" if value else "[red]no[/red]"

    for entry in report:
        table.add_row(
            entry["table"],
            mark(entry["exists"]),
            mark(entry["rls_enabled"]),
            mark(entry["rls_forced"]),
            mark(entry["has_policy"]),
        )
    console.print(table)

    failing = [entry["table"] for entry in report if not entry["ok"]]
    if failing:
        console.print(f"[red]✗[/red] {len(failing)} tables are not isolated: {', '.join(failing)}")
        raise typer.Exit(code=1)
    console.print(f"[bold green]✓[/bold green] All {len(report)} tenant-scoped tables are isolated")


@app.command(name="rls-sql")
def rls_sql_cmd():
    """Print the RLS policies and updated_at triggers as SQL."""
    for statement in all_statements():
        print(statement.rstrip().rstrip(";") + ";\n")


@app.command()
def info():
    """Show the active configuration (secrets hidden)."""
    settings = get_settings()
    table = Table(show_header=False)
    table.add_row("Environment", settings.ENVIRONMENT)
    table.add_row("Database", engine.url.render_as_string(hide_password=True))
    table.add_row("Redis", settings.REDIS_URL)
    table.add_row("Rate limiting", "on" if settings.RATE_LIMIT_ENABLED else "off")
    console.print(table)


if __name__ == "__main__":
    app()
