"""
Project Code Generation

Each tenant numbers its projects with its own format, for example:

    PRJ-{YEAR}-{NUMBER}       -> PRJ-2024-001
    {PREFIX}-{YY}-{NUM}       -> CONST-24-0001
    {PREFIX}/{YEAR}/{NUMBER}  -> BUILD/2024/001
    P{NUMBER}                 -> P001

The counter lives on the tenant row. Allocation locks that row
(SELECT ... FOR UPDATE on PostgreSQL) so two concurrent project
creations never render the same number.
"""
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session
from projectpro.core.exceptions import InvalidInputError, ConflictError
from projectpro.models.project import Project
from projectpro.models.tenant import Tenant, DEFAULT_PROJECT_CODE_PREFIX
import logging

logger = logging.getLogger(__name__)

NUMBER_TOKENS = ("{NUMBER}", "{NUM}")
KNOWN_TOKENS = ("{PREFIX}", "{YEAR}", "{YY}") + NUMBER_TOKENS
MAX_CODE_LENGTH = 50

# Upper bound on skipped numbers before giving up on a tenant whose
# codes were mostly entered by hand.
MAX_ALLOCATION_ATTEMPTS = 1000


def validate_format(code_format: str) -> None:
    """Raise InvalidInputError unless the format can produce unique codes."""
    if not code_format or not code_format.strip():
        raise InvalidInputError("Project code format cannot be empty")
    if not any(token in code_format for token in NUMBER_TOKENS):
        raise InvalidInputError("Project code format must contain {NUMBER} or {NUM}")

    remainder = code_format
    for token in KNOWN_TOKENS:
        remainder = remainder.replace(token, "")
    if "{" in remainder or "}" in remainder:
        raise InvalidInputError(
            "Unknown token in project code format; allowed: " + ", ".join(KNOWN_TOKENS)
        )


def render_project_code(
    code_format: str,
    number: int,
    prefix: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """Substitute the format tokens. {NUMBER} pads to 3 digits, {NUM} to 4."""
    today = today or date.today()
    year = f"{today.year:04d}"

    code = code_format.replace("{PREFIX}", prefix or DEFAULT_PROJECT_CODE_PREFIX)
    code = code.replace("{YEAR}", year)
    code = code.replace("{YY}", year[-2:])
    code = code.replace("{NUMBER}", f"{number:03d}")
    code = code.replace("{NUM}", f"{number:04d}")
    return code


def code_exists(db: Session, tenant_id: str, code: str, exclude_project_id: Optional[str] = None) -> bool:
    query = db.query(Project.id).filter(
        Project.tenant_id == tenant_id,
        Project.project_code == code,
    )
    if exclude_project_id:
        query = query.filter(Project.id != exclude_project_id)
    return db.query(query.exists()).scalar()


def ensure_code_available(db: Session, tenant_id: str, code: str,
                          exclude_project_id: Optional[str] = None) -> None:
    """Explicit codes must be unique within the tenant."""
    if code_exists(db, tenant_id, code, exclude_project_id):
        raise ConflictError(f"Project code '{code}' already exists in this organization")


def allocate_project_code(db: Session, tenant_id: str, today: Optional[date] = None) -> Optional[str]:
    """
    Render the next free code for the tenant and advance its counter.

    Returns None when the tenant turned auto-generation off. Must run
    inside the transaction that inserts the project; the row lock is
    released on commit.
    """
    tenant = (
        db.query(Tenant)
        .filter(Tenant.id == tenant_id)
        .with_for_update()
        .one()
    )
    if not tenant.project_code_auto_generate:
        return None

    number = tenant.project_code_next_number
    for _ in range(MAX_ALLOCATION_ATTEMPTS):
        code = render_project_code(
            tenant.project_code_format,
            number,
            prefix=tenant.project_code_prefix,
            today=today,
        )
        number += 1
        if not code_exists(db, tenant_id, code):
            tenant.project_code_next_number = number
            logger.debug(f"Allocated project code {code} for tenant {tenant_id}")
            return code

    raise ConflictError("Could not allocate a free project code; adjust the next number")


def preview_codes(code_format: str, prefix: Optional[str], start: int, count: int = 3,
                  today: Optional[date] = None) -> list:
    """Render the next `count` codes without touching the counter."""
    validate_format(code_format)
    return [
        render_project_code(code_format, start + offset, prefix=prefix, today=today)
        for offset in range(count)
    ]
