"""
Contact Endpoints (vendors directory)

Vendors, contractors, design professionals and customers of a tenant.
Viewers can read; members and above can write.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from typing import Optional

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.contact import Contact, CONTACT_TYPES
from projectpro.models.tenant import Tenant
from projectpro.schemas.project import choice_pattern
from projectpro.schemas.contact import ContactCreate, ContactUpdate, ContactResponse, ContactListResponse
from projectpro.api.deps import (
    get_current_membership,
    get_current_tenant,
    require_member,
    Pagination,
    get_pagination,
)
from projectpro.core.exceptions import NotFoundError, ConflictError
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])


def get_tenant_contact(db: Session, tenant_id: str, contact_id: str) -> Contact:
    contact = db.query(Contact).filter(
        Contact.id == contact_id,
        Contact.tenant_id == tenant_id  # CRITICAL: Tenant isolation
    ).first()
    if not contact:
        raise NotFoundError("Contact", contact_id)
    return contact


def _ensure_email_available(db: Session, tenant_id: str, email: Optional[str], exclude_id: Optional[str] = None):
    if not email:
        return
    query = db.query(Contact.id).filter(Contact.tenant_id == tenant_id, Contact.email == email)
    if exclude_id:
        query = query.filter(Contact.id != exclude_id)
    if query.first():
        raise ConflictError(f"A contact with email {email} already exists")


@router.get("", response_model=ContactListResponse)
async def list_contacts(
    contact_type: Optional[str] = Query(None, pattern=choice_pattern(CONTACT_TYPES)),
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    query = db.query(Contact).filter(Contact.tenant_id == tenant.id)

    if contact_type:
        query = query.filter(Contact.contact_type == contact_type)
    if is_active is not None:
        query = query.filter(Contact.is_active == is_active)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Contact.name).like(pattern),
            func.lower(Contact.company).like(pattern),
            func.lower(Contact.email).like(pattern),
            func.lower(Contact.trade).like(pattern),
        ))

    contacts, total = pagination.apply(query.order_by(Contact.name))

    return ContactListResponse(items=contacts, total=total, page=pagination.page, page_size=pagination.page_size)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return get_tenant_contact(db, tenant.id, contact_id)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    contact_data: ContactCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    values = contact_data.model_dump()
    if values.get("email"):
        values["email"] = values["email"].lower()
    _ensure_email_available(db, tenant.id, values.get("email"))

    contact = Contact(
        tenant_id=tenant.id,  # CRITICAL: Set tenant_id
        created_by=current.user_id,
        **values
    )
    db.add(contact)
    db.flush()
    log_activity(db, tenant.id, current.user_id, "created", "contact", contact.id, contact.name, request=request)
    db.commit()
    db.refresh(contact)

    logger.info(f"Contact created: {contact.id} ({contact.contact_type}) by {current.user_id}")

    return contact


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: str,
    contact_data: ContactUpdate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    contact = get_tenant_contact(db, tenant.id, contact_id)
    update_data = contact_data.model_dump(exclude_unset=True)

    if update_data.get("email"):
        update_data["email"] = update_data["email"].lower()
        _ensure_email_available(db, tenant.id, update_data["email"], exclude_id=contact.id)

    for field, value in update_data.items():
        setattr(contact, field, value)

    log_activity(db, tenant.id, current.user_id, "updated", "contact", contact.id, contact.name,
                 details={"fields": sorted(update_data)}, request=request)
    db.commit()
    db.refresh(contact)

    return contact


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: str,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    contact = get_tenant_contact(db, tenant.id, contact_id)

    log_activity(db, tenant.id, current.user_id, "deleted", "contact", contact.id, contact.name, request=request)
    db.delete(contact)
    db.commit()

    logger.info(f"Contact deleted: {contact_id} by {current.user_id}")
    return None
