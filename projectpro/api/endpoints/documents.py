"""
Document Endpoints

Drawings, contracts, permits and the rest of a tenant's paperwork.

Files themselves live in object storage; this API stores the URL,
size and MIME type, or inline text content for notes. Any update bumps
the version, and new inline content recomputes file_size.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from typing import Optional

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.document import Document, DOCUMENT_CATEGORIES
from projectpro.models.tenant import Tenant
from projectpro.schemas.project import choice_pattern
from projectpro.schemas.document import DocumentCreate, DocumentUpdate, DocumentResponse, DocumentListResponse
from projectpro.api.deps import (
    get_current_membership,
    get_current_tenant,
    require_member,
    get_tenant_project,
    Pagination,
    get_pagination,
)
from projectpro.core.exceptions import NotFoundError
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def content_size(content: Optional[str]) -> Optional[int]:
    """Size in bytes of inline text content, as stored (UTF-8)."""
    if content is None:
        return None
    return len(content.encode("utf-8"))


def get_tenant_document(db: Session, tenant_id: str, document_id: str) -> Document:
    document = db.query(Document).filter(
        Document.id == document_id,
        Document.tenant_id == tenant_id  # CRITICAL: Tenant isolation
    ).first()
    if not document:
        raise NotFoundError("Document", document_id)
    return document


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    project_id: Optional[str] = None,
    category: Optional[str] = Query(None, pattern=choice_pattern(DOCUMENT_CATEGORIES)),
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    List documents in current tenant.

    TENANT_ISOLATION: Automatically filtered by current tenant.
    """
    query = db.query(Document).filter(Document.tenant_id == tenant.id)

    if project_id:
        query = query.filter(Document.project_id == project_id)
    if category:
        query = query.filter(Document.category == category)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Document.name).like(pattern),
            func.lower(Document.description).like(pattern),
        ))

    documents, total = pagination.apply(query.order_by(Document.created_at.desc()))

    return DocumentListResponse(items=documents, total=total, page=pagination.page, page_size=pagination.page_size)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return get_tenant_document(db, tenant.id, document_id)


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Create new document in current tenant.

    If project_id is given, the project must exist in this tenant.
    """
    if document_data.project_id:
        get_tenant_project(db, tenant.id, document_data.project_id)

    values = document_data.model_dump()
    if values["content"] is not None:
        values["file_size"] = content_size(values["content"])

    document = Document(
        tenant_id=tenant.id,  # CRITICAL: Set tenant_id
        uploaded_by=current.user_id,
        version=1,
        **values
    )
    db.add(document)
    db.flush()
    log_activity(db, tenant.id, current.user_id, "created", "document", document.id, document.name,
                 details={"category": document.category, "project_id": document.project_id}, request=request)
    db.commit()
    db.refresh(document)

    logger.info(f"Document created: {document.id} by {current.user_id}")

    return document


@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: str,
    document_data: DocumentUpdate,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    document = get_tenant_document(db, tenant.id, document_id)
    update_data = document_data.model_dump(exclude_unset=True)

    if update_data.get("project_id"):
        get_tenant_project(db, tenant.id, update_data["project_id"])
    if "content" in update_data:
        update_data["file_size"] = content_size(update_data["content"])

    for field, value in update_data.items():
        setattr(document, field, value)
    document.version = (document.version or 1) + 1

    log_activity(db, tenant.id, current.user_id, "updated", "document", document.id, document.name,
                 details={"version": document.version}, request=request)
    db.commit()
    db.refresh(document)

    logger.info(f"Document updated: {document.id} now v{document.version}")

    return document


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: str,
    request: Request,
    current: TenantMembership = Depends(require_member),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    document = get_tenant_document(db, tenant.id, document_id)

    log_activity(db, tenant.id, current.user_id, "deleted", "document", document.id, document.name, request=request)
    db.delete(document)
    db.commit()

    logger.info(f"Document deleted: {document_id} by {current.user_id}")
    return None
