"""
Organization Settings Endpoints

Project code numbering and the report template.

RBAC:
- Read: All members
- Change: Admin or owner
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from projectpro.database import get_db
from projectpro.models.user import TenantMembership
from projectpro.models.tenant import Tenant
from projectpro.models.report_template import ReportTemplate, TEMPLATE_DEFAULTS
from projectpro.schemas.tenant import (
    ProjectCodeSettings,
    ProjectCodeSettingsUpdate,
    ProjectCodePreviewRequest,
    ProjectCodePreviewResponse,
    ReportTemplateBody,
    ReportTemplateResponse,
)
from projectpro.api.deps import get_current_membership, get_current_tenant, require_admin
from projectpro.core.project_codes import render_project_code, validate_format, preview_codes
from projectpro.utils.activity import log_activity
from projectpro.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


def _code_settings(tenant: Tenant) -> ProjectCodeSettings:
    return ProjectCodeSettings(
        format=tenant.project_code_format,
        prefix=tenant.project_code_prefix,
        auto_generate=tenant.project_code_auto_generate,
        next_number=tenant.project_code_next_number,
        example=render_project_code(
            tenant.project_code_format,
            tenant.project_code_next_number,
            prefix=tenant.project_code_prefix,
        ),
    )


@router.get("/project-codes", response_model=ProjectCodeSettings)
async def get_project_code_settings(
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant)
):
    return _code_settings(tenant)


@router.put("/project-codes", response_model=ProjectCodeSettings)
async def update_project_code_settings(
    code_settings: ProjectCodeSettingsUpdate,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """
    Change the numbering scheme.

    Lowering next_number is allowed; numbers that would collide with
    existing codes are skipped at allocation time.
    """
    update_data = code_settings.model_dump(exclude_unset=True)

    if "format" in update_data:
        validate_format(update_data["format"])
        tenant.project_code_format = update_data["format"]
    if "prefix" in update_data:
        tenant.project_code_prefix = update_data["prefix"].strip()
    if "auto_generate" in update_data:
        tenant.project_code_auto_generate = update_data["auto_generate"]
    if "next_number" in update_data:
        tenant.project_code_next_number = update_data["next_number"]

    log_activity(db, tenant.id, current.user_id, "updated", "project_code_settings", tenant.id,
                 tenant.name, details=update_data, request=request)
    db.commit()
    db.refresh(tenant)

    logger.info(f"Project code settings updated for {tenant.id} by {current.user_id}")

    return _code_settings(tenant)


@router.post("/project-codes/preview", response_model=ProjectCodePreviewResponse)
async def preview_project_codes(
    preview: ProjectCodePreviewRequest,
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant)
):
    """Render a format without consuming numbers."""
    codes = preview_codes(
        preview.format,
        preview.prefix or tenant.project_code_prefix,
        preview.start or tenant.project_code_next_number,
        preview.count,
    )
    return ProjectCodePreviewResponse(codes=codes)


def _template_response(template: ReportTemplate) -> ReportTemplateResponse:
    if template is None:
        return ReportTemplateResponse(**TEMPLATE_DEFAULTS, is_default=True)
    return ReportTemplateResponse.model_validate(template)


@router.get("/report-template", response_model=ReportTemplateResponse)
async def get_report_template(
    current: TenantMembership = Depends(get_current_membership),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """The stored template, or the defaults when none was saved."""
    template = db.query(ReportTemplate).filter(ReportTemplate.tenant_id == tenant.id).first()
    return _template_response(template)


@router.put("/report-template", response_model=ReportTemplateResponse)
async def save_report_template(
    template_data: ReportTemplateBody,
    request: Request,
    current: TenantMembership = Depends(require_admin),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    template = db.query(ReportTemplate).filter(ReportTemplate.tenant_id == tenant.id).first()
    if template is None:
        template = ReportTemplate(tenant_id=tenant.id, created_by=current.user_id)
        db.add(template)

    for field, value in template_data.model_dump(exclude_unset=True).items():
        # Non-nullable text fields fall back to their defaults when cleared
        if value is None and TEMPLATE_DEFAULTS.get(field) is not None:
            value = TEMPLATE_DEFAULTS[field]
        setattr(template, field, value)

    log_activity(db, tenant.id, current.user_id, "updated", "report_template", tenant.id,
                 tenant.name, request=request)
    db.commit()
    db.refresh(template)

    logger.info(f"Report template saved for {tenant.id} by {current.user_id}")

    return _template_response(template)
