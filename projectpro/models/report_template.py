"""
Report Template Model

Per-tenant branding used when rendering project update reports.
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from datetime import datetime
from projectpro.database import Base
import uuid

TEMPLATE_DEFAULTS = {
    "company_name": None,
    "company_address": None,
    "company_phone": None,
    "company_email": None,
    "company_website": None,
    "report_header": "PROJECT UPDATE REPORT",
    "report_subheader": "Construction Progress Documentation",
    "default_attention_prefix": "Project Manager",
    "signature_title": "Authorized Representative",
    "signature_text": (
        "This report accurately reflects the current status of the project "
        "as of the date indicated."
    ),
    "footer_text": "Confidential - Property of [Company Name]",
    "include_company_logo": True,
    "include_page_numbers": True,
    "include_generation_date": True,
}


class ReportTemplate(Base):
    __tablename__ = "report_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # One template per tenant
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )

    company_name = Column(String(255), nullable=True)
    company_address = Column(Text, nullable=True)
    company_phone = Column(String(50), nullable=True)
    company_email = Column(String(255), nullable=True)
    company_website = Column(String(255), nullable=True)

    report_header = Column(String(255), default=TEMPLATE_DEFAULTS["report_header"], nullable=False)
    report_subheader = Column(String(255), default=TEMPLATE_DEFAULTS["report_subheader"], nullable=False)
    default_attention_prefix = Column(
        String(100), default=TEMPLATE_DEFAULTS["default_attention_prefix"], nullable=False
    )
    signature_title = Column(String(255), default=TEMPLATE_DEFAULTS["signature_title"], nullable=False)
    signature_text = Column(Text, default=TEMPLATE_DEFAULTS["signature_text"], nullable=False)
    footer_text = Column(Text, default=TEMPLATE_DEFAULTS["footer_text"], nullable=False)

    include_company_logo = Column(Boolean, default=True, nullable=False)
    include_page_numbers = Column(Boolean, default=True, nullable=False)
    include_generation_date = Column(Boolean, default=True, nullable=False)

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
