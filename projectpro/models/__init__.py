"""
Database Models

All tenant-owned models include tenant_id for multi-tenant isolation.
This is enforced at both application and database level.
"""
from projectpro.models.tenant import Tenant
from projectpro.models.user import User, TenantMembership, TenantRole, MembershipStatus, ROLE_HIERARCHY
from projectpro.models.invitation import TenantInvitation
from projectpro.models.activity import ActivityLog
from projectpro.models.project import Project, ProjectMember
from projectpro.models.task import Task, TaskDependency, TaskComment, TaskContact
from projectpro.models.contact import Contact
from projectpro.models.document import Document
from projectpro.models.calendar import CalendarEvent
from projectpro.models.update_log import UpdateLog
from projectpro.models.report_template import ReportTemplate
from projectpro.models.messaging import Conversation, ConversationParticipant, Message
from projectpro.models.billing import SubscriptionPlan, TenantSubscription, BillingRecord

__all__ = [
    "Tenant",
    "User",
    "TenantMembership",
    "TenantRole",
    "MembershipStatus",
    "ROLE_HIERARCHY",
    "TenantInvitation",
    "ActivityLog",
    "Project",
    "ProjectMember",
    "Task",
    "TaskDependency",
    "TaskComment",
    "TaskContact",
    "Contact",
    "Document",
    "CalendarEvent",
    "UpdateLog",
    "ReportTemplate",
    "Conversation",
    "ConversationParticipant",
    "Message",
    "SubscriptionPlan",
    "TenantSubscription",
    "BillingRecord",
]
