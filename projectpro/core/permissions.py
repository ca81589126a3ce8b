"""
Permission System (RBAC)

Role checks are made against the caller's membership in the request
tenant, never against a global user attribute. Route-level role gates
live in api.deps; the predicates here cover record-level rules.

Role hierarchy: OWNER > ADMIN > MANAGER > MEMBER > VIEWER
"""
from typing import Optional
from projectpro.models.user import TenantMembership, TenantRole


def is_admin(membership: TenantMembership) -> bool:
    return membership.has_permission(TenantRole.ADMIN)


def can_modify_project(membership: TenantMembership) -> bool:
    """Members and above edit any project (collaborative editing)."""
    return membership.has_permission(TenantRole.MEMBER)


def can_delete_project(membership: TenantMembership, created_by: Optional[str]) -> bool:
    """
    Admins delete any project; members only the ones they created.
    Viewers cannot delete anything.
    """
    if is_admin(membership):
        return True
    if membership.role == TenantRole.VIEWER:
        return False
    return created_by is not None and membership.user_id == created_by


def can_modify_owned(membership: TenantMembership, owner_id: Optional[str]) -> bool:
    """Creator-or-admin rule used by comments and update logs."""
    if is_admin(membership):
        return True
    return owner_id is not None and membership.user_id == owner_id


def can_manage_member(actor: TenantMembership, target: TenantMembership,
                      new_role: Optional[TenantRole] = None) -> bool:
    """
    Check whether actor may change or remove target's membership.

    Rules:
    - Only admins and owners manage the team
    - Only owners touch owners, or grant the owner role
    """
    if not is_admin(actor):
        return False
    if actor.role != TenantRole.OWNER:
        if target.role == TenantRole.OWNER or new_role == TenantRole.OWNER:
            return False
    return True
