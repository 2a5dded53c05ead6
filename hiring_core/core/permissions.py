"""
Role-based permission helpers for organization staff.

Defines roles and the capability checks the workflow services enforce.
"""

from typing import List, Optional

from hiring_core.errors import Forbidden


# Define role hierarchy
class Roles:
    """Organization member roles."""
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    RECRUITER = "RECRUITER"
    HIRING_MANAGER = "HIRING_MANAGER"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"
    
    # All roles list for validation
    ALL = [OWNER, ADMIN, RECRUITER, HIRING_MANAGER, MEMBER, VIEWER]
    
    # Unrestricted visibility over every job of the organization.
    # HIRING_MANAGER and MEMBER only see jobs they recruit, manage or are
    # assigned to review.
    FULL_ACCESS = [OWNER, ADMIN, RECRUITER, VIEWER]

    # May move candidates through stages
    PIPELINE = [OWNER, ADMIN, RECRUITER, HIRING_MANAGER]

    # Elevated roles: offers, approvals, stage configuration
    ELEVATED = [OWNER, ADMIN, RECRUITER]

    # Receive staff-facing pipeline notifications
    NOTIFIED_STAFF = [ADMIN, RECRUITER]


def check_role_permission(user_role: Optional[str], allowed_roles: List[str]) -> bool:
    """
    Check if user's role is in the list of allowed roles.
    
    Args:
        user_role: The user's current role
        allowed_roles: List of roles that are permitted
        
    Returns:
        True if user has permission, False otherwise
    """
    if not user_role or not allowed_roles:
        return False
    return user_role in allowed_roles


def has_full_access(user_role: Optional[str]) -> bool:
    """Check if the role sees every job of its organization."""
    return check_role_permission(user_role, Roles.FULL_ACCESS)


def raise_if_not_roles(user_role: Optional[str], allowed_roles: List[str], action: str = "perform this action") -> None:
    """
    Raise Forbidden if user doesn't have one of the allowed roles.
    
    Args:
        user_role: User's role
        allowed_roles: List of permitted roles
        action: Description of action being blocked
        
    Raises:
        Forbidden: if user doesn't have permission
    """
    if not check_role_permission(user_role, allowed_roles):
        raise Forbidden(
            "INSUFFICIENT_ROLE",
            f"Insufficient permissions to {action}. Required: {', '.join(allowed_roles)}",
        )
