"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from hiring_core.models.account import Account
from hiring_core.models.organization import Organization, OrganizationMember
from hiring_core.models.job import Job, JobAssignment
from hiring_core.models.application import Application
from hiring_core.models.offer import Offer
from hiring_core.models.approval_request import ApprovalRequest
from hiring_core.models.score import Score
from hiring_core.models.rated_profile import CoachProfile, MentorProfile
from hiring_core.models.scorecard import Scorecard, Interview
from hiring_core.models.audit_log import AuditLog
from hiring_core.models.notification import Notification, NotificationJob

# Export all models
__all__ = [
    "Account",
    "Organization",
    "OrganizationMember",
    "Job",
    "JobAssignment",
    "Application",
    "Offer",
    "ApprovalRequest",
    "Score",
    "CoachProfile",
    "MentorProfile",
    "Scorecard",
    "Interview",
    "AuditLog",
    "Notification",
    "NotificationJob",
]
