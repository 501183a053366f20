"""
Status transition tables for consultations, onboarding and applications
"""

import logging

logger = logging.getLogger(__name__)

# ============================================================================
# CONSULTATIONS
# ============================================================================

CONSULTATION_STATUSES = ("pending", "under_review", "confirmed", "rejected", "rescheduled")

# Operator actions and the statuses they may start from
CONSULTATION_ACTION_SOURCES = {
    "under_review": ("pending",),
    "confirmed": ("pending", "under_review"),
    "rejected": ("pending", "under_review", "rescheduled"),
    "rescheduled": ("pending", "under_review"),
    # Prospect resubmits new slots
    "pending": ("rescheduled",),
}

# Submissions for the same email are blocked while one of these is open
CONSULTATION_UNRESOLVED = ("pending", "under_review")


def allowed_consultation_sources(new_status: str) -> tuple[str, ...]:
    return CONSULTATION_ACTION_SOURCES.get(new_status, ())


# ============================================================================
# ONBOARDING
# ============================================================================

ONBOARDING_ACTION_SOURCES = {
    "approve": ("pending_approval",),
    "pause": ("active",),
    "reject": ("pending_approval",),
}


# ============================================================================
# APPLICATIONS
# ============================================================================

APPLICATION_STATUSES = (
    "applied",
    "under_review",
    "interview_scheduled",
    "interview_completed",
    "offer_received",
    "offer_accepted",
    "rejected",
    "withdrawn",
)

APPLICATION_TRANSITIONS = {
    "applied": ["under_review", "interview_scheduled", "rejected", "withdrawn"],
    "under_review": ["interview_scheduled", "rejected", "withdrawn"],
    "interview_scheduled": ["interview_completed", "rejected", "withdrawn"],
    "interview_completed": ["offer_received", "rejected", "withdrawn"],
    "offer_received": ["offer_accepted", "rejected", "withdrawn"],
    "offer_accepted": [],  # Terminal state
    "rejected": [],  # Terminal state
    "withdrawn": [],  # Terminal state
}

APPLICATION_TERMINAL = frozenset({"offer_accepted", "rejected", "withdrawn"})


def is_application_closed(status: str) -> bool:
    return status in APPLICATION_TERMINAL


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate if an application status transition is allowed

    Application statuses: applied → under_review → interview_scheduled →
    interview_completed → offer_received → offer_accepted, with rejected and
    withdrawn reachable from every open status.

    Note:
    - Terminal statuses accept nothing, not even the same status again
    - Callers check is_application_closed first to report the closed case distinctly

    Args:
        current_status: Current application status
        new_status: Desired new status

    Returns:
        bool: True if transition is valid, False otherwise
    """
    return new_status in APPLICATION_TRANSITIONS.get(current_status, [])
