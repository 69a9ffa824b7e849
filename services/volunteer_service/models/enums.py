"""Enum definitions for volunteer service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecision(str, enum.Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class ServiceType(str, enum.Enum):
    SERVICE_PROJECTS = "service_projects"
    COMMUNITY_EVENTS = "community_events"
    FOOD_RESCUES = "food_rescues"
    TUTORING = "tutoring"
    NOTES_OF_KINDNESS = "notes_of_kindness"
    WORKSHOPS = "workshops"
    DONATIONS = "donations"
    OTHER = "other"


class TierLabel(str, enum.Enum):
    NONE = "None"
    KINDNESS_AMBASSADOR = "Kindness Ambassador"  # 50h
    CHANGE_CATALYST = "Change Catalyst"  # 100h
    SERVICE_CHAMPION = "Service Champion"  # 150h
    LEGACY_LEADER = "Legacy Leader"  # 250h


SOCIAL_BUTTERFLY_BADGE = "Social Butterfly"
