"""
Enumerations shared by ledger models and services.
"""

from enum import StrEnum


class CpTransactionStatus(StrEnum):
    """State of a community point ledger row."""

    AVAILABLE = "available"  # Credited to an unlocked level
    ONHOLD = "onhold"  # Credited to a locked level, waiting for unlock
    RELEASED = "released"  # Was on hold, released by an unlock


class CpTransactionType(StrEnum):
    """How a ledger row came to its current state."""

    EARNED = "earned"
    UNLOCKED = "unlocked"


class DistributionReason(StrEnum):
    """Business event that triggered a distribution."""

    REGISTRATION = "registration"
    PURCHASE = "purchase"


class PointType(StrEnum):
    """Point kind of a general wallet transaction."""

    PP = "pp"  # Personal Points
    RP = "rp"  # Referral Points
    CP = "cp"  # Community Points
    CR = "cr"  # Company Reserve


class PointDirection(StrEnum):
    """Credit or debit."""

    CREDITED = "credited"
    DEBITED = "debited"


class NotificationType(StrEnum):
    """Notification kinds produced by the engine."""

    COMMUNITY_POINTS_EARNED = "community_points_earned"
    REFERRAL_POINTS_EARNED = "referral_points_earned"
    PERSONAL_POINTS_EARNED = "personal_points_earned"
    CP_LEVELS_UNLOCKED = "cp_levels_unlocked"
    REFERRAL_INVITE = "referral_invite"


class NotificationStatus(StrEnum):
    """Read state of a notification."""

    UNREAD = "unread"
    READ = "read"


class MemberStatus(StrEnum):
    """Member account status."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
