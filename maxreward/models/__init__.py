"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from maxreward.models.base import Base
from maxreward.models.company_reserve import COMPANY_RESERVE_ID, CompanyReserve
from maxreward.models.cp_distribution_pool import CpDistributionPool
from maxreward.models.cp_level_config import CpLevelConfig
from maxreward.models.cp_transaction import CpTransaction
from maxreward.models.cp_unlock_history import CpUnlockHistory
from maxreward.models.enums import (
    CpTransactionStatus,
    CpTransactionType,
    DistributionReason,
    MemberStatus,
    NotificationStatus,
    NotificationType,
    PointDirection,
    PointType,
)
from maxreward.models.member import Member
from maxreward.models.member_community_point import MemberCommunityPoint
from maxreward.models.member_wallet import MemberWallet
from maxreward.models.notification import Notification
from maxreward.models.point_transaction import PointTransaction
from maxreward.models.referral import Referral

__all__ = [
    # Base
    "Base",
    # Enums
    "CpTransactionStatus",
    "CpTransactionType",
    "DistributionReason",
    "MemberStatus",
    "NotificationStatus",
    "NotificationType",
    "PointDirection",
    "PointType",
    # Core Models
    "Member",
    "MemberWallet",
    "Referral",
    # Community point ledger
    "CpLevelConfig",
    "CpTransaction",
    "CpUnlockHistory",
    "CpDistributionPool",
    "MemberCommunityPoint",
    # Points and reserve
    "PointTransaction",
    "CompanyReserve",
    "COMPANY_RESERVE_ID",
    # Notifications
    "Notification",
]
