"""
Repositories.

Data access layer for all models.
"""

from maxreward.repositories.base import BaseRepository
from maxreward.repositories.company_reserve_repository import (
    CompanyReserveRepository,
)
from maxreward.repositories.cp_distribution_pool_repository import (
    CpDistributionPoolRepository,
)
from maxreward.repositories.cp_level_config_repository import (
    CpLevelConfigRepository,
)
from maxreward.repositories.cp_transaction_repository import (
    CpTransactionFilters,
    CpTransactionRepository,
)
from maxreward.repositories.cp_unlock_history_repository import (
    CpUnlockHistoryRepository,
)
from maxreward.repositories.member_community_point_repository import (
    MemberCommunityPointRepository,
)
from maxreward.repositories.member_repository import MemberRepository
from maxreward.repositories.member_wallet_repository import (
    MemberWalletRepository,
)
from maxreward.repositories.notification_repository import (
    NotificationRepository,
)
from maxreward.repositories.point_transaction_repository import (
    PointTransactionRepository,
)
from maxreward.repositories.referral_repository import ReferralRepository

__all__ = [
    "BaseRepository",
    "CompanyReserveRepository",
    "CpDistributionPoolRepository",
    "CpLevelConfigRepository",
    "CpTransactionFilters",
    "CpTransactionRepository",
    "CpUnlockHistoryRepository",
    "MemberCommunityPointRepository",
    "MemberRepository",
    "MemberWalletRepository",
    "NotificationRepository",
    "PointTransactionRepository",
    "ReferralRepository",
]
