"""
Services.

Business logic of the community point engine.
"""

from maxreward.services.base_service import BaseService
from maxreward.services.distribution import (
    CommunityPointDistributor,
    PurchaseRewardService,
    RegistrationRewardService,
)
from maxreward.services.ledger import CommunityPointLedger
from maxreward.services.level_config_service import LevelConfigService
from maxreward.services.notification_service import NotificationService
from maxreward.services.referral import ReferralGraph
from maxreward.services.reporting import CpReportService
from maxreward.services.unlock import UnlockGate
from maxreward.services.wallet_service import WalletService


__all__ = [
    "BaseService",
    "CommunityPointDistributor",
    "CommunityPointLedger",
    "CpReportService",
    "LevelConfigService",
    "NotificationService",
    "PurchaseRewardService",
    "ReferralGraph",
    "RegistrationRewardService",
    "UnlockGate",
    "WalletService",
]
