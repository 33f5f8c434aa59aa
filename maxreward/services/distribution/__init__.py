"""
Point distribution services.

- orchestrator: CP walk up the referral chain
- pool_split: PP/RP/CP/CR shares of a pool
- registration: member registration flow
- purchase: purchase reward flow
"""

from maxreward.services.distribution.orchestrator import (
    CommunityPointDistributor,
    DistributionResult,
    LevelCredit,
)
from maxreward.services.distribution.pool_split import (
    PoolSplit,
    purchase_split,
    registration_split,
    split_pool,
)
from maxreward.services.distribution.purchase import (
    PurchaseRewardResult,
    PurchaseRewardService,
)
from maxreward.services.distribution.registration import (
    RegistrationResult,
    RegistrationRewardService,
)


__all__ = [
    "CommunityPointDistributor",
    "DistributionResult",
    "LevelCredit",
    "PoolSplit",
    "PurchaseRewardResult",
    "PurchaseRewardService",
    "RegistrationResult",
    "RegistrationRewardService",
    "purchase_split",
    "registration_split",
    "split_pool",
]
