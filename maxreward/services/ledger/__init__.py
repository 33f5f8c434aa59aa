"""
Community point ledger services.
"""

from maxreward.services.ledger.community_point_ledger import CommunityPointLedger


__all__ = [
    "CommunityPointLedger",
]
