"""
Referral tree services.
"""

from maxreward.services.referral.graph import ReferralGraph, UplineEntry


__all__ = [
    "ReferralGraph",
    "UplineEntry",
]
