"""
MaxReward community point engine.

Distributes referral and purchase rewards across a 30-level referral tree.
"""

__version__ = "1.0.0"
