"""
Standard type definitions for database models.

Provides consistent types for point and percentage fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard point type for balances and ledger amounts
# Precision: 18 digits total, 2 after decimal point
# Range: up to 9,999,999,999,999,999.99
MoneyType = DECIMAL(18, 2)

# Standard percentage type for level configuration
# Precision: 5 digits total, 2 after decimal point
# Range: 0.00 to 999.99
PercentType = DECIMAL(5, 2)
