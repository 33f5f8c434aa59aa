"""
Exception types of the distribution engine.

Defines the error taxonomy and helpers to classify database errors.
"""

from sqlalchemy.exc import DBAPIError, OperationalError


class DistributionEngineError(Exception):
    """Base class for community point engine errors."""


class ConfigIntegrityError(DistributionEngineError):
    """Level configuration set violates its invariants."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]


class MissingWalletError(DistributionEngineError):
    """A member has no wallet row."""

    def __init__(self, member_id: int) -> None:
        super().__init__(f"Wallet not found for member {member_id}")
        self.member_id = member_id


class ConcurrencyConflictError(DistributionEngineError):
    """Lock acquisition or conflict retries were exhausted."""

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(
            f"{operation} failed after {attempts} attempts due to "
            f"concurrent updates"
        )
        self.operation = operation
        self.attempts = attempts


class GraphIntegrityError(DistributionEngineError):
    """Referral graph contains a cycle."""

    def __init__(self, member_id: int, path: list[int]) -> None:
        super().__init__(
            f"Referral cycle detected at member {member_id}: "
            f"{' -> '.join(str(p) for p in path)}"
        )
        self.member_id = member_id
        self.path = path


class InsufficientReferralPointsError(DistributionEngineError):
    """Referrer does not hold enough RP to invite a member."""

    def __init__(self, member_id: int, balance, required) -> None:
        super().__init__(
            f"Member {member_id} has {balance} RP, {required} required"
        )
        self.member_id = member_id
        self.balance = balance
        self.required = required


class ReferralAlreadyExistsError(DistributionEngineError):
    """Member already has a sponsor."""

    def __init__(self, child_member_id: int, parent_member_id: int) -> None:
        super().__init__(
            f"Member {child_member_id} is already referred by member "
            f"{parent_member_id}"
        )
        self.child_member_id = child_member_id
        self.parent_member_id = parent_member_id


class DuplicateMemberError(DistributionEngineError):
    """Phone or email is already registered."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"Member with {field} {value!r} already exists")
        self.field = field
        self.value = value


class PurchaseAlreadyRewardedError(DistributionEngineError):
    """Points for a purchase were already distributed."""

    def __init__(self, purchase_id: int) -> None:
        super().__init__(f"Purchase {purchase_id} was already rewarded")
        self.purchase_id = purchase_id


# SQLSTATE codes of lock and serialization conflicts (PostgreSQL)
LOCK_CONFLICT_SQLSTATES = (
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
)

# Messages of lock conflicts reported by drivers without SQLSTATE
LOCK_CONFLICT_MESSAGES = (
    "database is locked",
    "deadlock detected",
    "could not serialize access",
    "could not obtain lock",
)


def is_lock_conflict(exc: BaseException) -> bool:
    """
    Check if a database error is a retryable lock conflict.

    Args:
        exc: Exception to check

    Returns:
        True if the transaction can be retried
    """
    if not isinstance(exc, (OperationalError, DBAPIError)):
        return False

    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in LOCK_CONFLICT_SQLSTATES:
        return True

    message = str(orig if orig is not None else exc).lower()
    return any(fragment in message for fragment in LOCK_CONFLICT_MESSAGES)
