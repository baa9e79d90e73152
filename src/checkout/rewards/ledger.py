"""RewardLedger aggregate — a customer's loyalty point account.

Points are earned at 1% of the amount paid and redeemed in blocks of 100,
each block worth 10 currency units off an order. Redemptions go through two
steps. A hold sets the points aside while payment is pending, then the hold
is either committed (balance debited) or released. The balance itself only
ever moves on commit, earn and restore, which keeps
``balance == total_earned - total_redeemed`` true at every step.

The ledger id is the user id. Writes go through
``checkout.utils.concurrency.update_with_retry`` so concurrent sessions cannot
spend the same points twice.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from checkout.domain import checkout
from checkout.errors import BelowMinimum, InsufficientBalance
from checkout.rewards.events import (
    RewardHoldReleased,
    RewardPointsEarned,
    RewardPointsHeld,
    RewardPointsRedeemed,
    RewardPointsRestored,
)

POINTS_PER_BLOCK = 100
VALUE_PER_BLOCK = 10
MIN_REDEEMABLE_POINTS = 100
EARN_PERCENT = 1


# ---------------------------------------------------------------------------
# Conversion rules
# ---------------------------------------------------------------------------
def redeemable_points(points: int) -> int:
    """Floor ``points`` to a whole number of redemption blocks."""
    return (points // POINTS_PER_BLOCK) * POINTS_PER_BLOCK


def discount_for(points: int) -> float:
    return float((redeemable_points(points) // POINTS_PER_BLOCK) * VALUE_PER_BLOCK)


def max_points_for_amount(amount: float) -> int:
    """Largest redeemable point count whose discount does not exceed ``amount``."""
    return int(amount // VALUE_PER_BLOCK) * POINTS_PER_BLOCK


def points_for_amount(amount: float) -> int:
    if amount <= 0:
        return 0
    return int(amount * EARN_PERCENT // 100)


def quote_redemption(points: int, available: int) -> tuple[int, float]:
    """Validate a redemption request and return ``(accepted_points, discount)``."""
    if points is None or points == 0:
        return 0, 0.0
    if points < 0:
        raise ValidationError({"reward_points": ["Reward points cannot be negative"]})
    if points < MIN_REDEEMABLE_POINTS:
        raise BelowMinimum({"reward_points": [f"Minimum {MIN_REDEEMABLE_POINTS} points required for redemption"]})
    if points > available:
        raise InsufficientBalance(
            {"reward_points": [f"Insufficient reward points: requested {points}, available {available}"]}
        )
    accepted = redeemable_points(points)
    return accepted, discount_for(accepted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class TransactionKind(Enum):
    EARNED = "Earned"
    REDEEMED = "Redeemed"
    RESTORED = "Restored"


class HoldStatus(Enum):
    HELD = "Held"
    COMMITTED = "Committed"
    RELEASED = "Released"
    RESTORED = "Restored"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="RewardLedger")
class RewardTransaction:
    """One line of the ledger's history."""

    kind = String(choices=TransactionKind, required=True)
    points = Integer(required=True, min_value=1)
    order_id = Identifier()
    description = String(max_length=255)
    occurred_at = DateTime(required=True)


@checkout.entity(part_of="RewardLedger")
class RedemptionHold:
    """Points set aside for an order until its payment settles."""

    order_id = Identifier(required=True)
    points = Integer(required=True, min_value=1)
    discount_amount = Float(required=True)
    status = String(choices=HoldStatus, default=HoldStatus.HELD.value)
    held_at = DateTime(required=True)
    settled_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@checkout.aggregate
class RewardLedger:
    user_id = Identifier(required=True)
    balance = Integer(default=0)
    total_earned = Integer(default=0)
    total_redeemed = Integer(default=0)
    transactions = HasMany(RewardTransaction)
    holds = HasMany(RedemptionHold)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def balance_must_equal_earned_minus_redeemed(self):
        if self.balance != (self.total_earned or 0) - (self.total_redeemed or 0):
            raise ValidationError({"balance": ["Balance must equal total earned minus total redeemed"]})
        if self.balance < 0:
            raise ValidationError({"balance": ["Balance cannot be negative"]})

    @invariant.post
    def holds_cannot_exceed_balance(self):
        if self.held_points > self.balance:
            raise ValidationError({"holds": ["Held points cannot exceed the balance"]})

    @classmethod
    def open(cls, user_id):
        now = datetime.now(UTC)
        return cls(id=user_id, user_id=user_id, created_at=now, updated_at=now)

    @property
    def held_points(self) -> int:
        return sum(h.points for h in self.holds if h.status == HoldStatus.HELD.value)

    @property
    def available_points(self) -> int:
        return self.balance - self.held_points

    def _hold_for(self, order_id, *statuses):
        return next(
            (h for h in self.holds if h.order_id == order_id and h.status in statuses),
            None,
        )

    def _record(self, kind, points, order_id, description, at):
        self.add_transactions(
            RewardTransaction(
                kind=kind.value,
                points=points,
                order_id=order_id,
                description=description,
                occurred_at=at,
            )
        )

    def hold(self, order_id, points) -> float:
        """Set ``points`` aside for ``order_id`` and return the discount they buy.

        Asking again for an order that already has a live hold returns that
        hold's discount without reserving more points.
        """
        existing = self._hold_for(order_id, HoldStatus.HELD.value, HoldStatus.COMMITTED.value)
        if existing is not None:
            return existing.discount_amount

        accepted, discount = quote_redemption(points, self.available_points)
        if accepted == 0:
            return 0.0

        now = datetime.now(UTC)
        self.add_holds(
            RedemptionHold(
                order_id=order_id,
                points=accepted,
                discount_amount=discount,
                status=HoldStatus.HELD.value,
                held_at=now,
            )
        )
        self.updated_at = now

        self.raise_(
            RewardPointsHeld(
                user_id=self.user_id,
                order_id=order_id,
                points=accepted,
                discount_amount=discount,
                held_at=now,
            )
        )
        return discount

    def commit_hold(self, order_id) -> int:
        """Debit the held points for ``order_id``. Returns the points debited, 0 if already done."""
        hold = self._hold_for(order_id, HoldStatus.HELD.value)
        if hold is None:
            if self._hold_for(order_id, HoldStatus.COMMITTED.value) is not None:
                return 0
            raise ValidationError({"holds": [f"No reward hold for order {order_id}"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            hold.status = HoldStatus.COMMITTED.value
            hold.settled_at = now
            self.balance -= hold.points
            self.total_redeemed += hold.points
            self._record(
                TransactionKind.REDEEMED,
                hold.points,
                order_id,
                f"Redeemed for order {order_id}",
                now,
            )
        self.updated_at = now

        self.raise_(
            RewardPointsRedeemed(
                user_id=self.user_id,
                order_id=order_id,
                points=hold.points,
                balance=self.balance,
                redeemed_at=now,
            )
        )
        return hold.points

    def release_hold(self, order_id) -> int:
        hold = self._hold_for(order_id, HoldStatus.HELD.value)
        if hold is None:
            return 0

        now = datetime.now(UTC)
        hold.status = HoldStatus.RELEASED.value
        hold.settled_at = now
        self.updated_at = now

        self.raise_(
            RewardHoldReleased(
                user_id=self.user_id,
                order_id=order_id,
                points=hold.points,
                released_at=now,
            )
        )
        return hold.points

    def restore(self, order_id) -> int:
        """Give back points committed for a cancelled order."""
        hold = self._hold_for(order_id, HoldStatus.COMMITTED.value)
        if hold is None:
            return 0

        now = datetime.now(UTC)
        with atomic_change(self):
            hold.status = HoldStatus.RESTORED.value
            hold.settled_at = now
            self.balance += hold.points
            self.total_redeemed -= hold.points
            self._record(
                TransactionKind.RESTORED,
                hold.points,
                order_id,
                f"Restored from cancelled order {order_id}",
                now,
            )
        self.updated_at = now

        self.raise_(
            RewardPointsRestored(
                user_id=self.user_id,
                order_id=order_id,
                points=hold.points,
                balance=self.balance,
                restored_at=now,
            )
        )
        return hold.points

    def earn(self, order_id, amount) -> int:
        """Credit 1% of ``amount`` for ``order_id``. Crediting the same order twice is a no-op."""
        already = any(
            t.kind == TransactionKind.EARNED.value and t.order_id == order_id for t in self.transactions
        )
        points = points_for_amount(amount)
        if already or points == 0:
            return 0

        now = datetime.now(UTC)
        with atomic_change(self):
            self.balance += points
            self.total_earned += points
            self._record(
                TransactionKind.EARNED,
                points,
                order_id,
                f"Earned on order {order_id}",
                now,
            )
        self.updated_at = now

        self.raise_(
            RewardPointsEarned(
                user_id=self.user_id,
                order_id=order_id,
                points=points,
                balance=self.balance,
                earned_at=now,
            )
        )
        return points

    def history(self) -> list:
        """Transactions, newest first."""
        ordered = sorted(enumerate(self.transactions), key=lambda pair: (pair[1].occurred_at, pair[0]), reverse=True)
        return [txn for _, txn in ordered]
