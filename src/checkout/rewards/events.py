"""Domain events for the RewardLedger aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from checkout.domain import checkout


@checkout.event(part_of="RewardLedger")
class RewardPointsEarned:
    """Points were credited for a completed order."""

    __version__ = 1

    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    points = Integer(required=True)
    balance = Integer(required=True)
    earned_at = DateTime(required=True)


@checkout.event(part_of="RewardLedger")
class RewardPointsHeld:
    """Points were set aside against an order awaiting payment."""

    __version__ = 1

    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    points = Integer(required=True)
    discount_amount = Float(required=True)
    held_at = DateTime(required=True)


@checkout.event(part_of="RewardLedger")
class RewardPointsRedeemed:
    """A hold was committed after payment confirmation and the balance debited."""

    __version__ = 1

    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    points = Integer(required=True)
    balance = Integer(required=True)
    redeemed_at = DateTime(required=True)


@checkout.event(part_of="RewardLedger")
class RewardHoldReleased:
    __version__ = 1

    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    points = Integer(required=True)
    released_at = DateTime(required=True)


@checkout.event(part_of="RewardLedger")
class RewardPointsRestored:
    """Redeemed points were given back because the order was cancelled."""

    __version__ = 1

    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    points = Integer(required=True)
    balance = Integer(required=True)
    restored_at = DateTime(required=True)
