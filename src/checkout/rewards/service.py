"""Reward ledger operations used by checkout and order fulfillment.

Each operation re-reads the ledger, applies one change and saves it under
protean's aggregate version check. A conflicting writer forces a
re-read, so a second redemption racing the first is re-validated against the
debited balance and fails with ``InsufficientBalance`` instead of overdrawing.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.domain import logger
from checkout.rewards.ledger import RewardLedger
from checkout.utils.concurrency import update_with_retry


def _load_ledger(user_id):
    repo = current_domain.repository_for(RewardLedger)
    try:
        return repo, repo.get(user_id)
    except ObjectNotFoundError:
        return repo, RewardLedger.open(user_id)


def get_ledger(user_id) -> RewardLedger:
    """The user's ledger, or an empty unsaved one if they never earned points."""
    return _load_ledger(user_id)[1]


def get_balance(user_id) -> int:
    return get_ledger(user_id).balance


def redeem_points(user_id, order_id, points) -> float:
    """Hold ``points`` against ``order_id`` and return the discount amount."""
    if not points:
        return 0.0
    discount = update_with_retry(
        lambda: _load_ledger(user_id),
        lambda ledger: ledger.hold(order_id, points),
    )
    logger.info("reward_points_held", user_id=user_id, order_id=order_id, points=points, discount=discount)
    return discount


def confirm_redemption(user_id, order_id) -> int:
    points = update_with_retry(
        lambda: _load_ledger(user_id),
        lambda ledger: ledger.commit_hold(order_id),
    )
    if points:
        logger.info("reward_points_redeemed", user_id=user_id, order_id=order_id, points=points)
    return points


def release_redemption(user_id, order_id) -> int:
    points = update_with_retry(
        lambda: _load_ledger(user_id),
        lambda ledger: ledger.release_hold(order_id),
    )
    if points:
        logger.info("reward_hold_released", user_id=user_id, order_id=order_id, points=points)
    return points


def restore_redemption(user_id, order_id) -> int:
    points = update_with_retry(
        lambda: _load_ledger(user_id),
        lambda ledger: ledger.restore(order_id),
    )
    if points:
        logger.info("reward_points_restored", user_id=user_id, order_id=order_id, points=points)
    return points


def earn_points(user_id, order_id, amount) -> int:
    points = update_with_retry(
        lambda: _load_ledger(user_id),
        lambda ledger: ledger.earn(order_id, amount),
    )
    if points:
        logger.info("reward_points_earned", user_id=user_id, order_id=order_id, points=points)
    return points
