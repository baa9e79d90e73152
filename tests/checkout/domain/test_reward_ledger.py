"""Tests for the RewardLedger aggregate."""

import pytest
from checkout.errors import InsufficientBalance
from checkout.rewards.events import (
    RewardHoldReleased,
    RewardPointsEarned,
    RewardPointsHeld,
    RewardPointsRedeemed,
    RewardPointsRestored,
)
from checkout.rewards.ledger import HoldStatus, RewardLedger, TransactionKind
from protean.exceptions import ValidationError


def _make_ledger(points=0):
    ledger = RewardLedger.open("cust-001")
    if points:
        ledger.earn("seed-order", points * 100)
    ledger._events.clear()
    return ledger


class TestOpen:
    def test_ledger_id_is_user_id(self):
        ledger = RewardLedger.open("cust-001")
        assert ledger.id == "cust-001"
        assert ledger.user_id == "cust-001"

    def test_starts_empty(self):
        ledger = RewardLedger.open("cust-001")
        assert ledger.balance == 0
        assert ledger.available_points == 0


class TestEarn:
    def test_credits_one_percent(self):
        ledger = _make_ledger()
        assert ledger.earn("ord-1", 19950) == 199
        assert ledger.balance == 199
        assert ledger.total_earned == 199

    def test_same_order_is_credited_once(self):
        ledger = _make_ledger()
        ledger.earn("ord-1", 19950)
        assert ledger.earn("ord-1", 19950) == 0
        assert ledger.balance == 199

    def test_raises_event(self):
        ledger = _make_ledger()
        ledger.earn("ord-1", 5000)
        assert len(ledger._events) == 1
        assert isinstance(ledger._events[0], RewardPointsEarned)
        assert ledger._events[0].points == 50


class TestHold:
    def test_hold_returns_discount(self):
        ledger = _make_ledger(500)
        assert ledger.hold("ord-1", 500) == 50.0

    def test_hold_reduces_available_not_balance(self):
        ledger = _make_ledger(500)
        ledger.hold("ord-1", 300)
        assert ledger.balance == 500
        assert ledger.held_points == 300
        assert ledger.available_points == 200

    def test_hold_floors_to_blocks(self):
        ledger = _make_ledger(500)
        ledger.hold("ord-1", 250)
        assert ledger.held_points == 200

    def test_repeat_hold_for_same_order_is_noop(self):
        ledger = _make_ledger(500)
        ledger.hold("ord-1", 300)
        assert ledger.hold("ord-1", 300) == 30.0
        assert ledger.held_points == 300

    def test_cannot_hold_more_than_available(self):
        ledger = _make_ledger(200)
        ledger.hold("ord-1", 200)
        with pytest.raises(InsufficientBalance):
            ledger.hold("ord-2", 100)

    def test_raises_held_event(self):
        ledger = _make_ledger(200)
        ledger.hold("ord-1", 200)
        assert isinstance(ledger._events[-1], RewardPointsHeld)


class TestCommit:
    def test_commit_debits_balance(self):
        ledger = _make_ledger(500)
        ledger.hold("ord-1", 500)
        assert ledger.commit_hold("ord-1") == 500
        assert ledger.balance == 0
        assert ledger.total_redeemed == 500
        assert ledger.held_points == 0

    def test_commit_twice_is_noop(self):
        ledger = _make_ledger(500)
        ledger.hold("ord-1", 500)
        ledger.commit_hold("ord-1")
        assert ledger.commit_hold("ord-1") == 0
        assert ledger.balance == 0

    def test_commit_without_hold_rejected(self):
        ledger = _make_ledger(500)
        with pytest.raises(ValidationError):
            ledger.commit_hold("ord-1")

    def test_commit_records_redeemed_transaction(self):
        ledger = _make_ledger(500)
        ledger.hold("ord-1", 500)
        ledger.commit_hold("ord-1")
        assert ledger.history()[0].kind == TransactionKind.REDEEMED.value
        assert isinstance(ledger._events[-1], RewardPointsRedeemed)


class TestReleaseAndRestore:
    def test_release_frees_held_points(self):
        ledger = _make_ledger(300)
        ledger.hold("ord-1", 300)
        assert ledger.release_hold("ord-1") == 300
        assert ledger.available_points == 300
        assert isinstance(ledger._events[-1], RewardHoldReleased)

    def test_release_without_hold_is_noop(self):
        ledger = _make_ledger(300)
        assert ledger.release_hold("ord-1") == 0

    def test_released_points_can_be_held_again(self):
        ledger = _make_ledger(300)
        ledger.hold("ord-1", 300)
        ledger.release_hold("ord-1")
        assert ledger.hold("ord-1", 300) == 30.0

    def test_restore_returns_committed_points(self):
        ledger = _make_ledger(300)
        ledger.hold("ord-1", 300)
        ledger.commit_hold("ord-1")
        assert ledger.restore("ord-1") == 300
        assert ledger.balance == 300
        assert ledger.total_redeemed == 0
        assert isinstance(ledger._events[-1], RewardPointsRestored)

    def test_restore_only_once(self):
        ledger = _make_ledger(300)
        ledger.hold("ord-1", 300)
        ledger.commit_hold("ord-1")
        ledger.restore("ord-1")
        assert ledger.restore("ord-1") == 0
        assert ledger.balance == 300

    def test_restore_marks_hold(self):
        ledger = _make_ledger(300)
        ledger.hold("ord-1", 300)
        ledger.commit_hold("ord-1")
        ledger.restore("ord-1")
        assert ledger.holds[0].status == HoldStatus.RESTORED.value


class TestInvariants:
    def test_balance_tracks_earned_minus_redeemed(self):
        ledger = _make_ledger(1000)
        ledger.hold("ord-1", 400)
        ledger.commit_hold("ord-1")
        ledger.earn("ord-2", 10000)
        assert ledger.balance == ledger.total_earned - ledger.total_redeemed == 700

    def test_negative_balance_rejected(self):
        ledger = _make_ledger(100)
        with pytest.raises(ValidationError):
            ledger.total_redeemed = 200


class TestHistory:
    def test_newest_first(self):
        ledger = _make_ledger(300)
        ledger.hold("ord-1", 300)
        ledger.commit_hold("ord-1")
        ledger.earn("ord-2", 10000)

        kinds = [t.kind for t in ledger.history()]
        assert kinds == [
            TransactionKind.EARNED.value,
            TransactionKind.REDEEMED.value,
            TransactionKind.EARNED.value,
        ]
