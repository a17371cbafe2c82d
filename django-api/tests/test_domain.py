"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

import uuid

import pytest

from booking.domain import (
    BookingId,
    Capacity,
    MembershipStatus,
    Money,
    OrderStatus,
    ProductId,
    SessionStatus,
)
from booking.domain.errors import (
    CapacityError,
    ErrorCode,
    InsufficientCapacityError,
    SessionNotOpenError,
    ValidationError,
)
from tests.builders import make_membership, make_product, make_session


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_zero(self):
        """Money can be created with zero."""
        assert Money(0).cents == 0

    def test_money_rejects_negative_amount(self):
        """Money raises ValueError for negative amount."""
        with pytest.raises(ValueError):
            Money(-1)

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money(2505)) == "25.05"
        assert str(Money(7)) == "0.07"


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_zero(self):
        assert Capacity(0).value == 0

    def test_capacity_rejects_negative_value(self):
        with pytest.raises(ValueError):
            Capacity(-1)


class TestIdentifiers:
    """Tests for UUID-backed identifiers."""

    def test_from_string_valid_uuid(self):
        raw = str(uuid.uuid4())
        assert str(ProductId.from_string(raw)) == raw

    def test_from_string_invalid_uuid(self):
        with pytest.raises(ValueError):
            BookingId.from_string("not-a-uuid")


class TestSession:
    """Tests for Session invariants."""

    def test_remaining_cannot_exceed_total(self):
        with pytest.raises(ValueError):
            make_session(make_product(), total=4, remaining=5)

    def test_only_open_sessions_are_open(self):
        product = make_product()
        assert make_session(product).is_open
        assert not make_session(product, remaining=0, status=SessionStatus.FULL).is_open


class TestMembership:
    def test_past_due_membership_is_inactive(self):
        assert not make_membership("u1", status=MembershipStatus.PAST_DUE).is_active


class TestOrderStatus:
    """Tests for order status transitions."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.PAID),
            (OrderStatus.PENDING, OrderStatus.FAILED),
            (OrderStatus.PAID, OrderStatus.REFUNDED),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.REFUNDED),
            (OrderStatus.FAILED, OrderStatus.PAID),
            (OrderStatus.REFUNDED, OrderStatus.PAID),
        ],
    )
    def test_rejected_transitions(self, current, target):
        assert not current.can_transition_to(target)


class TestErrors:
    """Tests for domain error payloads."""

    def test_insufficient_capacity_message_names_counts(self):
        error = InsufficientCapacityError("s1", needed=3, available=1)
        assert error.code is ErrorCode.INSUFFICIENT_CAPACITY
        assert error.message == "Not enough spots. Need 3, available: 1"
        assert isinstance(error, CapacityError)

    def test_session_not_open_is_a_capacity_error(self):
        assert isinstance(SessionNotOpenError("s1", "full"), CapacityError)

    def test_validation_error_keeps_field(self):
        error = ValidationError("session_id is required", field="session_id")
        assert error.field == "session_id"
        assert str(error) == "INVALID_INPUT: session_id is required"
