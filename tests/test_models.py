"""Tests for subscription status helpers and derived fields."""

from datetime import UTC, datetime

import pytest

from app.core.errors import UnknownStatusError
from app.models.shared import from_timestamp
from app.models.subscription import (
    TERMINAL_STATUSES,
    SubscriptionStatus,
    is_terminal,
    parse_status,
    remaining_count_for,
)
from app.repositories.subscription_repository import SubscriptionRepository


class TestParseStatus:
    @pytest.mark.parametrize("status", list(SubscriptionStatus))
    def test_known_statuses(self, status):
        """Test parsing every known subscription status."""
        assert parse_status(status.value) == status

    def test_normalises_case_and_whitespace(self):
        """Test that status parsing ignores case and surrounding whitespace."""
        assert parse_status(" Active ") == SubscriptionStatus.ACTIVE

    @pytest.mark.parametrize("value", ["on_hold", "", None, 3])
    def test_unknown_status(self, value):
        """Test that an unknown status raises UnknownStatusError."""
        with pytest.raises(UnknownStatusError):
            parse_status(value)

    def test_unknown_status_is_value_error(self):
        """Test that UnknownStatusError is a ValueError."""
        with pytest.raises(ValueError):
            parse_status("mystery")


class TestTerminalStatuses:
    def test_terminal_set(self):
        """Test which statuses are terminal."""
        assert TERMINAL_STATUSES == {
            SubscriptionStatus.CANCELLED,
            SubscriptionStatus.COMPLETED,
            SubscriptionStatus.EXPIRED,
        }

    def test_is_terminal_accepts_strings(self):
        """Test is_terminal with raw status strings."""
        assert is_terminal("cancelled") is True
        assert is_terminal("halted") is False


class TestRemainingCount:
    @pytest.mark.parametrize(
        ("total", "paid", "expected"),
        [(12, 0, 12), (12, 5, 7), (12, 12, 0), (3, 5, 0), (None, None, 0)],
    )
    def test_remaining_count_for(self, total, paid, expected):
        """Test remaining count never goes below zero."""
        assert remaining_count_for(total, paid) == expected

    def test_derived_on_insert_and_update(self, db_session):
        """Test remaining_count is derived on insert and update."""
        repo = SubscriptionRepository(db_session)
        subscription = repo.create(
            subscription_id="sub_1",
            user_id="user_1",
            plan_id="plan_1",
            customer_id="cust_1",
            status=SubscriptionStatus.ACTIVE,
            total_count=12,
            paid_count=2,
        )
        assert subscription.remaining_count == 10

        subscription = repo.update(subscription, paid_count=12)
        assert subscription.remaining_count == 0

    def test_explicit_remaining_count_is_overridden(self, db_session):
        """Test that an explicit remaining_count is replaced by the derived value."""
        repo = SubscriptionRepository(db_session)
        subscription = repo.create(
            subscription_id="sub_1",
            user_id="user_1",
            plan_id="plan_1",
            customer_id="cust_1",
            status=SubscriptionStatus.ACTIVE,
            total_count=6,
            paid_count=1,
            remaining_count=99,
        )
        assert subscription.remaining_count == 5


class TestFromTimestamp:
    def test_unix_seconds(self):
        """Test converting unix seconds to aware UTC datetimes."""
        assert from_timestamp(1700000000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", 0, "not-a-number"])
    def test_unset_values(self, value):
        """Test that missing timestamps convert to None."""
        assert from_timestamp(value) is None
