"""Unit tests for the order status transition table."""

import pytest

from src.api.middleware.error_handler import BusinessRuleError, ValidationError
from src.services.order_status import (
    ALLOWED_TRANSITIONS,
    ORDER_STATUSES,
    can_transition,
    ensure_transition,
    is_terminal,
)


class TestTransitionTable:
    """Tests for the shape of the lifecycle."""

    def test_every_status_has_an_entry(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == set(ORDER_STATUSES)

    def test_delivered_and_cancelled_are_terminal(self) -> None:
        assert is_terminal("delivered")
        assert is_terminal("cancelled")
        assert not is_terminal("pending")

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("pending", "confirmed"),
            ("confirmed", "preparing"),
            ("preparing", "ready"),
            ("ready", "delivered"),
            ("pending", "cancelled"),
            ("preparing", "cancelled"),
        ],
    )
    def test_forward_moves_allowed(self, current: str, target: str) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("delivered", "pending"),
            ("pending", "delivered"),
            ("cancelled", "confirmed"),
            ("ready", "cancelled"),
            ("confirmed", "pending"),
        ],
    )
    def test_backward_and_skipping_moves_rejected(self, current: str, target: str) -> None:
        assert not can_transition(current, target)

    def test_same_status_is_allowed(self) -> None:
        assert can_transition("delivered", "delivered")


class TestEnsureTransition:
    """Tests for ensure_transition."""

    def test_unknown_status_is_validation_error(self) -> None:
        with pytest.raises(ValidationError, match="Invalid status: shipped"):
            ensure_transition("pending", "shipped")

    def test_disallowed_move_is_business_rule_error(self) -> None:
        with pytest.raises(BusinessRuleError) as exc_info:
            ensure_transition("delivered", "pending")

        assert exc_info.value.status_code == 409
        assert "delivered to pending" in exc_info.value.message

    def test_error_details_list_allowed_statuses(self) -> None:
        with pytest.raises(BusinessRuleError) as exc_info:
            ensure_transition("pending", "ready")

        assert exc_info.value.details[0]["msg"] == "Allowed next statuses: cancelled, confirmed"

    def test_allowed_move_passes(self) -> None:
        ensure_transition("pending", "confirmed")
