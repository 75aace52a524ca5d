"""Order lifecycle: status enumerations and the allowed transition table."""

from src.api.middleware.error_handler import BusinessRuleError, ValidationError

ORDER_STATUSES: tuple[str, ...] = ("pending", "confirmed", "preparing", "ready", "delivered", "cancelled")
PAYMENT_STATUSES: tuple[str, ...] = ("pending", "paid", "failed", "refunded")
PAYMENT_METHODS: tuple[str, ...] = ("card", "upi", "cod", "wallet")

# Orders move forward one stage at a time; cancellation is possible until the
# food is ready. delivered and cancelled are terminal.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"preparing", "cancelled"}),
    "preparing": frozenset({"ready", "cancelled"}),
    "ready": frozenset({"delivered"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}

TERMINAL_PAYMENT_STATUSES: frozenset[str] = frozenset({"paid", "refunded"})


def is_valid_status(status: str) -> bool:
    """Check whether a value is a known order status."""
    return status in ALLOWED_TRANSITIONS


def is_terminal(status: str) -> bool:
    """Check whether an order status has no outgoing transitions."""
    return not ALLOWED_TRANSITIONS.get(status)


def can_transition(current: str, target: str) -> bool:
    """Check whether an order may move from ``current`` to ``target``.

    Staying in the same status is always allowed so repeated requests are
    harmless.
    """
    if current == target:
        return is_valid_status(target)
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, target: str) -> None:
    """Validate a status change before it is written.

    Args:
        current: Status currently stored on the order.
        target: Requested status.

    Raises:
        ValidationError: If ``target`` is not a recognized status.
        BusinessRuleError: If the lifecycle does not allow the move.
    """
    if not is_valid_status(target):
        raise ValidationError(
            f"Invalid status: {target}. Must be one of: {', '.join(ORDER_STATUSES)}"
        )

    if not can_transition(current, target):
        allowed = sorted(ALLOWED_TRANSITIONS.get(current, frozenset()))
        raise BusinessRuleError(
            f"Cannot change order status from {current} to {target}",
            details=[
                {
                    "loc": ["status"],
                    "msg": f"Allowed next statuses: {', '.join(allowed) or 'none'}",
                    "type": "invalid_transition",
                }
            ],
        )
