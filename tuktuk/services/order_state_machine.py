"""
Order State Machine

All order status changes are validated here. Routers and services never
compare status strings ad hoc.

Happy path:
    Pending -> Confirmed -> Preparing -> Ready_for_Pickup
            -> Out_for_Delivery -> Delivered

Cancelled is terminal and only reachable before a driver has picked the
order up. The driver claim is not a row in this table: it assigns
driver_id and forces Ready_for_Pickup (see CLAIMABLE_STATUSES).
"""

from fastapi import HTTPException, status

from tuktuk.models.profile import Role


class OrderStatus:
    """Order status constants - use these instead of strings."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    READY_FOR_PICKUP = "Ready_for_Pickup"
    OUT_FOR_DELIVERY = "Out_for_Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @classmethod
    def all(cls) -> list[str]:
        return [
            cls.PENDING, cls.CONFIRMED, cls.PREPARING,
            cls.READY_FOR_PICKUP, cls.OUT_FOR_DELIVERY,
            cls.DELIVERED, cls.CANCELLED,
        ]


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Unassigned orders in these states can be claimed by a driver
CLAIMABLE_STATUSES = (
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY_FOR_PICKUP,
)

# Statuses shown on a driver's "my deliveries" list
DRIVER_ACTIVE_STATUSES = (
    OrderStatus.READY_FOR_PICKUP,
    OrderStatus.OUT_FOR_DELIVERY,
)

# (current, next) -> roles allowed to perform it
ORDER_TRANSITIONS: dict[tuple[str, str], frozenset[Role]] = {
    (OrderStatus.PENDING, OrderStatus.CONFIRMED): frozenset({Role.VENDOR}),
    (OrderStatus.CONFIRMED, OrderStatus.PREPARING): frozenset({Role.VENDOR}),
    (OrderStatus.PREPARING, OrderStatus.READY_FOR_PICKUP): frozenset({Role.VENDOR}),
    (OrderStatus.READY_FOR_PICKUP, OrderStatus.OUT_FOR_DELIVERY): frozenset({Role.DRIVER}),
    (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED): frozenset({Role.DRIVER}),
    (OrderStatus.PENDING, OrderStatus.CANCELLED): frozenset({Role.CUSTOMER, Role.VENDOR}),
    (OrderStatus.CONFIRMED, OrderStatus.CANCELLED): frozenset({Role.VENDOR}),
    (OrderStatus.PREPARING, OrderStatus.CANCELLED): frozenset({Role.VENDOR}),
    (OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED): frozenset({Role.VENDOR}),
}


def can_transition(current_status: str, new_status: str, actor: Role) -> bool:
    """Check if `actor` may move an order from current to new status."""
    return actor in ORDER_TRANSITIONS.get((current_status, new_status), frozenset())


def allowed_transitions(current_status: str, actor: Role) -> list[str]:
    """Next statuses `actor` may choose from `current_status`, in lifecycle order."""
    return [
        new
        for new in OrderStatus.all()
        if can_transition(current_status, new, actor)
    ]


def is_terminal(current_status: str) -> bool:
    return current_status in TERMINAL_STATUSES


def validate_transition(current_status: str, new_status: str, actor: Role) -> None:
    """
    Raise 400 if the transition is not in the table for this actor.
    """
    if not can_transition(current_status, new_status, actor):
        allowed = allowed_transitions(current_status, actor)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": f"Invalid status transition: {current_status} -> {new_status}",
                "allowed": allowed,
            },
        )
