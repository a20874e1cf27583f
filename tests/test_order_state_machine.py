import pytest
from fastapi import HTTPException

from tuktuk.models.profile import Role
from tuktuk.services.order_state_machine import (
    ORDER_TRANSITIONS,
    OrderStatus,
    allowed_transitions,
    can_transition,
    is_terminal,
    validate_transition,
)


@pytest.mark.parametrize(
    "current,new,actor",
    [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED, Role.VENDOR),
        (OrderStatus.CONFIRMED, OrderStatus.PREPARING, Role.VENDOR),
        (OrderStatus.PREPARING, OrderStatus.READY_FOR_PICKUP, Role.VENDOR),
        (OrderStatus.READY_FOR_PICKUP, OrderStatus.OUT_FOR_DELIVERY, Role.DRIVER),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, Role.DRIVER),
        (OrderStatus.PENDING, OrderStatus.CANCELLED, Role.CUSTOMER),
        (OrderStatus.PENDING, OrderStatus.CANCELLED, Role.VENDOR),
        (OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED, Role.VENDOR),
    ],
)
def test_allowed_moves(current, new, actor):
    assert can_transition(current, new, actor)


@pytest.mark.parametrize(
    "current,new,actor",
    [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED, Role.CUSTOMER),
        (OrderStatus.PENDING, OrderStatus.DELIVERED, Role.VENDOR),
        (OrderStatus.CONFIRMED, OrderStatus.CANCELLED, Role.CUSTOMER),
        (OrderStatus.READY_FOR_PICKUP, OrderStatus.OUT_FOR_DELIVERY, Role.VENDOR),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED, Role.VENDOR),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED, Role.ADMIN),
    ],
)
def test_rejected_moves(current, new, actor):
    assert not can_transition(current, new, actor)


def test_terminal_statuses_have_no_exits():
    for status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
        assert is_terminal(status)
        assert not any(cur == status for cur, _ in ORDER_TRANSITIONS)


def test_allowed_transitions_in_lifecycle_order():
    assert allowed_transitions(OrderStatus.PENDING, Role.VENDOR) == [
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    ]
    assert allowed_transitions(OrderStatus.PENDING, Role.CUSTOMER) == [OrderStatus.CANCELLED]
    assert allowed_transitions(OrderStatus.OUT_FOR_DELIVERY, Role.VENDOR) == []


def test_validate_transition_reports_allowed_targets():
    with pytest.raises(HTTPException) as exc:
        validate_transition(OrderStatus.PENDING, OrderStatus.PREPARING, Role.VENDOR)

    assert exc.value.status_code == 400
    assert exc.value.detail["allowed"] == [OrderStatus.CONFIRMED, OrderStatus.CANCELLED]
