"""
Supplier-driven transitions of a GroupOrder.

Each function checks the guard, mutates the aggregate in place and returns
it. Callers run them inside store.transaction() so the check and the write
are atomic.
"""

from orders.errors import OrderStateError
from orders.models import ACTIVE_STATUSES, TERMINAL_STATUSES, GroupOrder, OrderStatus


def ensure_editable(order: GroupOrder) -> GroupOrder:
    if order.status != OrderStatus.OPEN:
        raise OrderStateError(f"Order {order.id} is {order.status.value}; only open orders can be edited")
    return order


def accept_order(order: GroupOrder) -> GroupOrder:
    """
    Supplier confirms the deal. Allowed below min_quantity ("process early")
    as long as at least one vendor has joined.
    """
    if order.status not in ACTIVE_STATUSES:
        raise OrderStateError(f"Cannot accept order {order.id} from {order.status.value}")
    if not order.participants:
        raise OrderStateError(f"Order {order.id} has no participants to accept", rule="participants_required")

    order.status = OrderStatus.ACCEPTED
    return order


def complete_order(order: GroupOrder) -> GroupOrder:
    """
    Goods delivered. Participants are kept for receipts and reviews.
    """
    if order.status != OrderStatus.ACCEPTED:
        raise OrderStateError(f"Order {order.id} is {order.status.value}; only accepted orders can be completed")

    order.status = OrderStatus.COMPLETED
    return order


def cancel_order(order: GroupOrder) -> GroupOrder:
    """
    Supplier withdraws the deal. Every participation is dropped.
    """
    if order.status not in ACTIVE_STATUSES:
        raise OrderStateError(f"Cannot cancel order {order.id} from {order.status.value}")

    order.status = OrderStatus.CANCELLED
    order.participants = []
    order.recompute_total()
    return order


def ensure_deletable(order: GroupOrder) -> GroupOrder:
    if order.status not in TERMINAL_STATUSES:
        raise OrderStateError(
            f"Order {order.id} is {order.status.value}; only cancelled or completed orders can be deleted"
        )
    return order
