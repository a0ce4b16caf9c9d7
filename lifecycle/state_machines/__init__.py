from .order_state import accept_order, cancel_order, complete_order, ensure_deletable, ensure_editable

__all__ = [
    "accept_order",
    "cancel_order",
    "complete_order",
    "ensure_deletable",
    "ensure_editable",
]
