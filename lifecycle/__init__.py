"""
Lifecycle package: supplier-side status transitions for group orders.

Public API:
- OrderLifecycleController (create, edit, accept, process_early, complete, cancel, delete)
- EditResult
"""

from .controller import EditResult, OrderLifecycleController, clean_draft

__all__ = [
    "OrderLifecycleController",
    "EditResult",
    "clean_draft",
]
