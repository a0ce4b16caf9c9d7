"""
Purpose: Input rules for supplier drafts and vendor contact details.

Each check raises ValidationError(rule, message) on the first violation, so
nothing downstream ever sees a half-valid draft.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .errors import ValidationError
from .models import OrderDraft, utcnow

_PHONE_PATTERN = re.compile(r"^\d{10}$")


def to_decimal(value: Any, field_name: str) -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name}_number", f"{field_name} must be a number")
    # NaN and Infinity parse but cannot be compared or priced
    if not number.is_finite():
        raise ValidationError(f"{field_name}_number", f"{field_name} must be a number")
    return number


def validate_phone(phone: Optional[str], field_name: str = "contact_phone") -> None:
    if phone is None or not _PHONE_PATTERN.match(phone):
        raise ValidationError(f"{field_name}_format", f"{field_name} must be exactly 10 digits")


def validate_quantity(quantity: Any) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity_positive", "Quantity must be a positive whole number")
    return quantity


def validate_new_deadline(deadline: Optional[date], today: Optional[date] = None) -> None:
    """
    Deadlines for new orders start today at the earliest.
    """
    today = today or utcnow().date()
    if deadline is not None and deadline < today:
        raise ValidationError("deadline_in_past", "Deadline cannot be in the past")


def validate_order_draft(draft: OrderDraft) -> None:
    """
    Rules shared by create and edit.
    """
    if not (draft.item or "").strip():
        raise ValidationError("item_required", "Item name is required")
    if not (draft.description or "").strip():
        raise ValidationError("description_required", "Description is required")

    bulk_price = to_decimal(draft.bulk_price, "bulk_price")
    original_price = to_decimal(draft.original_price, "original_price")
    if bulk_price <= 0:
        raise ValidationError("bulk_price_positive", "Bulk price must be greater than 0")
    if original_price <= 0:
        raise ValidationError("original_price_positive", "Original price must be greater than 0")
    if bulk_price >= original_price:
        raise ValidationError("bulk_price_below_original", "Bulk price must be less than original price")

    if isinstance(draft.min_quantity, bool) or not isinstance(draft.min_quantity, int) or draft.min_quantity <= 0:
        raise ValidationError("min_quantity_positive", "Minimum quantity must be a positive whole number")
    if isinstance(draft.max_quantity, bool) or not isinstance(draft.max_quantity, int):
        raise ValidationError("max_quantity_integer", "Maximum quantity must be a whole number")
    if draft.max_quantity <= draft.min_quantity:
        raise ValidationError("max_above_min", "Maximum quantity must be greater than minimum quantity")

    validate_phone(draft.contact_phone)

    rate = to_decimal(draft.delivery_charge_per_km, "delivery_charge_per_km")
    if rate < 0:
        raise ValidationError("delivery_rate_non_negative", "Delivery charge per km cannot be negative")

    if draft.deadline is None:
        raise ValidationError("deadline_required", "Deadline is required")

    if draft.location is None or draft.location.coordinate is None:
        raise ValidationError(
            "location_coordinate_required",
            "Select the supplier location on the map; it is needed to price delivery",
        )
