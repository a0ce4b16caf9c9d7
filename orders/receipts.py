"""
Purpose: Per-vendor totals for a group order (receipts, supplier dashboard).

Line totals:
- goods = quantity * bulk_price
- savings = quantity * (original_price - bulk_price)
- delivery = participant.delivery_charge (0 when unknown)
- total = goods + delivery
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .models import GroupOrder, OrderStatus, Participant

ZERO = Decimal("0")


@dataclass(frozen=True)
class ReceiptLine:
    participant_id: str
    vendor_id: str
    vendor_name: str
    quantity: int
    goods_total: Decimal
    savings: Decimal
    delivery_charge: Optional[Decimal]
    total: Decimal


@dataclass(frozen=True)
class OrderReceipt:
    order_id: str
    item: str
    unit: str
    status: OrderStatus
    lines: List[ReceiptLine]
    total_quantity: int
    revenue: Decimal
    total_savings: Decimal
    total_delivery: Decimal

    @property
    def participant_count(self) -> int:
        return len(self.lines)


def receipt_line(order: GroupOrder, participant: Participant) -> ReceiptLine:
    goods = order.bulk_price * participant.quantity
    savings = (order.original_price - order.bulk_price) * participant.quantity
    delivery = participant.delivery_charge
    return ReceiptLine(
        participant_id=participant.id,
        vendor_id=participant.vendor_id,
        vendor_name=participant.vendor_name,
        quantity=participant.quantity,
        goods_total=goods,
        savings=savings,
        delivery_charge=delivery,
        total=goods + (delivery or ZERO),
    )


def build_receipt(order: GroupOrder) -> OrderReceipt:
    lines = [receipt_line(order, p) for p in order.participants]
    return OrderReceipt(
        order_id=order.id,
        item=order.item,
        unit=order.unit,
        status=order.status,
        lines=lines,
        total_quantity=sum(line.quantity for line in lines),
        revenue=sum((line.goods_total for line in lines), ZERO),
        total_savings=sum((line.savings for line in lines), ZERO),
        total_delivery=sum((line.delivery_charge or ZERO for line in lines), ZERO),
    )
