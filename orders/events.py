"""
Purpose: Message-passing hooks for order changes.

The engine, the sweeps and the lifecycle controller publish here after a
transaction has committed. Notification senders, audit logs and UIs
subscribe; nothing in the core sends notifications itself.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from .models import GroupOrder, OrderStatus, Participant

logger = logging.getLogger(__name__)

StatusListener = Callable[[GroupOrder, OrderStatus, OrderStatus], None]
ParticipantListener = Callable[[GroupOrder, Participant, str], None]

JOINED = "joined"
UPDATED = "updated"
LEFT = "left"


class OrderEvents:
    def __init__(self) -> None:
        self._status_listeners: List[StatusListener] = []
        self._participant_listeners: List[ParticipantListener] = []

    def on_status_changed(self, listener: StatusListener) -> StatusListener:
        self._status_listeners.append(listener)
        return listener

    def on_participant_changed(self, listener: ParticipantListener) -> ParticipantListener:
        self._participant_listeners.append(listener)
        return listener

    def status_changed(self, order: GroupOrder, old: OrderStatus, new: OrderStatus) -> None:
        if old == new:
            return
        logger.info("Order %s status %s -> %s", order.id, old.value, new.value)
        for listener in list(self._status_listeners):
            # the write is already committed; a broken listener must not undo it
            try:
                listener(order, old, new)
            except Exception:
                logger.exception("status listener %r failed for order %s", listener, order.id)

    def participant_changed(self, order: GroupOrder, participant: Participant, action: str) -> None:
        logger.info("Order %s participant %s %s", order.id, participant.vendor_id, action)
        for listener in list(self._participant_listeners):
            try:
                listener(order, participant, action)
            except Exception:
                logger.exception("participant listener %r failed for order %s", listener, order.id)
