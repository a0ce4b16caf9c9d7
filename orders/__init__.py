"""
Orders domain package.

Public API:
- Domain models: GroupOrder, Participant, OrderDraft, OrderStatus, Coordinate, Location
- Store: OrderStore, InMemoryOrderStore
- Events: OrderEvents
- Participation entry: orders.participation.ParticipationEngine

"""
from .events import OrderEvents
from .models import Coordinate, GroupOrder, Location, OrderDraft, OrderStatus, Participant
from .store import InMemoryOrderStore, OrderStore

__all__ = ["GroupOrder",
           "Participant",
             "OrderDraft",
               "OrderStatus",
               "Coordinate",
               "Location",
               "OrderStore",
               "InMemoryOrderStore",
               "OrderEvents",
               ]
