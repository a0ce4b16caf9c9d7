"""
Wiring of the domain services onto the Django store. Built once per
process; views call get_services().
"""

from dataclasses import dataclass
from functools import lru_cache

from accounts.service import AccountService
from lifecycle.controller import OrderLifecycleController
from orders.events import OrderEvents
from orders.participation.engine import ParticipationEngine
from orders.participation.policy import ParticipationPolicy, policy_from_env
from orders.participation.sweeps import HousekeepingCycle
from users.directory import DjangoIdentityProvider, DjangoUserDirectory

from .store import DjangoOrderStore


@dataclass
class Services:
    store: DjangoOrderStore
    events: OrderEvents
    policy: ParticipationPolicy
    engine: ParticipationEngine
    lifecycle: OrderLifecycleController
    housekeeping: HousekeepingCycle
    accounts: AccountService


@lru_cache(maxsize=None)
def get_services() -> Services:
    policy = policy_from_env()
    store = DjangoOrderStore()
    events = OrderEvents()
    engine = ParticipationEngine(store, events, policy)
    return Services(
        store=store,
        events=events,
        policy=policy,
        engine=engine,
        lifecycle=OrderLifecycleController(store, engine, events, policy),
        housekeeping=HousekeepingCycle(store, events, policy),
        accounts=AccountService(DjangoIdentityProvider(), DjangoUserDirectory()),
    )
