"""
Participation subpackage for the Orders domain.

Public API:
- ParticipationEngine
- ParticipationPolicy, default_policy, policy_from_env
- reset_stranded_acceptances, expire_stale_orders, HousekeepingCycle
- delivery_charge
"""

from .charges import delivery_charge
from .engine import ParticipationEngine
from .policy import ParticipationPolicy, default_policy, policy_from_env
from .sweeps import CycleReport, HousekeepingCycle, expire_stale_orders, reset_stranded_acceptances

__all__ = [
    "ParticipationEngine",
    "ParticipationPolicy",
    "default_policy",
    "policy_from_env",
    "delivery_charge",
    "reset_stranded_acceptances",
    "expire_stale_orders",
    "HousekeepingCycle",
    "CycleReport",
]
