"""
Purpose: Central configuration for participation behavior (single source of truth).
What it does:

Stores all tunable thresholds:

STORE_TIMEOUT_SECONDS = 5.0

SWEEP_MAX_ATTEMPTS = 3

SWEEP_RETRY_BACKOFF_SECONDS = 0.2

CHARGE_DECIMAL_PLACES = 2

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class ParticipationPolicy:
    """
    Central configuration for the participation engine and housekeeping sweeps.

    Notes:
    - store_timeout_seconds bounds how long a join/edit waits for the order
      lock before surfacing StoreTimeoutError (retryable).
    - user-initiated operations never retry; only sweeps use the retry knobs.
    """

    # --- Store access ---
    store_timeout_seconds: float = 5.0

    # --- Sweep retries (transport / conflict) ---
    sweep_max_attempts: int = 3
    # linear backoff: attempt n sleeps n * backoff
    sweep_retry_backoff_seconds: float = 0.2

    # --- Money ---
    charge_decimal_places: int = 2

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.store_timeout_seconds <= 0:
            raise ValueError("store_timeout_seconds must be > 0")

        if self.sweep_max_attempts < 1:
            raise ValueError("sweep_max_attempts must be >= 1")

        if self.sweep_retry_backoff_seconds < 0:
            raise ValueError("sweep_retry_backoff_seconds must be >= 0")

        if self.charge_decimal_places < 0:
            raise ValueError("charge_decimal_places must be >= 0")


def default_policy() -> ParticipationPolicy:
    """
    Convenience factory for the default policy.
    """
    p = ParticipationPolicy()
    p.validate()
    return p


def policy_from_env() -> ParticipationPolicy:
    """
    Default policy with overrides from the environment / .env file:
    BAZAAR_STORE_TIMEOUT_SECONDS, BAZAAR_SWEEP_MAX_ATTEMPTS,
    BAZAAR_SWEEP_RETRY_BACKOFF_SECONDS.
    """
    load_dotenv()
    defaults = ParticipationPolicy()
    p = ParticipationPolicy(
        store_timeout_seconds=float(os.getenv("BAZAAR_STORE_TIMEOUT_SECONDS", defaults.store_timeout_seconds)),
        sweep_max_attempts=int(os.getenv("BAZAAR_SWEEP_MAX_ATTEMPTS", defaults.sweep_max_attempts)),
        sweep_retry_backoff_seconds=float(
            os.getenv("BAZAAR_SWEEP_RETRY_BACKOFF_SECONDS", defaults.sweep_retry_backoff_seconds)
        ),
    )
    p.validate()
    return p
