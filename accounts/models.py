from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    # VENDOR: street-food vendor, joins group orders
    # SUPPLIER: posts and manages group orders
    VENDOR = "vendor"
    SUPPLIER = "supplier"


@dataclass(frozen=True)
class User:
    """
    A row of the users collection. `id` is the identity provider's uid.
    """
    id: str
    email: str
    role: UserRole
    name: str

    @staticmethod
    def new(uid: str, email: str, role: UserRole, name: str) -> User:
        return User(id=uid, email=email.strip().lower(), role=UserRole(role), name=name.strip())
