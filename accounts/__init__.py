from .models import User, UserRole
from .service import AccountService, InMemoryIdentityProvider, InMemoryUserDirectory

__all__ = [
    "User",
    "UserRole",
    "AccountService",
    "InMemoryIdentityProvider",
    "InMemoryUserDirectory",
]
