"""
Django-backed collaborators for accounts.AccountService.

- DjangoIdentityProvider: credentials in django.contrib.auth's User table
  (username = email), checked with authenticate()
- DjangoUserDirectory: profile rows in the `users` table
"""

from typing import Optional

from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction

from accounts.models import User, UserRole
from orders.errors import AuthenticationError, ValidationError

from .models import MarketplaceUser


class DjangoIdentityProvider:
    def sign_up(self, email: str, password: str) -> str:
        account_model = get_user_model()
        try:
            with transaction.atomic():
                account = account_model.objects.create_user(
                    username=email,
                    email=email,
                    password=password,
                )
        except IntegrityError:
            raise ValidationError("email_taken", f"An account already exists for {email}")
        return str(account.pk)

    def sign_in(self, email: str, password: str) -> str:
        account = authenticate(username=email, password=password)
        if account is None:
            raise AuthenticationError("Invalid email or password")
        return str(account.pk)

    def sign_out(self) -> None:
        # token-less API: nothing is held server side
        return None


class DjangoUserDirectory:
    @staticmethod
    def _to_domain(row: MarketplaceUser) -> User:
        return User(id=row.id, email=row.email, role=UserRole(row.role), name=row.name)

    def save(self, user: User) -> User:
        row, _ = MarketplaceUser.objects.update_or_create(
            id=user.id,
            defaults={"email": user.email, "role": user.role.value, "name": user.name},
        )
        return self._to_domain(row)

    def get(self, user_id: str) -> Optional[User]:
        row = MarketplaceUser.objects.filter(id=user_id).first()
        return self._to_domain(row) if row else None
