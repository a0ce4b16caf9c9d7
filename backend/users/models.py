from django.db import models


class MarketplaceUser(models.Model):
    """
    The users collection: one row per identity-provider account.
    Credentials live with the identity provider, not here.
    """
    class Roles(models.TextChoices):
        VENDOR = "vendor", "Vendor"
        SUPPLIER = "supplier", "Supplier"

    # VENDOR: joins group orders
    # SUPPLIER: posts and manages group orders
    id = models.CharField(primary_key=True, max_length=64)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=Roles.choices)
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "users"

    def __str__(self):
        return f"{self.name} ({self.get_role_display()})"
