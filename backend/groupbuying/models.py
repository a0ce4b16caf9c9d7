from decimal import Decimal

from django.db import models

from orders.models import Coordinate, GroupOrder, Location, OrderStatus, Participant


class GroupOrderRecord(models.Model):
    """
    One supplier deal. total_quantity is stored for listing queries but the
    store always re-derives it from the participant rows.
    """
    class Status(models.TextChoices):
        OPEN = "open", "Open"
        ACCEPTED = "accepted", "Accepted"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"
        EXPIRED = "expired", "Expired"

    id = models.CharField(primary_key=True, max_length=64)
    supplier_id = models.CharField(max_length=64, db_index=True)
    supplier_name = models.CharField(max_length=255)

    item = models.CharField(max_length=255)
    description = models.TextField()
    unit = models.CharField(max_length=20, default="kg")
    bulk_price = models.DecimalField(max_digits=12, decimal_places=2)
    original_price = models.DecimalField(max_digits=12, decimal_places=2)
    min_quantity = models.PositiveIntegerField()
    max_quantity = models.PositiveIntegerField()
    deadline = models.DateField()

    # Supplier pickup point; coordinates drive delivery pricing
    address = models.TextField(blank=True)
    lat = models.FloatField(blank=True, null=True)
    lng = models.FloatField(blank=True, null=True)

    delivery_charge_per_km = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    contact_phone = models.CharField(max_length=10)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.OPEN, db_index=True)
    total_quantity = models.PositiveIntegerField(default=0)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField()

    class Meta:
        db_table = "groupOrders"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.item} ({self.status})"

    def to_domain(self, participants) -> GroupOrder:
        coordinate = Coordinate(self.lat, self.lng) if self.lat is not None and self.lng is not None else None
        order = GroupOrder(
            id=self.id,
            supplier_id=self.supplier_id,
            supplier_name=self.supplier_name,
            item=self.item,
            description=self.description,
            unit=self.unit,
            bulk_price=self.bulk_price,
            original_price=self.original_price,
            min_quantity=self.min_quantity,
            max_quantity=self.max_quantity,
            deadline=self.deadline,
            location=Location(self.address, coordinate),
            delivery_charge_per_km=self.delivery_charge_per_km,
            contact_phone=self.contact_phone,
            status=OrderStatus(self.status),
            created_at=self.created_at,
            participants=[p.to_domain() for p in participants],
            version=self.version,
        )
        order.recompute_total()
        return order

    def apply_domain(self, order: GroupOrder) -> None:
        coordinate = order.location.coordinate
        self.supplier_id = order.supplier_id
        self.supplier_name = order.supplier_name
        self.item = order.item
        self.description = order.description
        self.unit = order.unit
        self.bulk_price = order.bulk_price
        self.original_price = order.original_price
        self.min_quantity = order.min_quantity
        self.max_quantity = order.max_quantity
        self.deadline = order.deadline
        self.address = order.location.address
        self.lat = coordinate.lat if coordinate else None
        self.lng = coordinate.lng if coordinate else None
        self.delivery_charge_per_km = order.delivery_charge_per_km
        self.contact_phone = order.contact_phone
        self.status = order.status.value
        self.total_quantity = order.total_quantity
        self.version = order.version
        self.created_at = order.created_at


class ParticipantRecord(models.Model):
    order = models.ForeignKey(GroupOrderRecord, on_delete=models.CASCADE, related_name="participants")
    id = models.CharField(primary_key=True, max_length=64)
    vendor_id = models.CharField(max_length=64, db_index=True)
    vendor_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    joined_at = models.DateTimeField()

    vendor_lat = models.FloatField(blank=True, null=True)
    vendor_lng = models.FloatField(blank=True, null=True)
    vendor_phone = models.CharField(max_length=10, blank=True, null=True)
    # Null until both supplier and vendor coordinates are known
    delivery_charge = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    has_reviewed = models.BooleanField(default=False)

    class Meta:
        db_table = "participants"
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(fields=["order", "vendor_id"], name="one_participation_per_vendor"),
        ]

    def __str__(self):
        return f"{self.vendor_name} x{self.quantity}"

    def to_domain(self) -> Participant:
        location = None
        if self.vendor_lat is not None and self.vendor_lng is not None:
            location = Coordinate(self.vendor_lat, self.vendor_lng)
        return Participant(
            id=self.id,
            order_id=self.order_id,
            vendor_id=self.vendor_id,
            vendor_name=self.vendor_name,
            quantity=self.quantity,
            joined_at=self.joined_at,
            vendor_location=location,
            vendor_phone=self.vendor_phone,
            delivery_charge=self.delivery_charge,
            has_reviewed=self.has_reviewed,
        )

    def apply_domain(self, participant: Participant) -> None:
        location = participant.vendor_location
        self.vendor_id = participant.vendor_id
        self.vendor_name = participant.vendor_name
        self.quantity = participant.quantity
        self.joined_at = participant.joined_at
        self.vendor_lat = location.lat if location else None
        self.vendor_lng = location.lng if location else None
        self.vendor_phone = participant.vendor_phone
        self.delivery_charge = participant.delivery_charge
        self.has_reviewed = participant.has_reviewed
