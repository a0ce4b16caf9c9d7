from rest_framework import serializers

from orders.location import parse_location_string
from orders.models import DRAFT_FIELDS, Coordinate, Location, OrderDraft


def coordinate_from(data, lat_key="lat", lng_key="lng"):
    lat, lng = data.get(lat_key), data.get(lng_key)
    if lat is None or lng is None:
        return None
    return Coordinate(lat, lng)


def check_pair(data, lat_key="lat", lng_key="lng"):
    # a coordinate is both halves or neither
    if (data.get(lat_key) is None) != (data.get(lng_key) is None):
        raise serializers.ValidationError(f"{lat_key} and {lng_key} must be given together")
    return data


# --- Input ---

class OrderDraftSerializer(serializers.Serializer):
    """
    Create / edit payload. The supplier location is either address + lat/lng
    or the legacy "text [lat,lng]" string in `location`.
    """
    item = serializers.CharField(max_length=255)
    description = serializers.CharField()
    unit = serializers.CharField(max_length=20, default="kg")
    bulk_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    original_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    min_quantity = serializers.IntegerField()
    max_quantity = serializers.IntegerField()
    deadline = serializers.DateField()
    address = serializers.CharField(required=False, allow_blank=True, default="")
    lat = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    lng = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    location = serializers.CharField(required=False, allow_blank=True)
    delivery_charge_per_km = serializers.DecimalField(max_digits=10, decimal_places=2)
    contact_phone = serializers.CharField(max_length=20)

    def validate(self, data):
        return check_pair(data)

    @staticmethod
    def location_of(data, fallback=None) -> Location:
        if data.get("location"):
            return parse_location_string(data["location"])
        if "lat" in data or "address" in data:
            address = data.get("address", fallback.address if fallback else "")
            coordinate = coordinate_from(data) if "lat" in data else (fallback.coordinate if fallback else None)
            return Location(address, coordinate)
        return fallback if fallback is not None else Location("", None)

    @classmethod
    def to_draft(cls, data, base: OrderDraft = None) -> OrderDraft:
        """
        Build a draft from validated data. With `base`, fields missing from
        data keep the base draft's values (PATCH).
        """
        values = {} if base is None else {name: getattr(base, name) for name in DRAFT_FIELDS}
        for name in (
            "item",
            "description",
            "unit",
            "bulk_price",
            "original_price",
            "min_quantity",
            "max_quantity",
            "deadline",
            "delivery_charge_per_km",
            "contact_phone",
        ):
            if name in data:
                values[name] = data[name]
        values["location"] = cls.location_of(data, base.location if base else None)
        return OrderDraft(**values)


class CreateOrderSerializer(OrderDraftSerializer):
    supplier_id = serializers.CharField(max_length=64)
    supplier_name = serializers.CharField(max_length=255)


class VendorSerializer(serializers.Serializer):
    vendor_id = serializers.CharField(max_length=64)


class JoinSerializer(VendorSerializer):
    vendor_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField()
    lat = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    lng = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    vendor_phone = serializers.CharField(required=False, allow_null=True, max_length=20)

    def validate(self, data):
        return check_pair(data)


class QuantitySerializer(VendorSerializer):
    quantity = serializers.IntegerField()


class ContactSerializer(VendorSerializer):
    vendor_phone = serializers.CharField(required=False, allow_null=True, max_length=20)
    lat = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    lng = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)

    def validate(self, data):
        return check_pair(data)


# --- Output (domain objects -> JSON) ---

class ParticipantSerializer(serializers.Serializer):
    id = serializers.CharField()
    vendor_id = serializers.CharField()
    vendor_name = serializers.CharField()
    quantity = serializers.IntegerField()
    joined_at = serializers.DateTimeField()
    vendor_location = serializers.SerializerMethodField()
    vendor_phone = serializers.CharField(allow_null=True)
    delivery_charge = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    has_reviewed = serializers.BooleanField()

    def get_vendor_location(self, participant):
        location = participant.vendor_location
        return {"lat": location.lat, "lng": location.lng} if location else None


class GroupOrderSerializer(serializers.Serializer):
    id = serializers.CharField()
    supplier_id = serializers.CharField()
    supplier_name = serializers.CharField()
    item = serializers.CharField()
    description = serializers.CharField()
    unit = serializers.CharField()
    bulk_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    original_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    min_quantity = serializers.IntegerField()
    max_quantity = serializers.IntegerField()
    total_quantity = serializers.IntegerField()
    remaining_quantity = serializers.IntegerField()
    deadline = serializers.DateField()
    location = serializers.SerializerMethodField()
    delivery_charge_per_km = serializers.DecimalField(max_digits=10, decimal_places=2)
    contact_phone = serializers.CharField()
    status = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField()
    participants = ParticipantSerializer(many=True)

    def get_location(self, order):
        coordinate = order.location.coordinate
        return {
            "address": order.location.address,
            "lat": coordinate.lat if coordinate else None,
            "lng": coordinate.lng if coordinate else None,
        }

    def get_status(self, order):
        return order.status.value


class ReceiptLineSerializer(serializers.Serializer):
    participant_id = serializers.CharField()
    vendor_id = serializers.CharField()
    vendor_name = serializers.CharField()
    quantity = serializers.IntegerField()
    goods_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    savings = serializers.DecimalField(max_digits=14, decimal_places=2)
    delivery_charge = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    total = serializers.DecimalField(max_digits=14, decimal_places=2)


class OrderReceiptSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    item = serializers.CharField()
    unit = serializers.CharField()
    status = serializers.SerializerMethodField()
    lines = ReceiptLineSerializer(many=True)
    total_quantity = serializers.IntegerField()
    participant_count = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_savings = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_delivery = serializers.DecimalField(max_digits=14, decimal_places=2)

    def get_status(self, receipt):
        return receipt.status.value
