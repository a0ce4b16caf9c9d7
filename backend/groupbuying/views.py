import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import exception_handler

from orders.errors import (
    AuthenticationError,
    CapacityExceededError,
    ConflictError,
    DuplicateParticipationError,
    NotFoundError,
    RoleMismatchError,
    TransportError,
    ValidationError,
)
from orders.receipts import build_receipt

from .serializers import (
    ContactSerializer,
    CreateOrderSerializer,
    GroupOrderSerializer,
    JoinSerializer,
    OrderDraftSerializer,
    OrderReceiptSerializer,
    QuantitySerializer,
    VendorSerializer,
    coordinate_from,
)
from .services import get_services

logger = logging.getLogger(__name__)

# Most specific first: OrderStateError is a ValidationError, StoreTimeoutError a TransportError.
ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (RoleMismatchError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateParticipationError, status.HTTP_409_CONFLICT),
    (CapacityExceededError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (TransportError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def domain_exception_handler(exc, context):
    """
    DRF exception handler: domain errors become {"error": ..., <details>}
    with the matching status; everything else goes to DRF's default.
    """
    for error_type, http_status in ERROR_STATUS:
        if isinstance(exc, error_type):
            body = {"error": str(exc)}
            for attr in ("rule", "remaining", "participant_id"):
                if hasattr(exc, attr):
                    body[attr] = getattr(exc, attr)
            if http_status >= 500:
                logger.warning("Store unavailable: %s", exc)
            return Response(body, status=http_status)
    return exception_handler(exc, context)


def validated(serializer_class, request, partial=False):
    serializer = serializer_class(data=request.data, partial=partial)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class GroupOrderViewSet(viewsets.ViewSet):
    """
    Group orders.
    - list (?supplier_id= / ?vendor_id=), retrieve
    - create, partial_update (supplier edit, open orders only), destroy
    - supplier actions: accept, process-early, complete, cancel
    - vendor actions: join, quantity, contact, leave, review
    - receipt: per-vendor totals
    """

    def _order_response(self, order, http_status=status.HTTP_200_OK):
        return Response(GroupOrderSerializer(order).data, status=http_status)

    def list(self, request):
        services = get_services()
        supplier_id = request.query_params.get("supplier_id")
        vendor_id = request.query_params.get("vendor_id")
        if supplier_id:
            orders = services.store.list_orders_by_supplier(supplier_id)
        elif vendor_id:
            orders = services.store.list_orders_by_vendor(vendor_id)
        else:
            orders = services.store.list_orders()
        return Response(GroupOrderSerializer(orders, many=True).data)

    def retrieve(self, request, pk=None):
        return self._order_response(get_services().store.get_order(pk))

    def create(self, request):
        data = validated(CreateOrderSerializer, request)
        draft = CreateOrderSerializer.to_draft(data)
        order = get_services().lifecycle.create(draft, data["supplier_id"], data["supplier_name"])
        return self._order_response(order, status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        services = get_services()
        data = validated(OrderDraftSerializer, request, partial=True)
        current = services.store.get_order(pk)
        draft = OrderDraftSerializer.to_draft(data, base=current.to_draft())
        result = services.lifecycle.edit(pk, draft)
        return Response({
            "order": GroupOrderSerializer(result.order).data,
            "recalculated_participants": result.recalculated_participants,
        })

    def destroy(self, request, pk=None):
        get_services().lifecycle.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # --- Supplier actions ---

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        return self._order_response(get_services().lifecycle.accept(pk))

    @action(detail=True, methods=["post"], url_path="process-early")
    def process_early(self, request, pk=None):
        return self._order_response(get_services().lifecycle.process_early(pk))

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        return self._order_response(get_services().lifecycle.complete(pk))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        return self._order_response(get_services().lifecycle.cancel(pk))

    # --- Vendor actions ---

    @action(detail=True, methods=["post"])
    def join(self, request, pk=None):
        services = get_services()
        data = validated(JoinSerializer, request)
        services.engine.join(
            pk,
            vendor_id=data["vendor_id"],
            vendor_name=data["vendor_name"],
            quantity=data["quantity"],
            vendor_location=coordinate_from(data),
            vendor_phone=data.get("vendor_phone"),
        )
        return self._order_response(services.store.get_order(pk), status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def quantity(self, request, pk=None):
        services = get_services()
        data = validated(QuantitySerializer, request)
        services.engine.update_quantity(pk, data["vendor_id"], data["quantity"])
        return self._order_response(services.store.get_order(pk))

    @action(detail=True, methods=["post"])
    def contact(self, request, pk=None):
        services = get_services()
        data = validated(ContactSerializer, request)
        services.engine.update_contact(
            pk,
            data["vendor_id"],
            vendor_phone=data.get("vendor_phone"),
            vendor_location=coordinate_from(data),
        )
        return self._order_response(services.store.get_order(pk))

    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        services = get_services()
        data = validated(VendorSerializer, request)
        services.engine.remove(pk, data["vendor_id"])
        return self._order_response(services.store.get_order(pk))

    @action(detail=True, methods=["post"])
    def review(self, request, pk=None):
        services = get_services()
        data = validated(VendorSerializer, request)
        services.engine.mark_reviewed(pk, data["vendor_id"])
        return self._order_response(services.store.get_order(pk))

    @action(detail=True, methods=["get"])
    def receipt(self, request, pk=None):
        receipt = build_receipt(get_services().store.get_order(pk))
        return Response(OrderReceiptSerializer(receipt).data)


class HousekeepingViewSet(viewsets.ViewSet):
    """
    POST runs one housekeeping cycle (stranded acceptances, expiry).
    Meant for an external scheduler.
    """

    def create(self, request):
        report = get_services().housekeeping.run_cycle()
        return Response({
            "reset_order_ids": report.reset_order_ids,
            "expired_order_ids": report.expired_order_ids,
            "ran_at": report.ran_at.isoformat(),
        })
