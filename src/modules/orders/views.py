"""Order API views.

Exposes ``OrderReadService`` over HTTP.  Read-side exceptions are
translated into status codes here; anything unexpected propagates to
Django's error handling.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.orders.cache import get_order_cache
from modules.orders.exceptions import OrderStoreUnavailable
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderReadService


class OrderViewSet(ViewSet):
    """Point lookups by ``order_uid``.

    Orders enter the system only through the ingestion loop, so the API is
    read-only.  Public, throttled under the ``order_lookup`` scope.
    """

    throttle_scope = "order_lookup"
    lookup_value_regex = "[^/]+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderReadService(
            cache=get_order_cache(),
            store=OrderDjangoRepository(),
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{order_uid}/"""
        try:
            order = self._service.lookup(pk or "")
        except OrderStoreUnavailable:
            return Response(
                {"detail": "Order store unavailable."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        if order is None:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(order.to_response())
