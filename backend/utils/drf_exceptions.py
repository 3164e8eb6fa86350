import logging

from django.db.utils import OperationalError, ProgrammingError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from inventory.services.errors import InventoryError
from kitchen.services.orders import KitchenError

LOGGER = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Return JSON for domain errors (kitchen / stock) and known infra errors
    (DB not ready, migrations missing) instead of the default Django HTML 500 page.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, (KitchenError, InventoryError)):
        payload = {"detail": exc.detail, "code": exc.code}
        if exc.items is not None:
            payload["items"] = exc.items
        request = context.get("request")
        LOGGER.info(
            "Domain error %s on %s: %s",
            exc.code,
            request.get_full_path() if request is not None else "-",
            exc.detail,
        )
        return Response(payload, status=exc.status_code)

    if isinstance(exc, (OperationalError, ProgrammingError)):
        request = context.get("request")
        if request is not None:
            LOGGER.exception("Database error on %s %s", request.method, request.get_full_path())
        else:
            LOGGER.exception("Database error (no request in context)")

        return Response(
            {
                "detail": "Service indisponible (base de données). Réessaie dans quelques instants.",
                "code": "db_unavailable",
            },
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return None
