"""DRF exception handler mapping booking-engine errors to HTTP responses."""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import BookingError, PersistenceError

logger = logging.getLogger(__name__)


def _request_context(context) -> dict:
    request = context.get("request")
    view = context.get("view")
    return {
        "view": view.__class__.__name__ if view is not None else None,
        "method": getattr(request, "method", None),
        "path": getattr(request, "path", None),
        "user_id": getattr(getattr(request, "user", None), "id", None),
    }


def booking_exception_handler(exc, context):
    """Render ``BookingError`` as ``{"code", "detail"}``; hide unexpected failures."""

    if isinstance(exc, BookingError):
        if isinstance(exc, PersistenceError):
            logger.error(
                "Persistence failure: %s",
                exc.message,
                extra={"request_context": _request_context(context), "error_context": exc.context},
            )
        else:
            logger.warning("Request rejected with %s: %s", exc.code, exc.message)
        return Response(exc.to_dict(), status=exc.http_status)

    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    logger.error(
        "Unhandled error while processing request",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={"request_context": _request_context(context)},
    )
    return Response(PersistenceError().to_dict(), status=status.HTTP_500_INTERNAL_SERVER_ERROR)
