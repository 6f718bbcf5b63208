"""
DRF exception handler for domain errors.

Wired through REST_FRAMEWORK["EXCEPTION_HANDLER"]. Domain exceptions
raised from views (usually via ServiceResult.unwrap()) are rendered with
their to_dict() payload and the status_code declared on the class.
Everything else falls through to DRF's default handler.

Response shape:
    {
        "error": "Admin role required",
        "error_code": "NOT_ADMIN"
    }
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Convert BaseApplicationError subclasses into JSON responses.

    Args:
        exc: The raised exception
        context: DRF handler context (view, request, args, kwargs)

    Returns:
        Response for domain errors, otherwise DRF's default response
        (None for unhandled exceptions, which become 500s)
    """
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        log_level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            log_level,
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        )
        return Response(exc.to_dict(), status=exc.status_code)

    return exception_handler(exc, context)
