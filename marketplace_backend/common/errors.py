# common/errors.py

"""
MARKETPLACE DOMAIN ERRORS + API ERROR SHAPE

Every business failure raised by a service carries a stable `code`.
Views never invent codes: they convert the exception with domain_error_response().

Error payload (all modules):
    {"error": {"code": "<CODE>", "message": "...", "details": ...}}

Infrastructure faults (DatabaseError) are NOT domain errors.
They surface as INFRASTRUCTURE_FAILURE (503) and are logged with a traceback.
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

INFRASTRUCTURE_FAILURE = "INFRASTRUCTURE_FAILURE"


class MarketplaceError(Exception):
    """Base exception for all marketplace service failures."""

    code = "ERROR"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed."

    def __init__(self, message: str | None = None, *, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFoundError(MarketplaceError):
    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class UnauthorizedError(MarketplaceError):
    """Acting owner does not own the resource (cart ownership)."""

    code = "UNAUTHORIZED"
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "You do not have access to this resource."


class ForbiddenError(MarketplaceError):
    """Actor's role does not allow the operation."""

    code = "FORBIDDEN"
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action."


class InvalidQuantityError(MarketplaceError):
    code = "INVALID_QUANTITY"
    default_message = "Quantity must be a whole number of at least 1."


# =====================================================
# API ERROR NORMALIZATION
# =====================================================

def error_response(*, code: str, message: str, http_status: int, details=None):
    payload = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return Response({"error": payload}, status=http_status)


def domain_error_response(exc: MarketplaceError):
    return error_response(
        code=exc.code,
        message=exc.message,
        http_status=exc.http_status,
        details=exc.details,
    )


def infrastructure_error_response(exc: Exception, *, operation: str):
    logger.exception("Infrastructure failure", extra={"operation": operation})
    return error_response(
        code=INFRASTRUCTURE_FAILURE,
        message="A temporary storage problem occurred. Please retry.",
        http_status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )
