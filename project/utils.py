"""
Utility functions for the project
"""
import logging
from typing import Any, Dict, List, Optional

from django.http import Http404
from django_ratelimit.exceptions import Ratelimited
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView, exception_handler

from project.exceptions import ServiceError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again."

# Machine readable error codes for the HTTP statuses DRF raises on its own
STATUS_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: 'validation_error',
    status.HTTP_401_UNAUTHORIZED: 'not_authenticated',
    status.HTTP_403_FORBIDDEN: 'forbidden',
    status.HTTP_404_NOT_FOUND: 'not_found',
    status.HTTP_405_METHOD_NOT_ALLOWED: 'method_not_allowed',
    status.HTTP_409_CONFLICT: 'conflict',
    status.HTTP_429_TOO_MANY_REQUESTS: 'rate_limited',
}


def create_standardized_response(
    success: bool,
    data: Optional[Any] = None,
    message: Optional[str] = None,
    error: Optional[str] = None,
    code: Optional[str] = None,
    errors: Optional[Dict[str, List[str]]] = None,
    status_code: int = status.HTTP_200_OK
) -> Response:
    """
    Create a standardized API response format.

    Args:
        success: Boolean indicating if the request was successful
        data: Response data (optional)
        message: Success or info message (optional)
        error: Human readable error message for failed requests (optional)
        code: Machine readable error code for failed requests (optional)
        errors: Field-specific validation errors (optional)
        status_code: HTTP status code

    Returns:
        Response object with standardized format
    """
    response_data = {"success": success}

    if data is not None:
        response_data["data"] = data

    if message:
        response_data["message"] = message

    if error:
        response_data["error"] = error

    if code:
        response_data["code"] = code

    if errors:
        response_data["errors"] = errors

    return Response(response_data, status=status_code)


def success_response(
    data: Optional[Any] = None,
    message: Optional[str] = None,
    status_code: int = status.HTTP_200_OK
) -> Response:
    """Create a successful response."""
    return create_standardized_response(
        success=True,
        data=data,
        message=message,
        status_code=status_code
    )


def error_response(
    error: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    errors: Optional[Dict[str, List[str]]] = None,
    code: Optional[str] = None
) -> Response:
    """Create an error response."""
    return create_standardized_response(
        success=False,
        error=error,
        code=code or STATUS_ERROR_CODES.get(status_code, 'error'),
        errors=errors,
        status_code=status_code
    )


def validation_error_response(
    errors: Dict[str, List[str]],
    status_code: int = status.HTTP_400_BAD_REQUEST
) -> Response:
    """Create a validation error response."""
    return create_standardized_response(
        success=False,
        error="Validation failed",
        code='validation_error',
        errors=errors,
        status_code=status_code
    )


def service_error_response(exc: ServiceError) -> Response:
    """Render a domain error raised by the service layer."""
    return error_response(
        error=exc.message,
        status_code=exc.status_code,
        errors=exc.errors,
        code=exc.code
    )


def internal_error_response() -> Response:
    return error_response(
        error=INTERNAL_ERROR_MESSAGE,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code='internal_error'
    )


def standardized_exception_handler(exc, context):
    """
    DRF exception handler that keeps every failure inside the standard envelope.
    Domain errors keep their message, DRF errors are flattened, anything else
    is logged and reported as a generic internal error.
    """
    if isinstance(exc, Ratelimited):
        return error_response(
            "Too many requests. Please slow down.",
            status.HTTP_429_TOO_MANY_REQUESTS
        )

    if isinstance(exc, ServiceError):
        return service_error_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        return internal_error_response()

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        return error_response(str(data['detail']), response.status_code)
    if isinstance(data, list):
        return error_response(" ".join(str(item) for item in data), response.status_code)
    return validation_error_response(data, response.status_code)


class StandardizedAPIView(APIView):
    """
    Base APIView class that provides standardized response methods.

    This class provides convenience methods for creating standardized responses
    and can be used as a base class for custom APIView implementations.
    """

    def success_response(
        self,
        data: Optional[Any] = None,
        message: Optional[str] = None,
        status_code: int = status.HTTP_200_OK
    ) -> Response:
        """Create a successful response."""
        return success_response(data=data, message=message, status_code=status_code)

    def error_response(
        self,
        error: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        errors: Optional[Dict[str, List[str]]] = None
    ) -> Response:
        """Create an error response."""
        return error_response(error=error, status_code=status_code, errors=errors)

    def validation_error_response(
        self,
        errors: Dict[str, List[str]],
        status_code: int = status.HTTP_400_BAD_REQUEST
    ) -> Response:
        """Create a validation error response."""
        return validation_error_response(errors=errors, status_code=status_code)

    def service_error_response(self, exc: ServiceError) -> Response:
        return service_error_response(exc)

    def internal_error_response(self) -> Response:
        return internal_error_response()


class StandardizedResponseMixin:
    """Mixin to standardize responses for DRF generic views."""

    def list(self, request, *args, **kwargs):
        """Override list to use standardized response format."""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            response_data = self.get_paginated_response(serializer.data).data
            return success_response(
                data=response_data,
                message=f"Retrieved {len(serializer.data)} items"
            )

        serializer = self.get_serializer(queryset, many=True)
        return success_response(
            data=serializer.data,
            message=f"Retrieved {len(serializer.data)} items"
        )

    def retrieve(self, request, *args, **kwargs):
        """Override retrieve to use standardized response format."""
        try:
            instance = self.get_object()
        except Http404:
            return error_response("Not found.", status.HTTP_404_NOT_FOUND)
        serializer = self.get_serializer(instance)
        return success_response(
            data=serializer.data,
            message="Retrieved successfully"
        )
