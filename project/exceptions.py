"""
Domain error taxonomy shared by every app.

Services raise these; the API boundary turns them into the standard
``{"success": false, ...}`` envelope (see ``project.utils``).
"""
from rest_framework import status


class ServiceError(Exception):
    """Base class for errors that are safe to show to the caller."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'error'
    default_message = 'Request could not be completed.'

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'validation_error'
    default_message = 'Validation failed'


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_message = 'Not found.'


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'forbidden'
    default_message = 'You do not have permission to perform this action.'


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'conflict'
    default_message = 'This action is not allowed in the current state.'


class ExpiredError(ServiceError):
    status_code = status.HTTP_410_GONE
    code = 'expired'
    default_message = 'This quote has expired. Please request a new quote.'
