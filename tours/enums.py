"""
Messages and filters for operator and tour management.
"""
from django.db import models


class OperatorStatusFilter(models.TextChoices):
    ALL = 'all', 'All'
    PENDING = 'pending', 'Pending approval'
    APPROVED = 'approved', 'Approved'


class BusinessRules:
    """Business rules and constants"""

    # PositiveIntegerField upper bound
    MAX_PRICE_FROM = 2147483647
    MAX_TOUR_CAPACITY = 32767
    RECENT_ACTIVITY_LIMIT = 5
    ADMIN_OPERATORS_PAGE_SIZE = 20


class ErrorMessages:
    """Centralized error messages for consistency"""

    OPERATOR_PROFILE_MISSING = "Operator profile not found"
    OPERATOR_PENDING_APPROVAL = "Operator account pending approval"
    OPERATOR_NOT_FOUND = "Operator not found."
    OPERATOR_ALREADY_APPROVED = "Operator is already approved."
    INVALID_OPERATOR_STATUS = "Unknown operator status: {status}"

    APPLICATION_EXISTS = "You have already submitted an operator application."
    APPLICATION_NOT_FOUND = "No operator application found."
    ADMINS_CANNOT_APPLY = "Administrators cannot apply as operators."

    TOUR_NOT_FOUND = "Tour not found."
    TOUR_HAS_QUOTES = "Cannot delete tour with existing quote requests. Please deactivate it instead."


class ResponseMessages:
    """Centralized success messages for consistency"""

    APPLICATION_SUBMITTED = "Operator application submitted. An administrator will review it shortly."
    APPLICATION_RETRIEVED = "Operator application retrieved successfully"

    TOURS_FOUND = "Found {count} tours"
    TOUR_RETRIEVED = "Tour retrieved successfully"
    TOUR_CREATED = "Tour created successfully"
    TOUR_UPDATED = "Tour updated successfully"
    TOUR_ACTIVATED = "Tour activated"
    TOUR_DEACTIVATED = "Tour deactivated"
    TOUR_DELETED = "Tour deleted successfully"

    OPERATOR_APPROVED = "Operator approved"
    OPERATOR_REVOKED = "Operator approval revoked"
    OPERATOR_REJECTED = "Operator rejected"
    OPERATOR_RETRIEVED = "Operator retrieved successfully"
    OPERATOR_UPDATED = "Operator updated successfully"
    DASHBOARD_RETRIEVED = "Dashboard stats retrieved successfully"
