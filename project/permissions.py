"""
Centralized permission classes for the tour marketplace.
Use these instead of creating duplicate permission classes in individual apps.

These only gate endpoints by role. Whether an actor may touch a specific
quote is decided by ``quotes.permissions.QuoteAccessGuard``.
"""
from rest_framework import permissions

from authentication.enums import UserRole


class IsCustomer(permissions.BasePermission):
    """Permission for customer-only endpoints"""
    message = "Only customers can perform this action."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.USER


class IsOperator(permissions.BasePermission):
    """Permission for operator-only endpoints"""
    message = "Only tour operators can perform this action."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.OPERATOR


class IsAdmin(permissions.BasePermission):
    """Permission for admin-only endpoints"""
    message = "Only administrators can perform this action."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role == UserRole.ADMIN


class IsCustomerOrOperator(permissions.BasePermission):
    """Permission for customer or operator endpoints"""
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in [UserRole.USER, UserRole.OPERATOR]


class IsCustomerOrAdmin(permissions.BasePermission):
    """Customer endpoints that admins may read as well"""
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in [UserRole.USER, UserRole.ADMIN]
