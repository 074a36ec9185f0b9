from django.db import models


class UserRole(models.TextChoices):
    """Roles an authenticated actor can hold"""
    USER = 'user', 'Customer'
    OPERATOR = 'operator', 'Tour Operator'
    ADMIN = 'admin', 'Administrator'
