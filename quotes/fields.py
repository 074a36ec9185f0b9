"""
Storage-boundary field for quoted inclusion / exclusion lines.

Lines always have the shape ``{"item": str, "price": int | None}`` with the
price in cents. They are checked on the way into the database and parsed on
the way out, so the rest of the code never re-parses JSON.
"""
import json

from django.db import models

from project.exceptions import ValidationError
from .enums import ErrorMessages


def normalize_price_lines(value):
    """Return ``value`` as a clean list of price lines or raise ValidationError."""
    if value is None or value == '':
        return []

    # Older rows were sometimes stored as a JSON string inside the JSON column
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError(ErrorMessages.INVALID_PRICE_LINE)

    if not isinstance(value, (list, tuple)):
        raise ValidationError(ErrorMessages.INVALID_PRICE_LINE)

    lines = []
    for raw in value:
        if not isinstance(raw, dict):
            raise ValidationError(ErrorMessages.INVALID_PRICE_LINE)

        item = raw.get('item')
        price = raw.get('price')
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(ErrorMessages.INVALID_PRICE_LINE)
        # bool is an int subclass
        if price is not None and (isinstance(price, bool) or not isinstance(price, int) or price < 0):
            raise ValidationError(ErrorMessages.INVALID_PRICE_LINE)

        lines.append({'item': item.strip(), 'price': price})
    return lines


class PriceLineListField(models.JSONField):
    description = "Ordered list of {item, price} lines, prices in cents"

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('default', list)
        kwargs.setdefault('blank', True)
        super().__init__(*args, **kwargs)

    def from_db_value(self, value, expression, connection):
        value = super().from_db_value(value, expression, connection)
        return normalize_price_lines(value)

    def get_prep_value(self, value):
        return super().get_prep_value(normalize_price_lines(value))
