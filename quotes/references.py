"""
Human-facing quote references, e.g. QR-482913057.

The reference is the last six digits of the millisecond clock followed by
three random digits. The unique index on ``QuoteRequest.reference`` is the
real guard; creation retries with a fresh candidate when it is hit.
"""
import logging
import random
import time

from django.db import IntegrityError, transaction

from .enums import BusinessRules
from .models import QuoteRequest

logger = logging.getLogger(__name__)


class ReferenceExhaustedError(Exception):
    """Every candidate reference collided. Reported to callers as an internal error."""


def generate_quote_reference() -> str:
    timestamp = str(int(time.time() * 1000))[-6:]
    suffix = f"{random.randint(0, 999):03d}"
    return f"{BusinessRules.REFERENCE_PREFIX}{timestamp}{suffix}"


def reference_taken(reference) -> bool:
    return QuoteRequest.objects.filter(reference=reference).exists()


def create_quote_with_reference(**fields) -> QuoteRequest:
    """Insert a quote request under a freshly generated unique reference"""
    max_attempts = BusinessRules.reference_max_attempts()

    for attempt in range(1, max_attempts + 1):
        reference = generate_quote_reference()

        if reference_taken(reference):
            logger.warning(f"Quote reference {reference} already taken (attempt {attempt}/{max_attempts})")
            continue

        try:
            with transaction.atomic():
                return QuoteRequest.objects.create(reference=reference, **fields)
        except IntegrityError:
            # Lost the race to a concurrent submit; anything else is not ours to retry
            if not QuoteRequest.objects.filter(reference=reference).exists():
                raise
            logger.warning(f"Quote reference {reference} collided on insert (attempt {attempt}/{max_attempts})")

    raise ReferenceExhaustedError(f"No unique quote reference after {max_attempts} attempts")
