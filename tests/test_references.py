import re
from unittest import mock

import pytest
from django.db import IntegrityError

from quotes.models import QuoteRequest
from quotes.references import ReferenceExhaustedError, generate_quote_reference
from quotes.services import QuoteLifecycleService

pytestmark = pytest.mark.django_db

REFERENCE_PATTERN = re.compile(r'^QR-\d{9}$')


def test_reference_format():
    for _ in range(20):
        assert REFERENCE_PATTERN.match(generate_quote_reference())


def test_consecutive_submits_get_distinct_references(customer, tour, trip):
    first = QuoteLifecycleService.submit(customer, tour.pk, trip)
    second = QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert first.reference != second.reference


def test_forced_collision_retries_once(customer, tour, trip):
    taken = QuoteLifecycleService.submit(customer, tour.pk, trip)

    with mock.patch(
        'quotes.references.generate_quote_reference',
        side_effect=[taken.reference, 'QR-123456789']
    ) as generator:
        quote = QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert generator.call_count == 2
    assert quote.reference == 'QR-123456789'
    assert QuoteRequest.objects.count() == 2


def test_gives_up_after_max_attempts(customer, tour, trip, settings):
    settings.QUOTE_REFERENCE_MAX_ATTEMPTS = 3
    taken = QuoteLifecycleService.submit(customer, tour.pk, trip)

    with mock.patch('quotes.references.generate_quote_reference', return_value=taken.reference) as generator:
        with pytest.raises(ReferenceExhaustedError):
            QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert generator.call_count == 3
    assert QuoteRequest.objects.count() == 1


def test_collision_on_insert_retries_under_savepoint(customer, tour, trip, caplog):
    # A concurrent submit took the reference between the check and the insert
    taken = QuoteLifecycleService.submit(customer, tour.pk, trip)

    with mock.patch('quotes.references.reference_taken', return_value=False), \
            mock.patch(
                'quotes.references.generate_quote_reference',
                side_effect=[taken.reference, 'QR-987654321']
            ) as generator:
        quote = QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert generator.call_count == 2
    assert quote.reference == 'QR-987654321'
    assert QuoteRequest.objects.filter(reference='QR-987654321').exists()
    assert QuoteRequest.objects.count() == 2
    assert f"Quote reference {taken.reference} collided on insert" in caplog.text


def test_insert_error_unrelated_to_reference_is_raised(customer, tour, trip):
    with mock.patch('quotes.references.QuoteRequest.objects.create', side_effect=IntegrityError("tour_id")):
        with pytest.raises(IntegrityError):
            QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert not QuoteRequest.objects.exists()
