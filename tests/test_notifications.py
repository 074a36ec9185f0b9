import logging

import pytest

from quotes import notifications
from quotes.services import QuoteLifecycleService, QuoteMessagingService

pytestmark = pytest.mark.django_db


@pytest.fixture
def received():
    events = []

    def collect(sender, event, payload, **kwargs):
        events.append((event, payload))

    notifications.quote_event.connect(collect)
    yield events
    notifications.quote_event.disconnect(collect)


@pytest.fixture
def broken_handler():
    def explode(sender, event, payload, **kwargs):
        raise RuntimeError("mail server down")

    notifications.quote_event.connect(explode)
    yield explode
    notifications.quote_event.disconnect(explode)


def test_submission_is_announced_after_commit(customer, tour, trip, received, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        quote = QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert received == [('quote_submitted', {
        'quote_id': quote.pk,
        'reference': quote.reference,
        'status': 'pending',
        'operator_profile_id': tour.operator_profile_id,
    })]


def test_nothing_is_sent_before_commit(customer, tour, trip, received, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks() as callbacks:
        QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert received == []
    assert len(callbacks) == 1


def test_message_is_announced(pending_quote, operator, received, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        message = QuoteMessagingService.post_message(operator, pending_quote.pk, 'Dates work for us')

    event, payload = received[0]
    assert event == 'message_posted'
    assert payload['message_id'] == message.pk
    assert payload['sender_type'] == 'operator'


def test_failing_handler_is_logged_not_raised(
    pending_quote, customer, broken_handler, received, caplog, django_capture_on_commit_callbacks
):
    with caplog.at_level(logging.ERROR, logger='quotes.notifications'):
        with django_capture_on_commit_callbacks(execute=True):
            QuoteLifecycleService.cancel(customer, pending_quote.pk, reason='Plans changed')

    assert [event for event, _ in received] == ['quote_cancelled']
    assert "Notification handler explode failed for quote_cancelled" in caplog.text


def test_log_receiver_is_connected_once(customer, tour, trip, caplog, django_capture_on_commit_callbacks):
    with caplog.at_level(logging.INFO, logger='quotes.notifications'):
        with django_capture_on_commit_callbacks(execute=True):
            quote = QuoteLifecycleService.submit(customer, tour.pk, trip)

    assert caplog.text.count(f"Notification quote_submitted for {quote.reference}") == 1
