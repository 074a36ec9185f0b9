"""
Customer / operator alerts for quote activity.

Alerts are queued with ``transaction.on_commit`` so they only go out for
changes that were actually stored, and a failing receiver never touches the
request that caused it. Delivery channels (email, WhatsApp) connect a
receiver to ``quote_event``; out of the box every alert is only written to
the log.
"""
import logging

from django.db import transaction
from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# Sent with ``event`` (e.g. "quote_accepted") and ``payload`` (dict)
quote_event = Signal()


@receiver(quote_event, dispatch_uid='quotes.log_notification')
def log_notification(sender, event, payload, **kwargs):
    logger.info(f"Notification {event} for {payload.get('reference')}: {payload}")


def _deliver(event, payload):
    responses = quote_event.send_robust(sender=None, event=event, payload=payload)
    for handler, response in responses:
        if isinstance(response, Exception):
            logger.error(
                f"Notification handler {getattr(handler, '__name__', handler)} failed for {event}",
                exc_info=response
            )


def notify_quote_event(quote, event, **extra):
    """Queue an alert for a lifecycle change on ``quote`` (submitted, quoted, accepted, ...)"""
    payload = {
        'quote_id': quote.pk,
        'reference': quote.reference,
        'status': quote.status,
        **extra,
    }
    transaction.on_commit(lambda: _deliver(event, payload))


def notify_message_posted(message):
    payload = {
        'quote_id': message.quote_request_id,
        'reference': message.quote_request.reference,
        'sender_type': message.sender_type,
        'message_id': message.pk,
    }
    transaction.on_commit(lambda: _deliver('message_posted', payload))
