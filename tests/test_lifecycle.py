from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from project.exceptions import ConflictError, ExpiredError, NotFoundError, ValidationError
from quotes.enums import BusinessRules, ErrorMessages, QuoteAction, QuoteStatus
from quotes.models import QuoteRequest
from quotes.services import QuoteLifecycleService

pytestmark = pytest.mark.django_db


def snapshot(quote):
    """Stored lifecycle columns, for checking that a refused move changed nothing"""
    return QuoteRequest.objects.filter(pk=quote.pk).values(
        'status', 'version', 'quoted_price', 'revision_count', 'quote_expires_at',
        'accepted_at', 'rejected_at', 'cancelled_at', 'paid_at'
    ).get()


class TestTransitionGraph:

    def test_graph_matches_documented_moves(self):
        assert BusinessRules.TRANSITIONS == {
            (QuoteStatus.PENDING, QuoteAction.QUOTE): QuoteStatus.QUOTED,
            (QuoteStatus.PENDING, QuoteAction.CANCEL): QuoteStatus.CANCELLED,
            (QuoteStatus.QUOTED, QuoteAction.REVISE): QuoteStatus.QUOTED,
            (QuoteStatus.QUOTED, QuoteAction.ACCEPT): QuoteStatus.ACCEPTED,
            (QuoteStatus.QUOTED, QuoteAction.REJECT): QuoteStatus.REJECTED,
            (QuoteStatus.QUOTED, QuoteAction.CANCEL): QuoteStatus.CANCELLED,
            (QuoteStatus.QUOTED, QuoteAction.EXPIRE): QuoteStatus.EXPIRED,
            (QuoteStatus.ACCEPTED, QuoteAction.PAY): QuoteStatus.PAID,
            (QuoteStatus.ACCEPTED, QuoteAction.CANCEL): QuoteStatus.CANCELLED,
        }

    @pytest.mark.parametrize('status', BusinessRules.TERMINAL_STATUSES)
    def test_terminal_states_have_no_outgoing_moves(self, status):
        assert all(from_status != status for from_status, _ in BusinessRules.TRANSITIONS)

    def test_submit_starts_pending_with_version_zero(self, pending_quote):
        assert pending_quote.status == QuoteStatus.PENDING
        assert pending_quote.version == 0
        assert pending_quote.revision_count == 0

    def test_every_transition_bumps_version(self, accepted_quote):
        # submit (0) -> quote (1) -> accept (2)
        assert accepted_quote.version == 2


class TestRespond:

    def test_first_quote_sets_expiry_and_zero_revisions(self, pending_quote, operator, terms):
        quote = QuoteLifecycleService.respond(operator, pending_quote.pk, terms)

        assert quote.status == QuoteStatus.QUOTED
        assert quote.quoted_price == 1200000
        assert quote.quote_expires_at == quote.quoted_at + timedelta(hours=72)
        assert quote.revision_count == 0
        assert quote.last_revised_at is None
        assert quote.quoted_inclusions == [
            {'item': 'Park fees', 'price': None},
            {'item': 'Lodge', 'price': 900000},
        ]

    def test_revisions_count_up(self, pending_quote, operator, terms):
        first = QuoteLifecycleService.respond(operator, pending_quote.pk, terms)
        assert first.revision_count == 0

        second = QuoteLifecycleService.respond(operator, pending_quote.pk, dict(terms, quoted_price=1100000))
        assert second.revision_count == 1
        assert second.last_revised_at is not None
        assert second.quoted_price == 1100000

        third = QuoteLifecycleService.respond(operator, pending_quote.pk, dict(terms, quoted_price=1050000))
        assert third.revision_count == 2
        assert third.status == QuoteStatus.QUOTED

    def test_validity_defaults_to_72_hours(self, pending_quote, operator):
        quote = QuoteLifecycleService.respond(operator, pending_quote.pk, {'quoted_price': 500000})

        assert quote.quote_validity_hours == 72
        assert quote.quote_expires_at - quote.quoted_at == timedelta(hours=72)

    def test_custom_validity_window(self, pending_quote, operator, terms):
        quote = QuoteLifecycleService.respond(operator, pending_quote.pk, dict(terms, quote_validity_hours=24))
        assert quote.quote_expires_at - quote.quoted_at == timedelta(hours=24)

    def test_validity_of_one_year_is_allowed(self, pending_quote, operator, terms):
        quote = QuoteLifecycleService.respond(operator, pending_quote.pk, dict(terms, quote_validity_hours=8760))
        assert quote.quote_expires_at - quote.quoted_at == timedelta(days=365)

    @pytest.mark.parametrize('hours', [0, -5, 8761, 100_000_000])
    def test_validity_outside_window_is_rejected(self, pending_quote, operator, terms, hours):
        with pytest.raises(ValidationError) as excinfo:
            QuoteLifecycleService.respond(operator, pending_quote.pk, dict(terms, quote_validity_hours=hours))

        assert excinfo.value.message == ErrorMessages.INVALID_VALIDITY
        assert QuoteRequest.objects.get(pk=pending_quote.pk).status == QuoteStatus.PENDING

    @pytest.mark.parametrize('price', [0, -100, None, 12.5, 2 ** 63, 10 ** 20])
    def test_price_must_be_positive_cents(self, pending_quote, operator, terms, price):
        with pytest.raises(ValidationError):
            QuoteLifecycleService.respond(operator, pending_quote.pk, dict(terms, quoted_price=price))

    def test_cannot_revise_accepted_quote(self, accepted_quote, operator, terms):
        before = snapshot(accepted_quote)

        with pytest.raises(ConflictError) as excinfo:
            QuoteLifecycleService.respond(operator, accepted_quote.pk, terms)

        assert excinfo.value.message == ErrorMessages.CANNOT_REVISE
        assert snapshot(accepted_quote) == before

    def test_cannot_revise_paid_quote(self, paid_quote, operator, terms):
        with pytest.raises(ConflictError) as excinfo:
            QuoteLifecycleService.respond(operator, paid_quote.pk, terms)
        assert excinfo.value.message == ErrorMessages.CANNOT_REVISE

    def test_cannot_quote_cancelled_request(self, pending_quote, customer, operator, terms):
        QuoteLifecycleService.cancel(customer, pending_quote.pk)
        before = snapshot(pending_quote)

        with pytest.raises(ConflictError):
            QuoteLifecycleService.respond(operator, pending_quote.pk, terms)
        assert snapshot(pending_quote) == before

    def test_unknown_quote_is_not_found(self, operator, terms):
        with pytest.raises(NotFoundError):
            QuoteLifecycleService.respond(operator, 999999, terms)


class TestAccept:

    def test_accept_sets_timestamp(self, quoted_quote, customer):
        quote = QuoteLifecycleService.accept(customer, quoted_quote.pk)

        assert quote.status == QuoteStatus.ACCEPTED
        assert quote.accepted_at is not None

    def test_accept_one_second_before_expiry(self, quoted_quote, customer):
        moment = quoted_quote.quote_expires_at - timedelta(seconds=1)
        with mock.patch('django.utils.timezone.now', return_value=moment):
            quote = QuoteLifecycleService.accept(customer, quoted_quote.pk)

        assert quote.status == QuoteStatus.ACCEPTED
        assert quote.accepted_at == moment

    def test_accept_at_exact_expiry_instant(self, quoted_quote, customer):
        with mock.patch('django.utils.timezone.now', return_value=quoted_quote.quote_expires_at):
            quote = QuoteLifecycleService.accept(customer, quoted_quote.pk)
        assert quote.status == QuoteStatus.ACCEPTED

    def test_accept_after_expiry_fails_and_changes_nothing(self, quoted_quote, customer):
        before = snapshot(quoted_quote)
        moment = quoted_quote.quote_expires_at + timedelta(seconds=1)

        with mock.patch('django.utils.timezone.now', return_value=moment):
            with pytest.raises(ExpiredError):
                QuoteLifecycleService.accept(customer, quoted_quote.pk)

        assert snapshot(quoted_quote) == before

    def test_accept_requires_quoted_status(self, pending_quote, customer):
        before = snapshot(pending_quote)

        with pytest.raises(ConflictError):
            QuoteLifecycleService.accept(customer, pending_quote.pk)
        assert snapshot(pending_quote) == before

    def test_accept_twice_conflicts(self, accepted_quote, customer):
        with pytest.raises(ConflictError):
            QuoteLifecycleService.accept(customer, accepted_quote.pk)


class TestRejectAndCancel:

    def test_reject_stores_reason(self, quoted_quote, customer):
        quote = QuoteLifecycleService.reject(customer, quoted_quote.pk, '  Over our budget  ')

        assert quote.status == QuoteStatus.REJECTED
        assert quote.rejected_at is not None
        assert quote.rejection_reason == 'Over our budget'

    def test_reject_pending_conflicts(self, pending_quote, customer):
        with pytest.raises(ConflictError):
            QuoteLifecycleService.reject(customer, pending_quote.pk, 'No')

    @pytest.mark.parametrize('fixture_name', ['pending_quote', 'quoted_quote', 'accepted_quote'])
    def test_cancel_from_open_states(self, request, customer, fixture_name):
        quote = request.getfixturevalue(fixture_name)

        cancelled = QuoteLifecycleService.cancel(customer, quote.pk, 'Plans changed')

        assert cancelled.status == QuoteStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert cancelled.cancellation_reason == 'Plans changed'

    @pytest.mark.parametrize('reason', [None, '', 'Found a cheaper trip'])
    def test_cancel_paid_booking_conflicts(self, paid_quote, customer, reason):
        before = snapshot(paid_quote)

        with pytest.raises(ConflictError) as excinfo:
            QuoteLifecycleService.cancel(customer, paid_quote.pk, reason)

        assert excinfo.value.message == ErrorMessages.CANNOT_CANCEL_PAID
        assert snapshot(paid_quote) == before

    def test_cancel_rejected_quote_conflicts(self, quoted_quote, customer):
        QuoteLifecycleService.reject(customer, quoted_quote.pk, 'No thanks')

        with pytest.raises(ConflictError) as excinfo:
            QuoteLifecycleService.cancel(customer, quoted_quote.pk)
        assert excinfo.value.message == ErrorMessages.CANNOT_CANCEL


class TestMarkPaid:

    def test_paid_with_matching_amount(self, accepted_quote):
        quote = QuoteLifecycleService.mark_paid(
            amount=1200000, payment_reference='PAY-42', quote_id=accepted_quote.pk
        )

        assert quote.status == QuoteStatus.PAID
        assert quote.paid_amount == 1200000
        assert quote.payment_reference == 'PAY-42'
        assert quote.paid_at is not None
        assert quote.booking_reference == 'BK-' + quote.reference[3:]

    def test_amount_mismatch_is_refused_and_logged(self, accepted_quote, caplog):
        before = snapshot(accepted_quote)

        with pytest.raises(ValidationError) as excinfo:
            QuoteLifecycleService.mark_paid(amount=1199999, payment_reference='PAY-43', quote_id=accepted_quote.pk)

        assert excinfo.value.message == ErrorMessages.PAYMENT_AMOUNT_MISMATCH
        assert snapshot(accepted_quote) == before
        assert any('amount mismatch' in record.getMessage() for record in caplog.records)

    def test_only_accepted_quotes_can_be_paid(self, quoted_quote):
        with pytest.raises(ConflictError):
            QuoteLifecycleService.mark_paid(amount=1200000, payment_reference='PAY-44', quote_id=quoted_quote.pk)

    def test_lookup_by_reference(self, accepted_quote):
        quote = QuoteLifecycleService.mark_paid(
            amount=1200000, payment_reference='PAY-45', reference=accepted_quote.reference
        )
        assert quote.status == QuoteStatus.PAID

    def test_repeated_callback_is_idempotent(self, paid_quote):
        again = QuoteLifecycleService.mark_paid(
            amount=paid_quote.quoted_price, payment_reference='PAY-0001', quote_id=paid_quote.pk
        )
        assert again.status == QuoteStatus.PAID
        assert again.version == paid_quote.version

    def test_payment_reference_required(self, accepted_quote):
        with pytest.raises(ValidationError):
            QuoteLifecycleService.mark_paid(amount=1200000, payment_reference='  ', quote_id=accepted_quote.pk)

    def test_unknown_quote(self, db):
        with pytest.raises(NotFoundError):
            QuoteLifecycleService.mark_paid(amount=1, payment_reference='PAY-1', reference='QR-000000000')


class TestExpirySweep:

    def test_stale_quotes_expire(self, quoted_quote):
        later = quoted_quote.quote_expires_at + timedelta(minutes=1)

        assert QuoteLifecycleService.expire_stale_quotes(now=later) == 1

        quote = QuoteRequest.objects.get(pk=quoted_quote.pk)
        assert quote.status == QuoteStatus.EXPIRED
        assert quote.version == quoted_quote.version + 1

    def test_quotes_within_window_are_left_alone(self, quoted_quote, pending_quote):
        assert QuoteLifecycleService.expire_stale_quotes(now=quoted_quote.quote_expires_at) == 0
        assert QuoteRequest.objects.get(pk=quoted_quote.pk).status == QuoteStatus.QUOTED

    def test_accepted_quotes_never_expire(self, accepted_quote):
        later = accepted_quote.quote_expires_at + timedelta(days=10)

        assert QuoteLifecycleService.expire_stale_quotes(now=later) == 0
        assert QuoteRequest.objects.get(pk=accepted_quote.pk).status == QuoteStatus.ACCEPTED

    def test_expired_quote_cannot_be_accepted(self, quoted_quote, customer):
        QuoteLifecycleService.expire_stale_quotes(now=quoted_quote.quote_expires_at + timedelta(minutes=1))

        with pytest.raises(ConflictError):
            QuoteLifecycleService.accept(customer, quoted_quote.pk)


class TestConcurrentUpdates:

    def test_stale_read_loses_the_race(self, quoted_quote, customer):
        stale = QuoteRequest.objects.get(pk=quoted_quote.pk)
        # Another request cancels the quote after we read it
        QuoteLifecycleService.cancel(customer, quoted_quote.pk)

        with pytest.raises(ConflictError) as excinfo:
            QuoteLifecycleService._apply_transition(
                stale, QuoteAction.ACCEPT, ErrorMessages.CANNOT_ACCEPT, accepted_at=timezone.now()
            )

        assert excinfo.value.message == ErrorMessages.CONCURRENT_UPDATE
        assert QuoteRequest.objects.get(pk=quoted_quote.pk).status == QuoteStatus.CANCELLED

    def test_version_mismatch_with_same_status(self, quoted_quote, operator, terms):
        stale = QuoteRequest.objects.get(pk=quoted_quote.pk)
        QuoteLifecycleService.respond(operator, quoted_quote.pk, terms)

        with pytest.raises(ConflictError):
            QuoteLifecycleService._apply_transition(stale, QuoteAction.REVISE, ErrorMessages.CANNOT_REVISE)

    def test_illegal_move_is_refused_before_writing(self, pending_quote):
        with pytest.raises(ConflictError) as excinfo:
            QuoteLifecycleService._apply_transition(pending_quote, QuoteAction.PAY, ErrorMessages.CANNOT_MARK_PAID)
        assert excinfo.value.message == ErrorMessages.CANNOT_MARK_PAID
