from datetime import timedelta

import pytest
from django.utils import timezone

from project.exceptions import ForbiddenError, NotFoundError, ValidationError
from quotes.enums import ErrorMessages, QuoteStatus
from quotes.models import QuoteRequest
from quotes.services import QuoteLifecycleService
from quotes.validators import QuoteEligibilityValidator

pytestmark = pytest.mark.django_db


class TestCapacity:

    def test_over_capacity_is_rejected(self, customer, small_tour, trip):
        trip.update(adults=3, children=2, child_ages=[5, 9])

        with pytest.raises(ValidationError) as excinfo:
            QuoteLifecycleService.submit(customer, small_tour.pk, trip)

        assert excinfo.value.message == "This tour has a maximum capacity of 4 guests."
        assert not QuoteRequest.objects.exists()

    def test_exactly_at_capacity_is_accepted(self, customer, small_tour, trip):
        trip.update(adults=2, children=2, child_ages=[5, 9])

        quote = QuoteLifecycleService.submit(customer, small_tour.pk, trip)

        assert quote.status == QuoteStatus.PENDING
        assert quote.child_ages == [5, 9]

    def test_no_cap_when_capacity_unset(self, customer, tour, trip):
        tour.max_capacity = None
        tour.save()
        trip.update(adults=40)

        assert QuoteLifecycleService.submit(customer, tour.pk, trip).adults == 40

    def test_at_least_one_adult(self, customer, tour, trip):
        trip.update(adults=0, children=2)

        with pytest.raises(ValidationError) as excinfo:
            QuoteLifecycleService.submit(customer, tour.pk, trip)
        assert excinfo.value.message == ErrorMessages.ADULTS_REQUIRED

    @pytest.mark.parametrize('field', ['adults', 'children'])
    def test_guest_counts_fit_the_column(self, customer, tour, trip, field):
        tour.max_capacity = None
        tour.save()
        trip[field] = 32768

        with pytest.raises(ValidationError) as excinfo:
            QuoteLifecycleService.submit(customer, tour.pk, trip)

        assert field in excinfo.value.errors
        assert not QuoteRequest.objects.exists()


class TestPreferredDate:

    def test_yesterday_is_rejected(self, customer, tour, trip):
        trip['preferred_date'] = timezone.localdate() - timedelta(days=1)

        with pytest.raises(ValidationError) as excinfo:
            QuoteLifecycleService.submit(customer, tour.pk, trip)
        assert excinfo.value.message == ErrorMessages.DATE_IN_PAST

    def test_today_is_accepted(self, customer, tour, trip):
        trip['preferred_date'] = timezone.localdate()

        quote = QuoteLifecycleService.submit(customer, tour.pk, trip)
        assert quote.preferred_date == timezone.localdate()

    def test_date_compared_without_time_of_day(self):
        today = timezone.localdate()

        QuoteEligibilityValidator.validate_preferred_date(today, today=today)
        with pytest.raises(ValidationError):
            QuoteEligibilityValidator.validate_preferred_date(today - timedelta(days=1), today=today)


class TestTourAvailability:

    def test_missing_tour(self, customer, trip):
        with pytest.raises(NotFoundError) as excinfo:
            QuoteLifecycleService.submit(customer, 424242, trip)
        assert excinfo.value.message == ErrorMessages.TOUR_UNAVAILABLE

    def test_inactive_tour_looks_missing(self, customer, tour, trip):
        tour.is_active = False
        tour.save()

        with pytest.raises(NotFoundError) as excinfo:
            QuoteLifecycleService.submit(customer, tour.pk, trip)
        assert excinfo.value.message == ErrorMessages.TOUR_UNAVAILABLE

    def test_unapproved_operator_tour_looks_missing(self, customer, tour, trip):
        profile = tour.operator_profile
        profile.is_approved = False
        profile.save()

        with pytest.raises(NotFoundError) as excinfo:
            QuoteLifecycleService.submit(customer, tour.pk, trip)
        assert excinfo.value.message == ErrorMessages.TOUR_UNAVAILABLE

    def test_only_customers_submit(self, operator, tour, trip):
        with pytest.raises(ForbiddenError):
            QuoteLifecycleService.submit(operator, tour.pk, trip)


class TestChildAges:

    def test_ages_must_match_children(self, customer, tour, trip):
        trip.update(children=2, child_ages=[7])

        with pytest.raises(ValidationError) as excinfo:
            QuoteLifecycleService.submit(customer, tour.pk, trip)
        assert excinfo.value.message == "Please provide exactly 2 child ages."

    def test_ages_optional(self, customer, tour, trip):
        trip.update(children=2)

        quote = QuoteLifecycleService.submit(customer, tour.pk, trip)
        assert quote.child_ages == []

    @pytest.mark.parametrize('age', [-1, 18, '5'])
    def test_age_range(self, age):
        with pytest.raises(ValidationError):
            QuoteEligibilityValidator.validate_child_ages(1, [age])


class TestSubmitSnapshot:

    def test_contact_details_default_to_account(self, customer, tour, trip):
        quote = QuoteLifecycleService.submit(customer, tour.pk, trip)

        assert quote.customer_name == 'Lerato Mokoena'
        assert quote.customer_email == 'lerato@example.com'
        assert quote.customer_phone == '+27831112222'

    def test_form_contact_details_are_kept(self, customer, tour, trip):
        trip.update(customer_name='L. Mokoena', customer_phone='+27830000000')

        quote = QuoteLifecycleService.submit(customer, tour.pk, trip)

        assert quote.customer_name == 'L. Mokoena'
        assert quote.customer_phone == '+27830000000'
        assert quote.customer_email == 'lerato@example.com'
