"""
Business rule validation for quote requests.
Eligibility is checked once, when the customer submits. Nothing here is re-run later in the lifecycle.
"""
from typing import Dict, List, Optional

from django.utils import timezone

from project.exceptions import NotFoundError, ValidationError
from tours.models import Tour
from .enums import BusinessRules, ErrorMessages
from .fields import normalize_price_lines


class QuoteEligibilityValidator:
    """Pre-conditions a trip has to meet before a quote request is stored"""

    @staticmethod
    def get_bookable_tour(tour_id) -> Tour:
        """
        Missing, inactive and unapproved-operator tours all look the same to
        the customer, so operator approval state never leaks.
        """
        tour = (
            Tour.objects.select_related('operator_profile')
            .filter(pk=tour_id, is_active=True, operator_profile__is_approved=True)
            .first()
        )
        if tour is None:
            raise NotFoundError(ErrorMessages.TOUR_UNAVAILABLE)
        return tour

    @staticmethod
    def validate_party_size(tour: Tour, adults: int, children: int) -> None:
        if adults is None or adults < 1:
            raise ValidationError(ErrorMessages.ADULTS_REQUIRED, errors={'adults': [ErrorMessages.ADULTS_REQUIRED]})
        if children is None or children < 0:
            raise ValidationError(ErrorMessages.CHILDREN_NEGATIVE, errors={'children': [ErrorMessages.CHILDREN_NEGATIVE]})
        for field, count in (('adults', adults), ('children', children)):
            if count > BusinessRules.MAX_PARTY_SIZE:
                message = ErrorMessages.PARTY_TOO_LARGE.format(max_party=BusinessRules.MAX_PARTY_SIZE)
                raise ValidationError(message, errors={field: [message]})

        if tour.max_capacity is not None and adults + children > tour.max_capacity:
            message = ErrorMessages.OVER_CAPACITY.format(max_capacity=tour.max_capacity)
            raise ValidationError(message, errors={'adults': [message]})

    @staticmethod
    def validate_preferred_date(preferred_date, today=None) -> None:
        """Calendar-date comparison in the server's time zone; today itself is allowed"""
        today = today or timezone.localdate()
        if preferred_date < today:
            raise ValidationError(
                ErrorMessages.DATE_IN_PAST,
                errors={'preferred_date': [ErrorMessages.DATE_IN_PAST]}
            )

    @staticmethod
    def validate_child_ages(children: int, child_ages: Optional[List[int]]) -> List[int]:
        if not child_ages:
            return []

        if len(child_ages) != children:
            message = ErrorMessages.CHILD_AGES_MISMATCH.format(children=children)
            raise ValidationError(message, errors={'child_ages': [message]})

        for age in child_ages:
            if isinstance(age, bool) or not isinstance(age, int) or not 0 <= age <= BusinessRules.MAX_CHILD_AGE:
                message = ErrorMessages.CHILD_AGE_RANGE.format(max_age=BusinessRules.MAX_CHILD_AGE)
                raise ValidationError(message, errors={'child_ages': [message]})
        return list(child_ages)

    @staticmethod
    def validate_submission(tour_id, trip: Dict) -> Tour:
        """Run every submit-time check in order and return the tour the quote will point at"""
        tour = QuoteEligibilityValidator.get_bookable_tour(tour_id)

        adults = trip.get('adults', 1)
        children = trip.get('children', 0)
        QuoteEligibilityValidator.validate_party_size(tour, adults, children)
        QuoteEligibilityValidator.validate_preferred_date(trip['preferred_date'])
        trip['child_ages'] = QuoteEligibilityValidator.validate_child_ages(children, trip.get('child_ages'))
        return tour


class QuoteTermsValidator:
    """Checks an operator's offer before it is written onto a quote"""

    @staticmethod
    def validate_price(quoted_price) -> int:
        if isinstance(quoted_price, bool) or not isinstance(quoted_price, int) or \
                not 0 < quoted_price <= BusinessRules.MAX_PRICE_CENTS:
            raise ValidationError(ErrorMessages.INVALID_PRICE, errors={'quoted_price': [ErrorMessages.INVALID_PRICE]})
        return quoted_price

    @staticmethod
    def validate_validity_hours(hours) -> int:
        if hours is None:
            return BusinessRules.default_validity_hours()
        if isinstance(hours, bool) or not isinstance(hours, int) or \
                not 0 < hours <= BusinessRules.MAX_VALIDITY_HOURS:
            raise ValidationError(
                ErrorMessages.INVALID_VALIDITY,
                errors={'quote_validity_hours': [ErrorMessages.INVALID_VALIDITY]}
            )
        return hours

    @staticmethod
    def validate_terms(terms: Dict) -> Dict:
        return {
            'quoted_price': QuoteTermsValidator.validate_price(terms.get('quoted_price')),
            'quoted_inclusions': normalize_price_lines(terms.get('quoted_inclusions')),
            'quoted_exclusions': normalize_price_lines(terms.get('quoted_exclusions')),
            'quoted_terms': (terms.get('quoted_terms') or '').strip(),
            'quote_validity_hours': QuoteTermsValidator.validate_validity_hours(terms.get('quote_validity_hours')),
        }
