from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from authentication.enums import UserRole
from authentication.models import CustomUser
from quotes.services import QuoteLifecycleService
from tours.models import OperatorProfile, Tour


@pytest.fixture(autouse=True)
def _test_settings(settings):
    settings.RATELIMIT_ENABLE = False
    settings.PAYMENT_CALLBACK_SECRET = "test-payment-secret"
    settings.QUOTE_DEFAULT_VALIDITY_HOURS = 72
    settings.QUOTE_REFERENCE_MAX_ATTEMPTS = 5


@pytest.fixture
def payment_secret(settings):
    return settings.PAYMENT_CALLBACK_SECRET


@pytest.fixture
def api_client():
    return APIClient()


def make_user(email, role, **extra):
    extra.setdefault('name', email.split('@')[0].title())
    return CustomUser.objects.create_user(email=email, password='pass12345', role=role, **extra)


def make_operator(email, company_name, approved=True):
    user = make_user(email, UserRole.OPERATOR)
    OperatorProfile.objects.create(
        user=user,
        company_name=company_name,
        is_approved=approved,
        approved_at=timezone.now() if approved else None
    )
    return user


@pytest.fixture
def customer(db):
    return make_user(
        'lerato@example.com', UserRole.USER,
        name='Lerato Mokoena', phone_number='+27831112222', whatsapp_number='+27831113333'
    )


@pytest.fixture
def other_customer(db):
    return make_user('sipho@example.com', UserRole.USER, name='Sipho Dube')


@pytest.fixture
def operator(db):
    return make_operator('ops@savanna.example.com', 'Savanna Trails Safaris')


@pytest.fixture
def other_operator(db):
    return make_operator('ops@capecoast.example.com', 'Cape Coast Adventures')


@pytest.fixture
def pending_operator(db):
    return make_operator('ops@newcomer.example.com', 'Newcomer Tours', approved=False)


@pytest.fixture
def operator_without_profile(db):
    return make_user('ops@noprofile.example.com', UserRole.OPERATOR)


@pytest.fixture
def admin_user(db):
    return CustomUser.objects.create_superuser(email='admin@example.com', password='pass12345', name='Admin')


@pytest.fixture
def tour(operator):
    return Tour.objects.create(
        operator_profile=operator.operator_profile,
        title='Kruger Big Five Safari',
        description='Game drives in the Kruger National Park',
        duration='5 days / 4 nights',
        price_from=1850000,
        region='Southern Africa',
        countries=['South Africa'],
        category='safari',
        max_capacity=10
    )


@pytest.fixture
def small_tour(operator):
    return Tour.objects.create(
        operator_profile=operator.operator_profile,
        title='Okavango Mokoro Expedition',
        price_from=3200000,
        countries=['Botswana'],
        category='adventure',
        max_capacity=4
    )


@pytest.fixture
def trip():
    return {
        'preferred_date': timezone.localdate() + timedelta(days=30),
        'adults': 2,
        'children': 0,
    }


@pytest.fixture
def terms():
    return {
        'quoted_price': 1200000,
        'quoted_inclusions': [{'item': 'Park fees', 'price': None}, {'item': 'Lodge', 'price': 900000}],
        'quoted_exclusions': [{'item': 'Flights', 'price': None}],
        'quoted_terms': '30% deposit on acceptance',
        'quote_validity_hours': 72,
    }


@pytest.fixture
def pending_quote(customer, tour, trip):
    return QuoteLifecycleService.submit(customer, tour.pk, trip)


@pytest.fixture
def quoted_quote(pending_quote, operator, terms):
    return QuoteLifecycleService.respond(operator, pending_quote.pk, terms)


@pytest.fixture
def accepted_quote(quoted_quote, customer):
    return QuoteLifecycleService.accept(customer, quoted_quote.pk)


@pytest.fixture
def paid_quote(accepted_quote):
    return QuoteLifecycleService.mark_paid(
        amount=accepted_quote.quoted_price,
        payment_reference='PAY-0001',
        quote_id=accepted_quote.pk
    )
