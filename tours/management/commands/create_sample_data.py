"""
Management command to create sample data for the tour marketplace
"""
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from authentication.enums import UserRole
from quotes.models import QuoteMessage, QuoteRequest
from quotes.services import QuoteLifecycleService, QuoteMessagingService
from tours.models import OperatorProfile, Tour

User = get_user_model()


class Command(BaseCommand):
    help = 'Create sample data for the tour marketplace'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            dest='clear',
            help='Clear existing data before creating new sample data',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.clear_existing_data()

        self.stdout.write('Creating sample data...')

        with transaction.atomic():
            self.create_admin()
            operators = self.create_operators()
            tours = self.create_tours(operators)
            customer = self.create_customer()
            self.create_quotes(customer, operators, tours)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.print_test_endpoints()

    def clear_existing_data(self):
        self.stdout.write('Clearing existing sample data...')

        # Clear in reverse order of dependencies
        QuoteMessage.objects.all().delete()
        QuoteRequest.objects.all().delete()
        Tour.objects.all().delete()
        OperatorProfile.objects.all().delete()

        # Clear operator and customer users (keep admin)
        User.objects.filter(role__in=[UserRole.OPERATOR, UserRole.USER]).delete()

        self.stdout.write('Existing data cleared!')

    def create_admin(self):
        if not User.objects.filter(email='admin@tourquote.co.za').exists():
            User.objects.create_superuser(email='admin@tourquote.co.za', password='admin123', name='Platform Admin')
            self.stdout.write("Created admin user")

    def create_operators(self):
        operator_data = [
            {
                'email': 'operator1@tourquote.co.za',
                'name': 'Thandi Nkosi',
                'company_name': 'Savanna Trails Safaris',
                'phone_number': '+27821234567',
                'is_approved': True,
            },
            {
                'email': 'operator2@tourquote.co.za',
                'name': 'Pieter van Wyk',
                'company_name': 'Cape Coast Adventures',
                'phone_number': '+27827654321',
                'is_approved': False,
            },
        ]

        operators = []
        for info in operator_data:
            user, created = User.objects.get_or_create(
                email=info['email'],
                defaults={
                    'name': info['name'],
                    'role': UserRole.OPERATOR,
                    'phone_number': info['phone_number'],
                }
            )
            if created:
                user.set_password('operator123')
                user.save()

            profile, created = OperatorProfile.objects.get_or_create(
                user=user,
                defaults={
                    'company_name': info['company_name'],
                    'phone_number': info['phone_number'],
                    'whatsapp_number': info['phone_number'],
                    'is_approved': info['is_approved'],
                    'approved_at': timezone.now() if info['is_approved'] else None,
                }
            )
            if created:
                state = 'approved' if profile.is_approved else 'pending approval'
                self.stdout.write(f"Created operator: {profile.company_name} ({state})")
            operators.append(profile)
        return operators

    def create_tours(self, operators):
        approved, pending = operators
        tour_data = [
            (approved, {
                'title': 'Kruger Big Five Safari',
                'description': 'Game drives in the Kruger National Park with a private lodge stay.',
                'duration': '5 days / 4 nights',
                'price_from': 1850000,
                'region': 'Southern Africa',
                'countries': ['South Africa'],
                'category': 'safari',
                'max_capacity': 6,
                'destinations': ['Kruger National Park', 'Sabi Sand'],
                'inclusions': ['Lodge accommodation', 'Twice-daily game drives', 'All meals'],
                'exclusions': ['Flights', 'Park conservation fees'],
                'cancellation_policy': 'Full refund up to 30 days before departure.',
            }),
            (approved, {
                'title': 'Okavango Delta Mokoro Expedition',
                'description': 'Mokoro trips through the Delta and a night under canvas.',
                'duration': '7 days / 6 nights',
                'price_from': 3200000,
                'region': 'Southern Africa',
                'countries': ['Botswana'],
                'category': 'adventure',
                'max_capacity': 4,
            }),
            (approved, {
                'title': 'Victoria Falls Weekend',
                'description': 'Falls tour, sunset cruise and a day trip into Zambia.',
                'duration': '3 days / 2 nights',
                'price_from': 950000,
                'region': 'Southern Africa',
                'countries': ['Zimbabwe', 'Zambia'],
                'category': 'sightseeing',
                'max_capacity': None,
            }),
            (pending, {
                'title': 'Garden Route Road Trip',
                'description': 'Self-drive along the Garden Route with guided stops.',
                'duration': '6 days / 5 nights',
                'price_from': 1400000,
                'region': 'Southern Africa',
                'countries': ['South Africa'],
                'category': 'road-trip',
                'max_capacity': 8,
            }),
        ]

        tours = []
        for profile, info in tour_data:
            tour, created = Tour.objects.get_or_create(
                operator_profile=profile,
                title=info['title'],
                defaults=info
            )
            if created:
                self.stdout.write(f"Created tour: {tour.title}")
            tours.append(tour)
        return tours

    def create_customer(self):
        customer, created = User.objects.get_or_create(
            email='customer1@example.com',
            defaults={
                'name': 'Lerato Mokoena',
                'role': UserRole.USER,
                'phone_number': '+27831112222',
                'whatsapp_number': '+27831112222',
            }
        )
        if created:
            customer.set_password('customer123')
            customer.save()
            self.stdout.write(f"Created customer: {customer.name}")
        return customer

    def create_quotes(self, customer, operators, tours):
        """Walk a few quotes through the lifecycle so every screen has something to show"""
        if QuoteRequest.objects.filter(user=customer).exists():
            self.stdout.write("Sample quotes already exist, skipping")
            return

        operator_user = operators[0].user
        kruger, okavango, falls = tours[0], tours[1], tours[2]
        in_a_month = timezone.localdate() + timedelta(days=30)

        pending = QuoteLifecycleService.submit(customer, falls.pk, {
            'preferred_date': in_a_month,
            'adults': 2,
            'special_requirements': 'Vegetarian meals please.',
        })
        QuoteMessagingService.post_message(customer, pending.pk, 'Is the sunset cruise included?')

        quoted = QuoteLifecycleService.submit(customer, okavango.pk, {
            'preferred_date': in_a_month + timedelta(days=14),
            'adults': 2,
            'children': 1,
            'child_ages': [12],
        })
        QuoteLifecycleService.respond(operator_user, quoted.pk, {
            'quoted_price': 7450000,
            'quoted_inclusions': [
                {'item': 'Mokoro excursions', 'price': None},
                {'item': 'Charter flight Maun - camp', 'price': 1200000},
            ],
            'quoted_exclusions': [{'item': 'International flights', 'price': None}],
            'quoted_terms': '30% deposit on acceptance.',
            'quote_validity_hours': 72,
        })

        paid = QuoteLifecycleService.submit(customer, kruger.pk, {
            'preferred_date': in_a_month + timedelta(days=30),
            'adults': 4,
        })
        QuoteLifecycleService.respond(operator_user, paid.pk, {'quoted_price': 7200000})
        QuoteLifecycleService.accept(customer, paid.pk)
        QuoteLifecycleService.mark_paid(amount=7200000, payment_reference='SAMPLE-PAY-001', quote_id=paid.pk)

        self.stdout.write(f"Created sample quotes: {pending.reference} (pending), "
                          f"{quoted.reference} (quoted), {paid.reference} (paid)")

    def print_test_endpoints(self):
        """Print sample API endpoints for testing"""
        self.stdout.write('\n' + '=' * 60)
        self.stdout.write(self.style.SUCCESS('SAMPLE API ENDPOINTS FOR TESTING'))
        self.stdout.write('=' * 60)

        self.stdout.write('\n1. Browse tours:')
        self.stdout.write('   GET /api/tours/?country=Botswana&limit=12')

        self.stdout.write('\n2. Login as customer:')
        self.stdout.write('   POST /api/auth/login/')
        self.stdout.write('   Body: {"email": "customer1@example.com", "password": "customer123"}')

        self.stdout.write('\n3. Login as operator:')
        self.stdout.write('   POST /api/auth/login/')
        self.stdout.write('   Body: {"email": "operator1@tourquote.co.za", "password": "operator123"}')

        self.stdout.write('\n4. Customer quotes / operator dashboard:')
        self.stdout.write('   GET /api/quotes/')
        self.stdout.write('   GET /api/quotes/operator/dashboard/')

        self.stdout.write('\n' + '=' * 60)
