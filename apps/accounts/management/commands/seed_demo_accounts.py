from datetime import date

from django.core.management.base import BaseCommand

from apps.accounts.models import User, UserRole
from apps.accounts.services import create_user_with_role

DEMO_ACCOUNTS = [
    {
        "role": UserRole.ADMIN,
        "username": "admin",
        "password": "admin123",
        "first_name": "Admin",
        "last_name": "User",
        "email": "admin@example.com",
        "is_staff": True,
        "is_superuser": True,
    },
    {
        "role": UserRole.DEALER,
        "username": "dealer",
        "password": "dealer123",
        "first_name": "Demo",
        "last_name": "Dealer",
        "email": "dealer@example.com",
        "mobile": "9876543210",
        "profile_data": {
            "gender": "male",
            "date_of_birth": date(1990, 1, 1),
            "government_id_type": "aadhaar",
            "government_id_number": "123412341234",
            "street": "12 MG Road",
            "city": "Lucknow",
            "state": "Uttar Pradesh",
            "pincode": "226001",
        },
    },
    {
        "role": UserRole.VISITOR,
        "username": "visitor",
        "password": "visitor123",
        "first_name": "Demo",
        "last_name": "Visitor",
        "email": "visitor@example.com",
        "mobile": "9876500000",
        "profile_data": {"employee_id": "EMP001"},
    },
    {
        "role": UserRole.ACCOUNT_MANAGER,
        "username": "accounts",
        "password": "accounts123",
        "first_name": "Demo",
        "last_name": "Accounts",
        "email": "accounts@example.com",
    },
]


class Command(BaseCommand):
    help = "Seed demo admin, dealer, visitor and account manager logins."

    def handle(self, *args, **options):
        created = 0
        for account in DEMO_ACCOUNTS:
            fields = dict(account)
            if User.objects.filter(username=fields["username"]).exists():
                continue
            create_user_with_role(
                role=fields.pop("role"),
                password=fields.pop("password"),
                profile_data=fields.pop("profile_data", None),
                **fields,
            )
            created += 1

        self.stdout.write(self.style.SUCCESS(f"Seed accounts completed. accounts_created={created}"))
