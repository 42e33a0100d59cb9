# careops/management/commands/ensure_test_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from careops.models import User

TEST_SET = [
    ("superadmin", "super_admin"),
    ("reception1", "receptionist"),
    ("finance1", "finance"),
    ("medic1", "medical_staff"),
    ("3171000000000001", "patient"),
]

DEFAULT_PASSWORD = "Hospital#2024"


class Command(BaseCommand):
    help = "Ensure one user per role exists with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default=DEFAULT_PASSWORD)

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for username, role in TEST_SET:
            defaults = {"role": role, "password": password, "is_active": True, "is_staff": role != "patient"}
            if role == "patient":
                defaults["nik"] = username
            u, created = User.objects.get_or_create(username=username, defaults=defaults)
            if not created:
                # reset password, activation and role
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
