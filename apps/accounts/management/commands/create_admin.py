from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from apps.rbac.roles import Role


class Command(BaseCommand):
    help = "Create (or promote) an admin user for Customer Nexus Hub"

    def add_arguments(self, parser):
        parser.add_argument("--email", required=True, help="Login email of the admin")
        parser.add_argument("--password", help="Password (required when creating a new user)")
        parser.add_argument("--first-name", default="System", help="First name for a new user")
        parser.add_argument("--last-name", default="Admin", help="Last name for a new user")

    def handle(self, *args, **opts):
        User = get_user_model()
        email = opts["email"].strip().lower()

        user = User.objects.filter(email=email).first()
        if user is None:
            if not opts["password"]:
                raise CommandError("--password is required to create a new admin.")
            user = User.objects.create_superuser(
                email=email,
                password=opts["password"],
                first_name=opts["first_name"],
                last_name=opts["last_name"],
            )
            self.stdout.write(self.style.SUCCESS(f"Created: {user.email}"))
            return

        user.role = Role.ADMIN
        user.is_staff = True
        user.is_superuser = True
        user.is_active = True
        if opts["password"]:
            user.set_password(opts["password"])
        user.save()
        self.stdout.write(self.style.SUCCESS(f"Promoted: {user.email}"))
