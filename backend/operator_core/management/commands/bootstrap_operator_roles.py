from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand, CommandError

OPERATOR_GROUPS = [
    "operator_support",
    "operator_finance",
    "operator_admin",
]


class Command(BaseCommand):
    help = "Create operator role groups and optionally grant escrow admin rights to a user."

    def add_arguments(self, parser):
        parser.add_argument("--username", dest="username", help="User to add to a role.")
        parser.add_argument(
            "--role",
            dest="role",
            default="operator_admin",
            choices=OPERATOR_GROUPS,
            help="Role group to assign (default: operator_admin).",
        )

    def handle(self, *args, **options):
        created = []
        for group_name in OPERATOR_GROUPS:
            _group, was_created = Group.objects.get_or_create(name=group_name)
            if was_created:
                created.append(group_name)

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created groups: {', '.join(created)}"))
        else:
            self.stdout.write("Operator groups already exist.")

        username = options.get("username")
        if not username:
            return

        User = get_user_model()
        try:
            user = User.objects.get(username=username)
        except User.DoesNotExist:
            raise CommandError(f"User {username!r} not found.")

        user.is_staff = True
        user.save(update_fields=["is_staff"])
        role = options["role"]
        user.groups.add(Group.objects.get(name=role))
        self.stdout.write(self.style.SUCCESS(f"Assigned {user} to {role} and set is_staff=True."))
