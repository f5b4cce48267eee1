"""
Django management command to recompute GRN totals that were saved as 0 or
left out, in the local record store and in the saved_grns table
"""
from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model
from bizpos.purchasing.grn_store import update_existing_grn_totals

User = get_user_model()


class Command(BaseCommand):
    help = 'Recompute missing GRN totals from their items'

    def add_arguments(self, parser):
        parser.add_argument(
            '--username',
            type=str,
            help='Only repair GRNs belonging to this user',
        )
        parser.add_argument(
            '--skip-anonymous',
            action='store_true',
            help='Do not touch the anonymous local store',
        )

    def handle(self, *args, **options):
        username = options.get('username')

        if username:
            try:
                users = [User.objects.get(username=username)]
            except User.DoesNotExist:
                raise CommandError(f"User '{username}' does not exist")
        else:
            users = list(User.objects.filter(is_active=True).order_by('id'))

        self.stdout.write(self.style.SUCCESS("=== Updating Existing GRN Totals ==="))

        local_total = 0
        database_total = 0
        owners = [(user.username, user) for user in users]
        if not username and not options.get('skip_anonymous'):
            owners.append(('anonymous', None))

        for label, user in owners:
            result = update_existing_grn_totals(user)
            local_total += result['local_updated']
            database_total += result['database_updated']
            if result['local_updated'] or result['database_updated']:
                self.stdout.write(
                    f"  {label}: {result['local_updated']} local, {result['database_updated']} database"
                )

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS(
            f"Updated {local_total} local GRNs and {database_total} database GRNs"
        ))
