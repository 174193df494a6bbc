from django.core.management.base import BaseCommand, CommandError

from socialgraph.exceptions import InvariantViolationError
from socialgraph.services import GraphMaintenanceService


class Command(BaseCommand):
    """Remove an (about to be) deleted account from its neighbours' follow sets."""

    help = 'Removes every follower/following reference to the given account ids'

    def add_arguments(self, parser):
        parser.add_argument("account_ids", nargs="+")

    def handle(self, *args, **options):
        service = GraphMaintenanceService()
        for account_id in options["account_ids"]:
            try:
                changed = service.detach_account(account_id)
            except InvariantViolationError as error:
                raise CommandError(
                    f"Could not detach {account_id}: {error}. Run audit_follow_graph --repair, then retry."
                ) from error
            self.stdout.write(self.style.SUCCESS(f"Detached {account_id} from {changed} account(s)."))
