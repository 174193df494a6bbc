from django.core.management.base import BaseCommand

from socialgraph.services import GraphMaintenanceService


class Command(BaseCommand):
    """
    Check every account (or the given ones) for follow graph corruption.

    Reports counter drift, half edges, dangling references and self edges.
    With ``--repair`` each affected account keeps only the edges recorded
    on both ends and has its counters recomputed.
    """

    help = 'Audits (and optionally repairs) follower/following sets and counters'

    def add_arguments(self, parser):
        parser.add_argument("--account", action="append", dest="accounts", default=None,
                            help="Limit the audit to this account id (repeatable).")
        parser.add_argument("--repair", action="store_true", help="Fix the accounts with issues.")

    def handle(self, *args, **options):
        service = GraphMaintenanceService()
        issues = service.audit(options["accounts"])
        for issue in issues:
            self.stdout.write(f"- {issue}")
        if not issues:
            self.stdout.write(self.style.SUCCESS("Follow graph is consistent."))
            return
        self.stdout.write(self.style.WARNING(f"Found {len(issues)} issue(s)."))
        if options["repair"]:
            repaired = service.repair(issues)
            self.stdout.write(self.style.SUCCESS(f"Repaired {repaired} account(s)."))
