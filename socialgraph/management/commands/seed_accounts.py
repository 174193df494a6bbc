"""Management command to seed the account store with sample accounts and follows."""

from random import Random

from faker import Faker
from django.core.management.base import BaseCommand, CommandError

from socialgraph.identity import SYSTEM
from socialgraph.services import FollowNotifier, FollowService
from socialgraph.stores import get_account_store


class _SilentSink:
    """Seeded follows do not generate notifications."""

    def append_follow(self, actor_id, target_id):
        return None


class Command(BaseCommand):
    """Create sample accounts, then random follows through FollowService."""
    help = 'Seeds the account store with sample accounts and follow relationships'

    def add_arguments(self, parser):
        parser.add_argument("--accounts", type=int, default=50, help="Number of accounts to create.")
        parser.add_argument("--follows", type=int, default=5, help="Follows issued per account.")
        parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data.")
        parser.add_argument("--notify", action="store_true", help="Record follow notifications while seeding.")

    def __init__(self, *args, **kwargs):
        """Set up faker instance for generating seed content."""
        super().__init__(*args, **kwargs)
        self.faker = Faker('en_GB')

    def handle(self, *args, **options):
        """Run the full seeding sequence."""
        if options["accounts"] < 2:
            raise CommandError("--accounts must be at least 2")
        rng = Random(options["seed"])
        if options["seed"] is not None:
            self.faker.seed_instance(options["seed"])

        store = get_account_store()
        account_ids = self.create_accounts(store, options["accounts"])
        notifier = FollowNotifier(sink=None if options["notify"] else _SilentSink(), run_async=False)
        followed = self.seed_follows(store, notifier, account_ids, options["follows"], rng)
        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(account_ids)} accounts and {followed} follow relationships."
        ))

    def create_accounts(self, store, count):
        account_ids = []
        for _ in range(count):
            account_id = self.faker.unique.uuid4().replace("-", "")[:28]
            store.create_account(
                account_id,
                email=self.faker.unique.email(),
                display_name=self.faker.name(),
            )
            account_ids.append(account_id)
        return account_ids

    def seed_follows(self, store, notifier, account_ids, follows_per_account, rng):
        service = FollowService(SYSTEM, store=store, notifier=notifier)
        followed = 0
        for actor_id in account_ids:
            candidates = [other for other in account_ids if other != actor_id]
            for target_id in rng.sample(candidates, min(follows_per_account, len(candidates))):
                if service.follow(actor_id, target_id).changed:
                    followed += 1
        return followed
