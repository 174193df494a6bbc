from dataclasses import replace

from django.test import SimpleTestCase

from socialgraph.stores import AccountSnapshot, InMemoryAccountStore, TransactionConflict


class InMemoryAccountStoreTestCase(SimpleTestCase):

    def setUp(self):
        self.store = InMemoryAccountStore()
        self.store.create_account("a")
        self.store.create_account("b")

    def test_create_account_starts_empty(self):
        account = self.store.get_account("a")
        self.assertEqual(account, AccountSnapshot(id="a"))

    def test_create_account_rejects_duplicates(self):
        with self.assertRaises(ValueError):
            self.store.create_account("a")

    def test_get_unknown_account_returns_none(self):
        self.assertIsNone(self.store.get_account("zzz"))

    def test_commit_installs_writes_with_bumped_version(self):
        def mutate(txn):
            account = txn.get("a")
            txn.put(replace(account, following=frozenset({"b"}), following_count=1))
            return "done"

        self.assertEqual(self.store.run_transaction(mutate), "done")
        account = self.store.get_account("a")
        self.assertEqual(account.following, frozenset({"b"}))
        self.assertEqual(account.version, 1)

    def test_commit_conflicts_when_read_account_changed(self):
        txn = self.store.begin()
        account = txn.get("a")
        self.store.run_transaction(lambda other: other.put(replace(other.get("a"), follower_count=0)))
        txn.put(replace(account, following_count=1))
        with self.assertRaises(TransactionConflict):
            self.store._commit(txn)
        self.assertEqual(self.store.get_account("a").following_count, 0)

    def test_commit_conflicts_when_read_account_was_deleted(self):
        txn = self.store.begin()
        txn.get("b")
        self.store.delete_account("b")
        with self.assertRaises(TransactionConflict):
            self.store._commit(txn)

    def test_put_requires_prior_read(self):
        txn = self.store.begin()
        with self.assertRaises(ValueError):
            txn.put(AccountSnapshot(id="a"))

    def test_after_commit_runs_immediately(self):
        calls = []
        self.store.after_commit(lambda: calls.append("ran"))
        self.assertEqual(calls, ["ran"])

    def test_iter_account_ids_is_sorted(self):
        self.store.create_account("0")
        self.assertEqual(list(self.store.iter_account_ids()), ["0", "a", "b"])

    def test_display_names_fall_back_to_email_then_id(self):
        self.store.create_account("c", display_name="Cee")
        self.store.create_account("d", email="d@example.org")
        self.store.delete_account("b")
        self.assertEqual(self.store.display_names(["a", "b", "c", "d", "ghost"]),
                         {"a": "a", "c": "Cee", "d": "d@example.org"})
