from unittest.mock import MagicMock, patch

from django.contrib.auth.models import AnonymousUser
from django.db.models import F
from django.test import TestCase, override_settings

from socialgraph.exceptions import (
    ActorNotFoundError,
    CounterMismatchError,
    CounterUnderflowError,
    EdgeMismatchError,
    InvalidRequestError,
    SelfFollowError,
    TargetNotFoundError,
    TransientStoreError,
    UnauthorizedError,
)
from socialgraph.identity import SYSTEM
from socialgraph.models import Account
from socialgraph.services import FollowNotifier, FollowOutcome, FollowService, GraphMaintenanceService
from socialgraph.services import edges
from socialgraph.stores import OrmAccountStore, TransactionConflict
from socialgraph.tests.helpers import RecordingSink, make_account, make_user


class FollowServiceTestCase(TestCase):

    def setUp(self):
        self.store = OrmAccountStore()
        self.sink = RecordingSink()
        self.u1 = make_user("u1")
        self.u2 = make_user("u2")
        for account_id in ("u1", "u2", "u3"):
            make_account(account_id)

    def service(self, caller=None, **kwargs):
        kwargs.setdefault("store", self.store)
        kwargs.setdefault("notifier", FollowNotifier(sink=self.sink, run_async=False))
        kwargs.setdefault("backoff", 0)
        return FollowService(self.u1 if caller is None else caller, **kwargs)

    def assert_consistent(self):
        self.assertEqual(GraphMaintenanceService(store=self.store).audit(), [])

    def test_follow_records_edge_on_both_accounts(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = self.service().follow("u1", "u2")

        self.assertEqual(result.outcome, FollowOutcome.FOLLOWED)
        self.assertTrue(result.changed)
        self.assertEqual(result.actor_following_count, 1)
        self.assertEqual(result.target_follower_count, 1)
        actor = Account.objects.get(pk="u1")
        target = Account.objects.get(pk="u2")
        self.assertEqual(actor.following, ["u2"])
        self.assertEqual(actor.following_count, 1)
        self.assertEqual(target.followers, ["u1"])
        self.assertEqual(target.follower_count, 1)
        self.assertEqual(self.sink.calls, [("u1", "u2")])

    def test_follow_twice_is_idempotent(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.service().follow("u1", "u2")
            result = self.service().follow("u1", "u2")

        self.assertEqual(result.outcome, FollowOutcome.ALREADY_FOLLOWING)
        self.assertFalse(result.changed)
        self.assertTrue(result.is_following)
        self.assertEqual(Account.objects.get(pk="u2").follower_count, 1)
        self.assertEqual(self.sink.calls, [("u1", "u2")])

    def test_unfollow_removes_edge(self):
        self.service().follow("u1", "u2")
        result = self.service().unfollow("u1", "u2")

        self.assertEqual(result.outcome, FollowOutcome.UNFOLLOWED)
        self.assertEqual(result.as_dict()["status"], "unfollowed")
        actor = Account.objects.get(pk="u1")
        target = Account.objects.get(pk="u2")
        self.assertEqual((actor.following, actor.following_count), ([], 0))
        self.assertEqual((target.followers, target.follower_count), ([], 0))

    def test_unfollow_without_edge_reports_not_following(self):
        result = self.service().unfollow("u1", "u2")
        self.assertEqual(result.outcome, FollowOutcome.NOT_FOLLOWING)
        self.assertFalse(result.is_following)
        self.assertEqual(Account.objects.get(pk="u1").version, 0)

    def test_three_account_scenario(self):
        u3 = make_user("u3")
        with self.captureOnCommitCallbacks(execute=True):
            self.service(self.u1).follow("u1", "u2")
            self.service(self.u2).follow("u2", "u1")
            self.service(self.u1).follow("u1", "u3")
            self.service(u3).follow("u3", "u2")
            self.service(self.u1).unfollow("u1", "u2")

        u1 = Account.objects.get(pk="u1")
        u2 = Account.objects.get(pk="u2")
        u3_account = Account.objects.get(pk="u3")
        self.assertEqual((u1.followers, u1.following), (["u2"], ["u3"]))
        self.assertEqual((u1.follower_count, u1.following_count), (1, 1))
        self.assertEqual((u2.followers, u2.following), (["u3"], ["u1"]))
        self.assertEqual((u2.follower_count, u2.following_count), (1, 1))
        self.assertEqual((u3_account.followers, u3_account.following), (["u1"], ["u2"]))
        self.assertEqual((u3_account.follower_count, u3_account.following_count), (1, 1))
        self.assertEqual(len(self.sink.calls), 4)
        self.assert_consistent()

    def test_toggle_follow_flips_the_edge(self):
        service = self.service()
        self.assertEqual(service.toggle_follow("u1", "u2", currently_following=False).outcome, FollowOutcome.FOLLOWED)
        self.assertEqual(service.toggle_follow("u1", "u2", currently_following=True).outcome, FollowOutcome.UNFOLLOWED)

    def test_toggle_follow_with_stale_belief_is_harmless(self):
        service = self.service()
        service.follow("u1", "u2")
        result = service.toggle_follow("u1", "u2", currently_following=False)
        self.assertEqual(result.outcome, FollowOutcome.ALREADY_FOLLOWING)

    def test_self_follow_is_rejected_before_authorisation(self):
        with self.assertRaises(SelfFollowError) as ctx:
            self.service(AnonymousUser()).follow("u2", "u2")
        self.assertEqual(ctx.exception.category, "invalid_request")
        with self.assertRaises(SelfFollowError):
            self.service().unfollow("u1", "u1")

    def test_blank_ids_are_invalid(self):
        with self.assertRaises(InvalidRequestError):
            self.service().follow("u1", "")
        with self.assertRaises(InvalidRequestError):
            self.service().follow(None, "u2")

    def test_caller_may_only_act_as_itself(self):
        with self.assertRaises(UnauthorizedError):
            self.service(self.u2).follow("u1", "u3")
        with self.assertRaises(UnauthorizedError):
            self.service(AnonymousUser()).follow("u1", "u3")
        self.assertEqual(Account.objects.get(pk="u1").following, [])

    def test_system_caller_may_act_as_anyone(self):
        result = self.service(SYSTEM).follow("u2", "u3")
        self.assertEqual(result.outcome, FollowOutcome.FOLLOWED)

    def test_missing_target(self):
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(TargetNotFoundError) as ctx:
                self.service().follow("u1", "ghost")
        self.assertEqual(ctx.exception.category, "not_found")
        self.assertEqual(ctx.exception.side, "target")
        self.assertEqual(Account.objects.get(pk="u1").following_count, 0)
        self.assertEqual(self.sink.calls, [])

    def test_missing_actor(self):
        with self.assertRaises(ActorNotFoundError) as ctx:
            self.service(make_user("u9")).unfollow("u9", "u2")
        self.assertEqual(ctx.exception.account_id, "u9")

    def test_unfollow_refuses_counter_underflow(self):
        Account.objects.filter(pk="u1").update(following=["u2"], following_count=0)
        Account.objects.filter(pk="u2").update(followers=["u1"], follower_count=1)

        with self.assertLogs("socialgraph.services.follow", level="CRITICAL"):
            with self.assertRaises(CounterUnderflowError) as ctx:
                self.service().unfollow("u1", "u2")

        self.assertEqual(ctx.exception.category, "invariant")
        self.assertEqual(Account.objects.get(pk="u2").follower_count, 1)
        self.assertEqual(Account.objects.get(pk="u2").followers, ["u1"])

    def test_half_edge_is_reported_not_repaired(self):
        Account.objects.filter(pk="u1").update(following=["u2"], following_count=1)

        with self.assertLogs("socialgraph.services.follow", level="CRITICAL"):
            with self.assertRaises(EdgeMismatchError):
                self.service().follow("u1", "u2")
        self.assertEqual(Account.objects.get(pk="u2").followers, [])

    def test_follow_refuses_drifted_counter(self):
        Account.objects.filter(pk="u1").update(following_count=3)

        with self.assertLogs("socialgraph.services.follow", level="CRITICAL"):
            with self.assertRaises(CounterMismatchError) as ctx:
                self.service().follow("u1", "u2")

        self.assertEqual((ctx.exception.account_id, ctx.exception.field), ("u1", "followingCount"))
        self.assertEqual((ctx.exception.stored, ctx.exception.actual), (3, 0))
        u1 = Account.objects.get(pk="u1")
        self.assertEqual((u1.following, u1.following_count, u1.version), ([], 3, 0))
        self.assertEqual(Account.objects.get(pk="u2").followers, [])

    def test_follow_refuses_drifted_target_counter(self):
        Account.objects.filter(pk="u2").update(follower_count=2)
        with self.assertLogs("socialgraph.services.follow", level="CRITICAL"):
            with self.assertRaises(CounterMismatchError) as ctx:
                self.service().follow("u1", "u2")
        self.assertEqual(ctx.exception.field, "followerCount")
        self.assertEqual(Account.objects.get(pk="u1").following, [])

    def test_unfollow_refuses_drifted_counter(self):
        Account.objects.filter(pk="u1").update(following=["u2"], following_count=4)
        Account.objects.filter(pk="u2").update(followers=["u1"], follower_count=1)

        with self.assertLogs("socialgraph.services.follow", level="CRITICAL"):
            with self.assertRaises(CounterMismatchError):
                self.service().unfollow("u1", "u2")
        self.assertEqual(Account.objects.get(pk="u1").following, ["u2"])

    def test_no_op_unfollow_still_reports_drift(self):
        Account.objects.filter(pk="u2").update(follower_count=5)
        with self.assertLogs("socialgraph.services.follow", level="CRITICAL"):
            with self.assertRaises(CounterMismatchError):
                self.service().unfollow("u1", "u2")

    def test_follow_retries_after_concurrent_write(self):
        real_add_edge = edges.add_edge
        calls = []

        def racing_add_edge(actor, target):
            calls.append(actor.id)
            if len(calls) == 1:
                # Another writer commits to the target between read and commit.
                Account.objects.filter(pk=target.id).update(version=F("version") + 1)
            return real_add_edge(actor, target)

        with patch("socialgraph.services.follow.edges.add_edge", side_effect=racing_add_edge):
            result = self.service().follow("u1", "u2")

        self.assertEqual(result.outcome, FollowOutcome.FOLLOWED)
        self.assertEqual(len(calls), 2)
        self.assertEqual(Account.objects.get(pk="u2").follower_count, 1)
        self.assertEqual(Account.objects.get(pk="u1").following_count, 1)
        self.assert_consistent()

    def test_follow_gives_up_after_max_attempts(self):
        store = MagicMock()
        store.run_transaction.side_effect = TransactionConflict("busy")
        service = self.service(SYSTEM, store=store, max_attempts=3, backoff=0.01)

        with patch("socialgraph.services.retry.time.sleep"):
            with self.assertRaises(TransientStoreError) as ctx:
                service.follow("u1", "u2")

        self.assertEqual(store.run_transaction.call_count, 3)
        self.assertEqual(ctx.exception.category, "transient")
        store.after_commit.assert_not_called()

    def test_notification_waits_for_commit(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self.service().follow("u1", "u2")
        self.assertEqual(self.sink.calls, [])
        self.assertEqual(len(callbacks), 1)
        callbacks[0]()
        self.assertEqual(self.sink.calls, [("u1", "u2")])

    def test_unfollow_does_not_notify(self):
        self.service().follow("u1", "u2")
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.service().unfollow("u1", "u2")
        self.assertEqual(callbacks, [])

    def test_notification_failure_does_not_fail_follow(self):
        sink = RecordingSink(error=RuntimeError("notifications down"))
        service = self.service(notifier=FollowNotifier(sink=sink, run_async=False))

        with self.assertLogs("socialgraph.services.notifications", level="WARNING"):
            with self.captureOnCommitCallbacks(execute=True):
                result = service.follow("u1", "u2")

        self.assertEqual(result.outcome, FollowOutcome.FOLLOWED)
        self.assertEqual(Account.objects.get(pk="u2").followers, ["u1"])

    @override_settings(SOCIALGRAPH={})
    def test_notification_leaves_the_request_thread_by_default(self):
        executor = MagicMock()
        service = self.service(notifier=FollowNotifier(sink=self.sink, executor=executor))

        with self.captureOnCommitCallbacks(execute=True):
            service.follow("u1", "u2")

        self.assertEqual(self.sink.calls, [])
        executor.submit.assert_called_once_with(service.notifier._deliver_in_thread, "u1", "u2")

    @override_settings(SOCIALGRAPH={"NOTIFY_ASYNC": False})
    def test_default_notifier_writes_notification_row(self):
        Account.objects.filter(pk="u1").update(display_name="Ada Lovelace")
        service = FollowService(self.u1, store=self.store, backoff=0)
        with self.captureOnCommitCallbacks(execute=True):
            service.follow("u1", "u2")
        notification = Account.objects.get(pk="u2").notifications.get()
        self.assertEqual(notification.sender_id, "u1")
        self.assertEqual(notification.message, "Ada Lovelace started following you")
        self.assertFalse(notification.is_read)
