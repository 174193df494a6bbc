from unittest.mock import MagicMock

from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase

from socialgraph.identity import SYSTEM, caller_account_id, may_act_as


class IdentityTests(SimpleTestCase):
    def setUp(self):
        self.user = MagicMock(is_authenticated=True, username="u1", is_system=False)

    def test_caller_account_id(self):
        self.assertEqual(caller_account_id(self.user), "u1")
        self.assertIsNone(caller_account_id(AnonymousUser()))
        self.assertIsNone(caller_account_id(None))
        self.assertIsNone(caller_account_id(SYSTEM))

    def test_may_act_as(self):
        self.assertTrue(may_act_as(self.user, "u1"))
        self.assertFalse(may_act_as(self.user, "u2"))
        self.assertFalse(may_act_as(AnonymousUser(), "u1"))
        self.assertFalse(may_act_as(None, "u1"))
        self.assertTrue(may_act_as(SYSTEM, "anyone"))
