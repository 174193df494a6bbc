from django.test import SimpleTestCase

from socialgraph.serializers import FollowingStatusQuerySerializer, FollowPageQuerySerializer, FollowResultSerializer
from socialgraph.services import FollowOutcome, FollowResult


class SerializerTests(SimpleTestCase):
    def test_follow_result(self):
        result = FollowResult(FollowOutcome.FOLLOWED, "a", "b", 3, 7)
        self.assertEqual(FollowResultSerializer(result).data["status"], "followed")
        self.assertEqual(dict(FollowResultSerializer(result).data), result.as_dict())

    def test_status_query_splits_ids(self):
        query = FollowingStatusQuerySerializer(data={"ids": " a, b,,c "})
        self.assertTrue(query.is_valid())
        self.assertEqual(query.validated_data["ids"], ["a", "b", "c"])

    def test_status_query_defaults_to_empty(self):
        query = FollowingStatusQuerySerializer(data={})
        self.assertTrue(query.is_valid())
        self.assertEqual(query.validated_data["ids"], [])

    def test_page_query_bounds(self):
        self.assertFalse(FollowPageQuerySerializer(data={"page_size": 101}).is_valid())
        query = FollowPageQuerySerializer(data={})
        self.assertTrue(query.is_valid())
        self.assertEqual((query.validated_data["page"], query.validated_data["page_size"]), (1, 20))
