from rest_framework import serializers


class FollowResultSerializer(serializers.Serializer):
    """Wire form of a FollowResult."""
    status = serializers.CharField(source="outcome.value")
    actor_id = serializers.CharField()
    target_id = serializers.CharField()
    actor_following_count = serializers.IntegerField()
    target_follower_count = serializers.IntegerField()


class AccountCountsSerializer(serializers.Serializer):
    followers = serializers.IntegerField()
    following = serializers.IntegerField()


class FollowingStatusQuerySerializer(serializers.Serializer):
    """Validate ``?ids=a,b,c`` for the following-status endpoint."""
    ids = serializers.CharField(allow_blank=True, required=False, default="")

    MAX_IDS = 500

    def validate_ids(self, value):
        ids = [item.strip() for item in value.split(",") if item.strip()]
        if len(ids) > self.MAX_IDS:
            raise serializers.ValidationError(f"At most {self.MAX_IDS} ids per request.")
        return ids


class FollowPageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    page_size = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)
