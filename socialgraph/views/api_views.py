from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from socialgraph.exceptions import FollowError
from socialgraph.serializers import (
    AccountCountsSerializer,
    FollowingStatusQuerySerializer,
    FollowPageQuerySerializer,
    FollowResultSerializer,
)
from socialgraph.services import FollowReadService, FollowService

ERROR_STATUS = {
    "invalid_request": status.HTTP_400_BAD_REQUEST,
    "unauthorized": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "transient": status.HTTP_503_SERVICE_UNAVAILABLE,
    "invariant": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error):
    """Translate a follow engine error into a JSON error body."""
    return Response(
        {"error": error.category, "detail": str(error)},
        status=ERROR_STATUS.get(error.category, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


class FollowEdgeApi(APIView):
    """
    POST creates the actor -> target edge, DELETE removes it.

    Both answer 200 with the outcome ("followed", "already_following",
    "unfollowed", "not_following") and the fresh counts.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, actor_id, target_id):
        return self._apply(request, actor_id, target_id, "follow")

    def delete(self, request, actor_id, target_id):
        return self._apply(request, actor_id, target_id, "unfollow")

    def _apply(self, request, actor_id, target_id, operation):
        service = FollowService(request.user)
        try:
            result = getattr(service, operation)(actor_id, target_id)
        except FollowError as error:
            return error_response(error)
        return Response(FollowResultSerializer(result).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def following_status_api(request):
    """Return {id: bool} for ``?ids=a,b,c`` as seen by the caller (all False when anonymous)."""
    query = FollowingStatusQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    try:
        statuses = FollowReadService().status_for_caller(request.user, query.validated_data["ids"])
    except FollowError as error:
        return error_response(error)
    return Response(statuses)


@api_view(['GET'])
@permission_classes([AllowAny])
def account_counts_api(request, account_id):
    """Return the stored follower/following counts of an account."""
    try:
        counts = FollowReadService().get_counts(account_id)
    except FollowError as error:
        return error_response(error)
    return Response(AccountCountsSerializer(counts).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def follow_list_api(request, account_id, direction):
    """One page of an account's followers or followed accounts, hydrated with the caller's status."""
    query = FollowPageQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    page, page_size = query.validated_data["page"], query.validated_data["page_size"]
    reader = FollowReadService()
    try:
        if direction == "followers":
            page_ids = reader.follower_ids(account_id, page=page, page_size=page_size)
        else:
            page_ids = reader.following_ids(account_id, page=page, page_size=page_size)
        statuses = reader.status_for_caller(request.user, page_ids)
        names = reader.display_names(page_ids)
    except FollowError as error:
        return error_response(error)

    results = [
        {
            "id": account_id_on_page,
            "display_name": names.get(account_id_on_page, ""),
            "is_following": statuses[account_id_on_page],
        }
        for account_id_on_page in page_ids
    ]
    return Response({"page": page, "page_size": page_size, "results": results})
