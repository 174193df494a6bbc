from django.urls import path

from socialgraph.views import FollowEdgeApi, account_counts_api, follow_list_api, following_status_api

urlpatterns = [
    path('accounts/<str:actor_id>/following/<str:target_id>/', FollowEdgeApi.as_view(), name='follow_edge'),
    path('accounts/<str:account_id>/counts/', account_counts_api, name='account_counts'),
    path('accounts/<str:account_id>/followers/', follow_list_api, {'direction': 'followers'}, name='account_followers'),
    path('accounts/<str:account_id>/following/', follow_list_api, {'direction': 'following'}, name='account_following'),
    path('following-status/', following_status_api, name='following_status'),
]
