"""
URL configuration for the graphsite project.

The engine's HTTP surface is mounted under ``api/``; everything else
(profile pages, member listings) lives in the calling applications.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('socialgraph.urls')),
]
