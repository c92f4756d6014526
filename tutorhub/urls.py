# tutorhub/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),

    # OAuth2 token endpoints
    path("o/", include("oauth2_provider.urls", namespace="oauth2_provider")),

    # Scheduling API lives in scheduling.urls
    path("", include("scheduling.urls")),
]
