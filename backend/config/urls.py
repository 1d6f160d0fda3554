# backend/config/urls.py
"""
URL configuration for the business assistant backend.
"""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

urlpatterns = [
    path("api/assistant/", include("apps.assistant.urls")),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
]
