# apps/assistant/urls.py

"""
Assistant API URLs
"""
from django.urls import path

from . import views

app_name = "assistant"

urlpatterns = [
    path("status/", views.assistant_status, name="status"),
    path("info/", views.service_info, name="info"),
    path("initialize/", views.initialize, name="initialize"),
    path("refresh/", views.refresh, name="refresh"),
    path("chat/", views.chat, name="chat"),
]
