"""URL configuration for the eventhub project."""

from django.conf import settings
from django.contrib import admin
from django.urls import include, path

from utils.views import health


urlpatterns = [
    path(settings.ADMIN_URL, admin.site.urls),
    path("api/", include("events.urls")),
    path("api/", include("bookings.urls")),
    path("ht/", health, name="health"),
]
