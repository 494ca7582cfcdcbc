"""URL configuration for the events API."""

from django.urls import path

from . import views


app_name = "events"

urlpatterns = [
    path("events/", views.events_collection, name="event_list"),
    path("events/search/", views.event_search, name="event_search"),
    path("events/tags/", views.event_tags, name="event_tags"),
    path("events/stats/", views.event_stats, name="event_stats"),
    path("events/<slug:slug>/", views.event_detail, name="event_detail"),
    path("events/<slug:slug>/similar/", views.similar_events, name="similar_events"),
    path("upload/", views.image_upload, name="image_upload"),
]
