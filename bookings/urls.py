"""URL configuration for the bookings API."""

from django.urls import path

from . import views


app_name = "bookings"

urlpatterns = [
    path("bookings/", views.booking_create, name="booking_create"),
    path("bookings/<int:booking_id>/cancel/", views.booking_cancel, name="booking_cancel"),
    path("events/<int:event_id>/bookings/", views.event_bookings, name="event_bookings"),
]
