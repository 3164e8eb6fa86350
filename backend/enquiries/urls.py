from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r"bookings", views.BookingEnquiryViewSet, basename="booking-enquiries")
router.register(r"contacts", views.ContactMessageViewSet, basename="contact-messages")

urlpatterns = [
    path("<str:kind>/<int:enquiry_id>/read/", views.mark_read, name="enquiry_mark_read"),
    path("", include(router.urls)),
]
