from django.contrib import admin
from .models import BookingEnquiry, ContactMessage


@admin.register(BookingEnquiry)
class BookingEnquiryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "tenant", "check_in", "check_out", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("name", "email")


@admin.register(ContactMessage)
class ContactMessageAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "subject", "tenant", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("name", "email", "subject")
