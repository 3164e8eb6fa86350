from django.db import models
from django.utils import timezone

from accounts.models import Tenant


class GuestMessage(models.Model):
    STATUS_CHOICES = (
        ("new", "New"),
        ("read", "Read"),
        ("replied", "Replied"),
    )

    name = models.CharField(max_length=150)
    email = models.EmailField()
    phone = models.CharField(max_length=40, blank=True, default="")
    message = models.TextField(blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="new")
    replied_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.name} <{self.email}> ({self.status})"


class BookingEnquiry(GuestMessage):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="booking_enquiries")
    check_in = models.DateField(null=True, blank=True)
    check_out = models.DateField(null=True, blank=True)
    guests = models.PositiveIntegerField(null=True, blank=True)

    class Meta(GuestMessage.Meta):
        verbose_name_plural = "booking enquiries"


class ContactMessage(GuestMessage):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="contact_messages")
    subject = models.CharField(max_length=200, blank=True, default="")

    class Meta(GuestMessage.Meta):
        pass
