from rest_framework import serializers

from .models import BookingEnquiry, ContactMessage

GUEST_MESSAGE_FIELDS = ["id", "name", "email", "phone", "message", "status", "replied_at", "created_at"]


class BookingEnquirySerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingEnquiry
        fields = GUEST_MESSAGE_FIELDS + ["check_in", "check_out", "guests"]
        read_only_fields = ["id", "status", "replied_at", "created_at"]


class ContactMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContactMessage
        fields = GUEST_MESSAGE_FIELDS + ["subject"]
        read_only_fields = ["id", "status", "replied_at", "created_at"]


class SendReplySerializer(serializers.Serializer):
    """Les champs obligatoires sont vérifiés par la vue pour garder le format {success, error}."""

    to = serializers.EmailField(required=False, allow_blank=True, default="")
    subject = serializers.CharField(required=False, allow_blank=True, default="")
    message = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=False)
    referenceId = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    type = serializers.ChoiceField(choices=["booking", "contact"], required=False, allow_blank=True, allow_null=True)
    recipientName = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
